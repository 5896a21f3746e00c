"""
Patient Numbering Service

Issues sequential outpatient (OP), inpatient (IP) and emergency (EM)
identifiers from persisted counter state.

Each call is a read-modify-write of the numbering settings:
1. Load settings from the store
2. Return "" if the category is disabled
3. Reset the sequence if a reset boundary was crossed since last issue
4. Render the template with the current sequence
5. Increment the sequence, stamp last_reset, save

Same-category calls are serialized by a per-category lock. The store
lock only covers each load/save window, and settings are re-loaded
before saving, so different categories never overwrite each other.
"""

import threading
from datetime import datetime
from typing import Callable

from hms_engine.config.config import get_settings
from hms_engine.config.logging_config import get_logger
from hms_engine.database.settings_store import SettingsStore, create_settings_store
from hms_engine.models.numbering_models import (
    CategoryNumberingSettings,
    NumberingCategory,
    ResetInterval,
)

logger = get_logger(__name__)


def should_reset_sequence(
    last_reset: datetime | None,
    reset_interval: ResetInterval,
    now: datetime,
) -> bool:
    """
    Check whether a reset boundary was crossed since `last_reset`.

    A category that has never issued a number is never reset. The
    per-admission policy keeps one running sequence across admissions,
    so it never resets either.
    """
    if last_reset is None:
        return False

    if reset_interval == ResetInterval.DAILY:
        return now.date() != last_reset.date()
    if reset_interval == ResetInterval.MONTHLY:
        return (now.year, now.month) != (last_reset.year, last_reset.month)
    if reset_interval == ResetInterval.YEARLY:
        return now.year != last_reset.year
    return False


def format_patient_number(
    template: str,
    sequence: int,
    date: datetime,
    padding: int = 5,
) -> str:
    """Render an identifier template for a sequence value and date."""
    return (
        template
        .replace("{year}", f"{date.year:04d}")
        .replace("{month}", f"{date.month:02d}")
        .replace("{day}", f"{date.day:02d}")
        .replace("{sequence}", str(sequence).zfill(padding))
    )


class PatientNumberGenerator:
    """Thread-safe issuer of sequential patient identifiers."""

    def __init__(
        self,
        store: SettingsStore | None = None,
        clock: Callable[[], datetime] | None = None,
        sequence_padding: int | None = None,
    ):
        """
        Initialize the generator.

        Args:
            store: Settings store. If None, built from configuration.
            clock: Source of the current time. Defaults to datetime.now.
            sequence_padding: Zero-padding width of {sequence}.
        """
        settings = get_settings()
        self.store = store if store is not None else create_settings_store()
        self.clock = clock or datetime.now
        self.sequence_padding = (
            sequence_padding if sequence_padding is not None else settings.sequence_padding
        )

        self._category_locks = {category: threading.Lock() for category in NumberingCategory}
        self._store_lock = threading.Lock()

    def generate_number(self, category: NumberingCategory | str) -> str:
        """
        Issue the next identifier for a category.

        Args:
            category: outpatient, inpatient or emergency.

        Returns:
            The rendered identifier, or "" when the category is disabled.

        Raises:
            ValueError: Unknown category.
            SettingsStoreError: Settings could not be loaded or saved.
        """
        category = NumberingCategory(category)

        with self._category_locks[category]:
            with self._store_lock:
                current = self.store.load().for_category(category)

            if not current.enabled:
                logger.info("Numbering disabled, no number issued", category=category.value)
                return ""

            now = self.clock()
            updated = self._next_state(category, current, now)
            number = format_patient_number(
                current.format, updated.current_sequence, now, self.sequence_padding
            )
            updated.current_sequence += 1
            updated.last_reset = now

            with self._store_lock:
                latest = self.store.load()
                setattr(latest, category.value, updated)
                self.store.save(latest)

        logger.info(
            "Patient number issued",
            category=category.value,
            number=number,
            sequence=updated.current_sequence - 1,
        )
        return number

    def preview_number(self, category: NumberingCategory | str) -> str:
        """Render the identifier the next call would issue, without saving."""
        category = NumberingCategory(category)

        with self._store_lock:
            current = self.store.load().for_category(category)
        if not current.enabled:
            return ""

        now = self.clock()
        sequence = current.current_sequence
        if should_reset_sequence(current.last_reset, current.reset_interval, now):
            sequence = current.starting_sequence
        return format_patient_number(current.format, sequence, now, self.sequence_padding)

    def _next_state(
        self,
        category: NumberingCategory,
        current: CategoryNumberingSettings,
        now: datetime,
    ) -> CategoryNumberingSettings:
        """Copy the category state, applying a reset if one is due."""
        updated = current.model_copy()
        if should_reset_sequence(current.last_reset, current.reset_interval, now):
            logger.info(
                "Sequence reset",
                category=category.value,
                interval=current.reset_interval.value,
                previous_sequence=current.current_sequence,
                starting_sequence=current.starting_sequence,
            )
            updated.current_sequence = current.starting_sequence
        return updated

    def generate_outpatient_number(self) -> str:
        return self.generate_number(NumberingCategory.OUTPATIENT)

    def generate_inpatient_number(self) -> str:
        return self.generate_number(NumberingCategory.INPATIENT)

    def generate_emergency_number(self) -> str:
        return self.generate_number(NumberingCategory.EMERGENCY)


# Singleton instance
_generator_instance: PatientNumberGenerator | None = None


def get_patient_number_generator() -> PatientNumberGenerator:
    """Get the singleton patient number generator."""
    global _generator_instance
    if _generator_instance is None:
        _generator_instance = PatientNumberGenerator()
    return _generator_instance
