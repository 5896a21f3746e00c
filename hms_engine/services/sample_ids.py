"""
Lab sample identifiers.

Format: DEPT-TEST-YYYYMMDD-NNNN, e.g. HEM-CBC-20250417-0001.
The counter restarts at 1 each calendar day.
"""

import threading
from datetime import date, datetime
from typing import Callable

from hms_engine.config.logging_config import get_logger

logger = get_logger(__name__)


class SampleIdGenerator:
    """Daily-sequenced lab sample identifiers."""

    DEPARTMENT_PREFIXES: dict[str, str] = {
        "hematology": "HEM",
        "biochemistry": "BIO",
        "microbiology": "MIC",
        "immunology": "IMM",
        "urinalysis": "URI",
        "serology": "SER",
        "coagulation": "COA",
        "molecular": "MOL",
    }

    TEST_TYPE_PREFIXES: dict[str, str] = {
        "Complete Blood Count (CBC)": "CBC",
        "Liver Function Test": "LFT",
        "Lipid Profile": "LIP",
        "Blood Culture": "BCX",
        "Urinalysis": "URI",
        "Coagulation Profile": "CPF",
    }

    DEFAULT_DEPARTMENT_PREFIX = "LAB"

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self.clock = clock or datetime.now
        self._counter = 1
        self._counter_date: date | None = None
        self._lock = threading.Lock()

    def generate(self, test_type: str, category: str) -> str:
        """
        Issue the next sample identifier.

        Args:
            test_type: Test type name (e.g. "Lipid Profile").
            category: Lab department (e.g. "hematology").
        """
        dept_prefix = self.DEPARTMENT_PREFIXES.get(
            category.lower(), self.DEFAULT_DEPARTMENT_PREFIX
        )
        test_prefix = self.test_prefix(test_type)

        with self._lock:
            today = self.clock().date()
            if today != self._counter_date:
                self._counter = 1
                self._counter_date = today
            sequence = self._counter
            self._counter += 1

        sample_id = f"{dept_prefix}-{test_prefix}-{today:%Y%m%d}-{sequence:04d}"
        logger.debug("Sample ID issued", sample_id=sample_id)
        return sample_id

    def test_prefix(self, test_type: str) -> str:
        """Known prefix, else the initials of the test-type words (max 3)."""
        if test_type in self.TEST_TYPE_PREFIXES:
            return self.TEST_TYPE_PREFIXES[test_type]
        return "".join(word[0] for word in test_type.split()).upper()[:3]


# Singleton instance
_sample_id_generator: SampleIdGenerator | None = None


def get_sample_id_generator() -> SampleIdGenerator:
    """Get the singleton sample ID generator."""
    global _sample_id_generator
    if _sample_id_generator is None:
        _sample_id_generator = SampleIdGenerator()
    return _sample_id_generator
