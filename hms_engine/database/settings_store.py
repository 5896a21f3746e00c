"""
Persistence for patient numbering settings.

The numbering generator only needs a load/save pair over the whole
settings object. Three stores implement it:

- InMemorySettingsStore: process-local, for tests and single-user tools
- JsonFileSettingsStore: a JSON file written atomically via rename
- ArangoSettingsStore: one document in an ArangoDB collection

A missing file or document yields the default settings. Every backend
failure is raised as SettingsStoreError.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from arango.collection import StandardCollection
from arango.exceptions import ArangoError
from pydantic import ValidationError

from hms_engine.config.config import get_settings
from hms_engine.config.logging_config import get_logger
from hms_engine.models.numbering_models import PatientNumberingSettings

logger = get_logger(__name__)

SETTINGS_DOCUMENT_KEY = "patient_numbering"


class SettingsStoreError(OSError):
    """Raised when numbering settings cannot be loaded or saved."""


class SettingsStore(Protocol):
    """Load/save pair owning the durability of numbering settings."""

    def load(self) -> PatientNumberingSettings:
        ...

    def save(self, settings: PatientNumberingSettings) -> None:
        ...


class InMemorySettingsStore:
    """Settings held in process memory."""

    def __init__(self, settings: PatientNumberingSettings | None = None):
        self._data = (settings or PatientNumberingSettings()).model_dump(mode="json")
        self._lock = threading.Lock()

    def load(self) -> PatientNumberingSettings:
        # Hand out copies so callers never share mutable state with the store
        with self._lock:
            return PatientNumberingSettings.model_validate(self._data)

    def save(self, settings: PatientNumberingSettings) -> None:
        with self._lock:
            self._data = settings.model_dump(mode="json")


class JsonFileSettingsStore:
    """
    Settings persisted as a JSON file.

    Writes go to a temporary file in the same directory which then
    replaces the target, so readers never see a half-written file.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> PatientNumberingSettings:
        if not self.path.exists():
            logger.debug("No numbering settings file, using defaults", path=str(self.path))
            return PatientNumberingSettings()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return PatientNumberingSettings.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error("Failed to load numbering settings", path=str(self.path), error=str(e))
            raise SettingsStoreError(f"Cannot load numbering settings from {self.path}") from e

    def save(self, settings: PatientNumberingSettings) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(settings.model_dump(mode="json", by_alias=True), f, indent=2)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error("Failed to save numbering settings", path=str(self.path), error=str(e))
            raise SettingsStoreError(f"Cannot save numbering settings to {self.path}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)


class ArangoSettingsStore:
    """Settings persisted as a single ArangoDB document."""

    def __init__(
        self,
        collection: StandardCollection,
        key: str = SETTINGS_DOCUMENT_KEY,
    ):
        self.collection = collection
        self.key = key

    def load(self) -> PatientNumberingSettings:
        try:
            document = self.collection.get(self.key)
        except ArangoError as e:
            logger.error("Failed to load numbering settings", key=self.key, error=str(e))
            raise SettingsStoreError("Cannot load numbering settings from ArangoDB") from e

        if document is None:
            logger.debug("No numbering settings document, using defaults", key=self.key)
            return PatientNumberingSettings()

        data = {k: v for k, v in document.items() if not k.startswith("_")}
        try:
            return PatientNumberingSettings.model_validate(data)
        except ValidationError as e:
            logger.error("Invalid numbering settings document", key=self.key, error=str(e))
            raise SettingsStoreError("Stored numbering settings are invalid") from e

    def save(self, settings: PatientNumberingSettings) -> None:
        document = {"_key": self.key, **settings.model_dump(mode="json", by_alias=True)}
        try:
            self.collection.insert(document, overwrite=True)
        except ArangoError as e:
            logger.error("Failed to save numbering settings", key=self.key, error=str(e))
            raise SettingsStoreError("Cannot save numbering settings to ArangoDB") from e


def create_settings_store() -> SettingsStore:
    """Build the store selected by the `numbering_store` setting."""
    settings = get_settings()

    if settings.numbering_store == "memory":
        return InMemorySettingsStore()
    if settings.numbering_store == "arango":
        from hms_engine.database.database import get_database

        try:
            db = get_database()
        except ArangoError as e:
            raise SettingsStoreError("Cannot connect to ArangoDB") from e
        return ArangoSettingsStore(db.collection(settings.arango_settings_collection))
    return JsonFileSettingsStore(settings.numbering_settings_path)
