"""Unit tests for settings, logging setup and store selection."""

import json
from unittest.mock import MagicMock, patch

import pytest
import structlog
from arango.exceptions import ArangoError

from hms_engine.config.config import Settings
from hms_engine.config.logging_config import bind_context, configure_logging, get_logger
from hms_engine.database.settings_store import (
    ArangoSettingsStore,
    InMemorySettingsStore,
    JsonFileSettingsStore,
    SettingsStoreError,
    create_settings_store,
)


class TestSettings:
    """Test configuration defaults and redaction."""

    def test_defaults(self):
        """Test engine thresholds default to the documented values."""
        settings = Settings(_env_file=None)

        assert settings.numbering_store == "json"
        assert settings.sequence_padding == 5
        assert settings.lab_summary_max_lines == 3
        assert settings.billing_price_ratio_threshold == 1.5
        assert not settings.is_production

    def test_environment_override(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("NUMBERING_STORE", "arango")
        monkeypatch.setenv("SEQUENCE_PADDING", "4")

        settings = Settings(_env_file=None)
        assert settings.numbering_store == "arango"
        assert settings.sequence_padding == 4

    def test_password_redacted(self):
        """Test secrets never appear in the loggable config."""
        settings = Settings(_env_file=None, arango_password="s3cret")
        assert settings.get_safe_config_dict()["arango_password"] == "***REDACTED***"


class TestLogging:
    """Test structlog configuration."""

    def test_bound_context_in_output(self, capsys):
        """Test bound caller context appears on log lines."""
        configure_logging()
        bind_context(patient_id="patient-42")
        get_logger("hms_engine.tests").info("Context check")
        structlog.contextvars.clear_contextvars()

        output = capsys.readouterr().out
        assert "Context check" in output
        assert "patient-42" in output

    def test_json_format(self, capsys):
        """Test the json format emits one object per event."""
        settings = Settings(_env_file=None, log_format="json")
        with patch("hms_engine.config.logging_config.get_settings", return_value=settings):
            configure_logging()
        get_logger("hms_engine.tests").info("Json check", invoice_id="inv-1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        configure_logging()

        assert event["event"] == "Json check"
        assert event["invoice_id"] == "inv-1"
        assert event["level"] == "info"

    def test_bind_context_replaces(self):
        """Test binding new context drops the previous fields."""
        bind_context(patient_id="a", encounter_id="e1")
        bind_context(patient_id="b")

        context = structlog.contextvars.get_contextvars()
        structlog.contextvars.clear_contextvars()
        assert context == {"patient_id": "b"}


class TestCreateSettingsStore:
    """Test store selection from configuration."""

    @pytest.mark.parametrize(
        "backend, expected",
        [("memory", InMemorySettingsStore), ("json", JsonFileSettingsStore)],
    )
    def test_local_backends(self, tmp_path, backend, expected):
        """Test the memory and json backends."""
        settings = Settings(
            _env_file=None,
            numbering_store=backend,
            numbering_settings_path=tmp_path / "numbering.json",
        )
        with patch("hms_engine.database.settings_store.get_settings", return_value=settings):
            assert isinstance(create_settings_store(), expected)

    def test_arango_backend(self):
        """Test the arango backend uses the configured collection."""
        settings = Settings(_env_file=None, numbering_store="arango")
        db = MagicMock()
        with patch("hms_engine.database.settings_store.get_settings", return_value=settings), \
                patch("hms_engine.database.database.get_database", return_value=db):
            store = create_settings_store()

        assert isinstance(store, ArangoSettingsStore)
        db.collection.assert_called_once_with("settings")

    def test_arango_unreachable(self):
        """Test connection failures surface as SettingsStoreError."""
        settings = Settings(_env_file=None, numbering_store="arango")
        with patch("hms_engine.database.settings_store.get_settings", return_value=settings), \
                patch("hms_engine.database.database.get_database", side_effect=ArangoError("down")):
            with pytest.raises(SettingsStoreError):
                create_settings_store()
