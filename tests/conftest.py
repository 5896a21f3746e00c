"""Shared fixtures for the HMS engine tests."""

from datetime import datetime

import pytest

from hms_engine.database.settings_store import InMemorySettingsStore
from hms_engine.models.clinical_models import VitalSigns


class FakeClock:
    """Settable clock for time-dependent behaviour."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 4, 17, 9, 30))


@pytest.fixture
def memory_store():
    return InMemorySettingsStore()


@pytest.fixture
def normal_vitals():
    """Vital signs with every channel in range."""
    return VitalSigns(
        blood_pressure="120/80",
        pulse_rate=72,
        temperature=36.8,
        oxygen_saturation=98,
        respiratory_rate=16,
        recorded_by="nurse-1",
    )
