"""Pytest fixtures for nutritrack tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

import nutritrack.config.settings as settings_module
from nutritrack.config.settings import Settings
from nutritrack.profiles.body_calc import ActivityLevel, Sex, UserProfile
from nutritrack.subscription.models import SubscriptionRecord


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Use default settings instead of whatever is in the home directory."""
    settings = Settings()
    monkeypatch.setattr(settings_module, "_settings", settings)
    return settings


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation time."""
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def trial_record(now):
    """Record four days into a five-day trial."""
    return SubscriptionRecord(trial_start=now - timedelta(days=4))


@pytest.fixture
def expired_record(now):
    """Record whose trial ended a day ago, never paid."""
    return SubscriptionRecord(trial_start=now - timedelta(days=6))


@pytest.fixture
def male_profile():
    """70 kg, 175 cm, 30 year old moderately active man."""
    return UserProfile(
        weight_kg=70,
        height_cm=175,
        age=30,
        sex=Sex.MALE,
        activity_level=ActivityLevel.MODERATE,
    )
