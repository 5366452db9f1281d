"""Tests for subscription record serialization."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from nutritrack.errors import InvalidRecordError
from nutritrack.subscription.models import SubscriptionPlan, SubscriptionRecord
from nutritrack.subscription.serialization import (
    load_record,
    record_from_dict,
    record_to_dict,
    save_record,
)


class TestRecordDict:
    """Tests for dict conversion."""

    def test_to_dict(self, now) -> None:
        """Timestamps are written as ISO-8601 strings."""
        record = SubscriptionRecord(
            trial_start=now,
            premium_active=True,
            premium_activated_at=now + timedelta(days=1),
            premium_expiry=None,
            plan=SubscriptionPlan.UNLIMITED,
        )
        data = record_to_dict(record)
        assert data["trial_start"] == "2026-03-10T12:00:00+00:00"
        assert data["trial_days"] == 5
        assert data["premium_expiry"] is None
        assert data["plan"] == "unlimited"

    def test_round_trip(self, now) -> None:
        """A record survives conversion to dict and back."""
        record = SubscriptionRecord(
            trial_start=now,
            premium_active=True,
            premium_activated_at=now,
            premium_expiry=now + timedelta(days=31),
            plan=SubscriptionPlan.PREMIUM_MONTHLY,
        )
        assert record_from_dict(record_to_dict(record)) == record

    def test_defaults(self) -> None:
        """Only trial_start is needed."""
        record = record_from_dict({"trial_start": "2026-03-01T00:00:00Z"})
        assert record.trial_start == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert record.trial_length == timedelta(days=5)
        assert record.premium_active is False
        assert record.plan == SubscriptionPlan.TRIAL

    def test_missing_trial_days_uses_settings(self, default_settings) -> None:
        """Records without a trial length get the configured one."""
        default_settings.subscription.trial_days = 14
        record = record_from_dict({"trial_start": "2026-03-01T00:00:00Z"})
        assert record.trial_length == timedelta(days=14)

    def test_accepts_datetime_values(self, now) -> None:
        """YAML may already have parsed timestamps into datetimes."""
        assert record_from_dict({"trial_start": now}).trial_start == now

    def test_missing_trial_start_is_loaded(self) -> None:
        """A missing trial start is left for the evaluator to reject."""
        assert record_from_dict({}).trial_start is None

    @pytest.mark.parametrize(
        "data",
        [
            {"trial_start": "yesterday"},
            {"trial_start": 12},
            {"trial_start": "2026-03-01T00:00:00Z", "plan": "platinum"},
            {"trial_start": "2026-03-01T00:00:00Z", "premium_active": "yes"},
            {"trial_start": "2026-03-01T00:00:00Z", "trial_days": "five"},
            {"trial_start": "2026-03-01T00:00:00Z", "trial_days": float("nan")},
            {"trial_start": "2026-03-01T00:00:00Z", "trial_days": float("inf")},
            {"trial_start": "2026-03-01T00:00:00Z", "trial_days": 0},
            {"trial_start": "2026-03-01T00:00:00Z", "trial_days": -3},
            {"trial_start": "2026-03-01T00:00:00Z", "trial_days": 1e20},
        ],
    )
    def test_rejects_bad_fields(self, data) -> None:
        """Wrongly typed fields raise InvalidRecordError."""
        with pytest.raises(InvalidRecordError):
            record_from_dict(data)

    def test_rejects_non_mapping(self) -> None:
        """The top level must be a mapping."""
        with pytest.raises(InvalidRecordError):
            record_from_dict(["trial_start"])  # type: ignore[arg-type]


class TestRecordFiles:
    """Tests for YAML record files."""

    def test_save_and_load(self, tmp_path, now) -> None:
        """Records written to YAML load back equal."""
        record = SubscriptionRecord(
            trial_start=now,
            premium_active=True,
            premium_activated_at=now,
            premium_expiry=now + timedelta(days=365),
            plan=SubscriptionPlan.PREMIUM_YEARLY,
        )
        path = tmp_path / "records" / "user.yaml"
        save_record(record, path)
        assert load_record(path) == record

    def test_load_hand_written(self, tmp_path) -> None:
        """Unquoted YAML timestamps are accepted."""
        path = tmp_path / "user.yaml"
        path.write_text("trial_start: 2026-03-01T00:00:00Z\ntrial_days: 5\n")
        record = load_record(path)
        assert record.trial_start == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_load_malformed_yaml(self, tmp_path) -> None:
        """YAML syntax errors become InvalidRecordError."""
        path = tmp_path / "user.yaml"
        path.write_text("trial_start: [unclosed\n")
        with pytest.raises(InvalidRecordError):
            load_record(path)

    def test_load_nan_trial_days(self, tmp_path) -> None:
        """YAML .nan is not a trial length."""
        path = tmp_path / "user.yaml"
        path.write_text("trial_start: 2026-03-01T00:00:00Z\ntrial_days: .nan\n")
        with pytest.raises(InvalidRecordError):
            load_record(path)
