"""Serialization utilities for SubscriptionRecord files.

Records are stored as plain dicts with ISO-8601 timestamps so they can be
written to YAML or JSON and read back into an equivalent record.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

import yaml

from nutritrack.config import get_settings
from nutritrack.errors import InvalidRecordError
from nutritrack.subscription.models import SubscriptionPlan, SubscriptionRecord


def _parse_timestamp(field_name: str, value: Any) -> Optional[datetime]:
    if value is None:
        return None
    # yaml.safe_load already turns unquoted timestamps into datetimes
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidRecordError(f"{field_name}: invalid timestamp {value!r}") from e
    raise InvalidRecordError(f"{field_name}: expected timestamp, got {value!r}")


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def record_to_dict(record: SubscriptionRecord) -> dict[str, Any]:
    """Convert SubscriptionRecord to a YAML/JSON-serializable dict."""
    return {
        "trial_start": _format_timestamp(record.trial_start),
        "trial_days": record.trial_length / timedelta(days=1),
        "premium_active": record.premium_active,
        "premium_activated_at": _format_timestamp(record.premium_activated_at),
        "premium_expiry": _format_timestamp(record.premium_expiry),
        "plan": record.plan.value,
    }


def record_from_dict(data: dict[str, Any]) -> SubscriptionRecord:
    """Convert a dict produced by record_to_dict back to a SubscriptionRecord.

    Args:
        data: Parsed record data

    Returns:
        SubscriptionRecord

    Raises:
        InvalidRecordError: If a field has the wrong type or an unknown plan.
            A missing trial_days uses the configured trial length.
    """
    if not isinstance(data, dict):
        raise InvalidRecordError("subscription record must be a mapping")

    try:
        plan = SubscriptionPlan(data.get("plan", SubscriptionPlan.TRIAL.value))
    except ValueError as e:
        raise InvalidRecordError(f"unknown plan {data.get('plan')!r}") from e

    trial_days = data.get("trial_days")
    if trial_days is None:
        trial_days = get_settings().subscription.trial_days
    if isinstance(trial_days, bool) or not isinstance(trial_days, (int, float)):
        raise InvalidRecordError(f"trial_days must be a number, got {trial_days!r}")
    if not math.isfinite(trial_days) or trial_days <= 0:
        raise InvalidRecordError(f"trial_days must be positive and finite, got {trial_days!r}")
    try:
        trial_length = timedelta(days=trial_days)
    except OverflowError as e:
        raise InvalidRecordError(f"trial_days is out of range: {trial_days!r}") from e

    premium_active = data.get("premium_active", False)
    if not isinstance(premium_active, bool):
        raise InvalidRecordError(f"premium_active must be a boolean, got {premium_active!r}")

    return SubscriptionRecord(
        trial_start=_parse_timestamp("trial_start", data.get("trial_start")),
        trial_length=trial_length,
        premium_active=premium_active,
        premium_activated_at=_parse_timestamp(
            "premium_activated_at", data.get("premium_activated_at")
        ),
        premium_expiry=_parse_timestamp("premium_expiry", data.get("premium_expiry")),
        plan=plan,
    )


def load_record(path: Path) -> SubscriptionRecord:
    """Read a subscription record from a YAML (or JSON) file."""
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidRecordError(f"{path}: not a valid YAML file") from e
    return record_from_dict(data)


def save_record(record: SubscriptionRecord, path: Path) -> None:
    """Write a subscription record to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(record_to_dict(record), f, default_flow_style=False, sort_keys=False)
