"""Record transitions driven by signup, payment and cancellation events.

These return new SubscriptionRecord values; callers persist them and must
serialize writes per user before evaluating entitlement again.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from nutritrack.config import get_settings
from nutritrack.errors import InvalidRecordError
from nutritrack.subscription.models import SubscriptionPlan, SubscriptionRecord

logger = logging.getLogger(__name__)


def _add_months(moment: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping to the last day of short months."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def premium_expiry_for(plan: SubscriptionPlan, activated_at: datetime) -> Optional[datetime]:
    """Expiry of a paid plan bought at ``activated_at``.

    Monthly plans run one calendar month, yearly plans one calendar year,
    and unlimited plans never expire.
    """
    if plan == SubscriptionPlan.PREMIUM_MONTHLY:
        return _add_months(activated_at, 1)
    if plan == SubscriptionPlan.PREMIUM_YEARLY:
        return _add_months(activated_at, 12)
    if plan == SubscriptionPlan.UNLIMITED:
        return None
    raise InvalidRecordError(f"plan {plan.value!r} cannot be purchased")


def start_trial(now: datetime, trial_length: Optional[timedelta] = None) -> SubscriptionRecord:
    """Create the record for a new signup, with the trial starting now."""
    if trial_length is None:
        trial_length = timedelta(days=get_settings().subscription.trial_days)
    return SubscriptionRecord(trial_start=now, trial_length=trial_length)


def activate_premium(
    record: SubscriptionRecord,
    plan: SubscriptionPlan,
    now: datetime,
) -> SubscriptionRecord:
    """Apply a completed payment for ``plan`` at ``now``.

    The trial start and length are carried over unchanged.

    Raises:
        InvalidRecordError: If ``plan`` is not a paid plan
    """
    expiry = premium_expiry_for(plan, now)
    logger.info(
        "Activating %s until %s",
        plan.value,
        expiry.isoformat() if expiry else "further notice",
    )
    return replace(
        record,
        premium_active=True,
        premium_activated_at=now,
        premium_expiry=expiry,
        plan=plan,
    )


def cancel_premium(record: SubscriptionRecord) -> SubscriptionRecord:
    """Apply a cancellation: premium access ends immediately."""
    return replace(
        record,
        premium_active=False,
        plan=SubscriptionPlan.TRIAL,
    )
