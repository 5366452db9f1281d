"""Entitlement evaluation for trial and premium subscriptions.

A subscription is evaluated against an explicit ``now`` rather than the
wall clock, so the same (record, now) pair always yields the same verdict:

- Trial: ``trial_start <= now < trial_start + trial_length``
- Premium: ``premium_active`` and (no expiry, or ``now < premium_expiry``)
- Expired: neither of the above

Premium takes precedence over the trial when both hold. The evaluator
never writes to the record.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from nutritrack.errors import InvalidRecordError
from nutritrack.subscription.models import (
    DEFAULT_EXPIRING_NOTICE_DAYS,
    DEFAULT_GRACE_DAYS,
    EntitlementState,
    EntitlementVerdict,
    SubscriptionPlan,
    SubscriptionRecord,
    TrialNotice,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def _days_until(end: datetime, now: datetime) -> int:
    """Whole days from now until end, rounded up and clamped at zero."""
    return max(0, math.ceil((end - now) / ONE_DAY))


def validate_record(record: SubscriptionRecord, now: datetime) -> None:
    """Check a record for data-integrity problems.

    Args:
        record: Subscription record to check
        now: Evaluation timestamp

    Raises:
        InvalidRecordError: If trial_start is missing or after now, the trial
            length is not positive, timestamps mix naive and aware values,
            or premium_expiry is not after premium_activated_at
    """
    if record.trial_start is None:
        raise InvalidRecordError("subscription record has no trial start")

    timestamps = [
        value
        for value in (record.trial_start, record.premium_activated_at, record.premium_expiry)
        if value is not None
    ]
    if any(_is_aware(value) != _is_aware(now) for value in timestamps):
        raise InvalidRecordError(
            "subscription timestamps and evaluation time must all be "
            "timezone-aware or all naive"
        )

    if record.trial_start > now:
        raise InvalidRecordError(
            f"trial start {record.trial_start.isoformat()} is after "
            f"evaluation time {now.isoformat()}"
        )
    if record.trial_length <= timedelta(0):
        raise InvalidRecordError(f"trial length must be positive, got {record.trial_length}")

    if (
        record.premium_expiry is not None
        and record.premium_activated_at is not None
        and record.premium_expiry <= record.premium_activated_at
    ):
        raise InvalidRecordError(
            f"premium expiry {record.premium_expiry.isoformat()} is not after "
            f"activation {record.premium_activated_at.isoformat()}"
        )


def evaluate_entitlement(record: SubscriptionRecord, now: datetime) -> EntitlementVerdict:
    """Decide whether a user may use gated features at ``now``.

    Args:
        record: Subscription record handed over by the caller
        now: Evaluation timestamp

    Returns:
        EntitlementVerdict for this moment

    Raises:
        InvalidRecordError: If the record fails validate_record
    """
    validate_record(record, now)

    trial_end = record.trial_end
    trial_active = record.trial_start <= now < trial_end
    trial_days_left = _days_until(trial_end, now) if trial_active else 0

    is_premium = record.premium_active and (
        record.premium_expiry is None or now < record.premium_expiry
    )

    if is_premium:
        state = EntitlementState.PREMIUM
        plan = record.plan if record.plan.is_paid else SubscriptionPlan.PREMIUM_MONTHLY
    elif trial_active:
        state = EntitlementState.TRIAL
        plan = SubscriptionPlan.TRIAL
    else:
        state = EntitlementState.EXPIRED
        plan = SubscriptionPlan.FREE

    logger.debug(
        "Entitlement at %s: state=%s trial_days_left=%d",
        now.isoformat(),
        state.value,
        trial_days_left,
    )

    return EntitlementVerdict(
        can_access=is_premium or trial_active,
        trial_active=trial_active,
        trial_days_left=trial_days_left,
        is_premium=is_premium,
        state=state,
        plan=plan,
        trial_ends_at=trial_end,
    )


def trial_notice(
    verdict: EntitlementVerdict,
    expiring_threshold_days: int = DEFAULT_EXPIRING_NOTICE_DAYS,
) -> Optional[TrialNotice]:
    """Build the trial reminder to show for a verdict, if any.

    Premium users never get a notice. Trial users get one once the days
    left drop to ``expiring_threshold_days`` or fewer.
    """
    if verdict.state == EntitlementState.PREMIUM:
        return None

    if verdict.state == EntitlementState.EXPIRED:
        return TrialNotice(
            kind="trial_expired",
            title="Trial Period Expired",
            message=(
                "Your trial period has expired. Upgrade to premium to continue "
                "using all features."
            ),
        )

    days = verdict.trial_days_left
    if days > expiring_threshold_days:
        return None
    return TrialNotice(
        kind="trial_expiring",
        title="Trial Period Expiring Soon",
        message=(
            f"Your trial will expire in {days} day{'s' if days != 1 else ''}. "
            "Upgrade to premium to continue using all features."
        ),
    )


def grace_days_left(
    record: SubscriptionRecord,
    now: datetime,
    grace_period: timedelta = timedelta(days=DEFAULT_GRACE_DAYS),
) -> int:
    """Days of data retention left after an unpaid trial ends.

    The grace window starts when the trial ends and never grants access.
    Returns 0 during the trial, while premium is active, and once the
    window has passed.
    """
    verdict = evaluate_entitlement(record, now)
    if verdict.state != EntitlementState.EXPIRED:
        return 0

    grace_end = record.trial_end + grace_period
    if now >= grace_end:
        return 0
    return _days_until(grace_end, now)
