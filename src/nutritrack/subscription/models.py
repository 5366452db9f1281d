"""Data models for subscription records and entitlement verdicts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

DEFAULT_TRIAL_DAYS = 5
DEFAULT_GRACE_DAYS = 7
DEFAULT_EXPIRING_NOTICE_DAYS = 2


class SubscriptionPlan(Enum):
    """Billing plan attached to a subscription record."""

    FREE = "free"
    TRIAL = "trial"
    PREMIUM_MONTHLY = "premium_monthly"
    PREMIUM_YEARLY = "premium_yearly"
    UNLIMITED = "unlimited"

    @property
    def is_paid(self) -> bool:
        return self in PAID_PLANS


PAID_PLANS = (
    SubscriptionPlan.PREMIUM_MONTHLY,
    SubscriptionPlan.PREMIUM_YEARLY,
    SubscriptionPlan.UNLIMITED,
)


class EntitlementState(Enum):
    """Computed state of a subscription at a point in time."""

    TRIAL = "trial"
    PREMIUM = "premium"
    EXPIRED = "expired"


class Feature(Enum):
    """Features that can be gated by plan."""

    BASIC_MEAL_TRACKING = "basic-meal-tracking"
    BMI_CALCULATOR = "bmi-calculator"
    METABOLISM_CALCULATOR = "metabolism-calculator"
    UNLIMITED_MEAL_HISTORY = "unlimited-meal-history"
    ADVANCED_MEAL_SUGGESTIONS = "advanced-meal-suggestions"
    AI_NUTRITION_CHATBOT = "ai-nutrition-chatbot"
    GOAL_TRACKING = "goal-tracking"
    MEAL_PLAN_EXPORT = "meal-plan-export"
    PREMIUM_SUPPORT = "premium-support"
    AI_MEAL_RECOMMENDATIONS = "ai-meal-recommendations"
    AI_GOAL_RECOMMENDATIONS = "ai-goal-recommendations"
    API_ACCESS = "api-access"
    WHITE_LABEL = "white-label"


_PREMIUM_FEATURES = frozenset(Feature) - {Feature.WHITE_LABEL}

PLAN_FEATURES: dict[SubscriptionPlan, frozenset[Feature]] = {
    SubscriptionPlan.FREE: frozenset({Feature.BASIC_MEAL_TRACKING}),
    # An active trial unlocks the monthly feature set
    SubscriptionPlan.TRIAL: _PREMIUM_FEATURES,
    SubscriptionPlan.PREMIUM_MONTHLY: _PREMIUM_FEATURES,
    SubscriptionPlan.PREMIUM_YEARLY: _PREMIUM_FEATURES,
    SubscriptionPlan.UNLIMITED: frozenset(Feature),
}


@dataclass(frozen=True)
class SubscriptionRecord:
    """Persistent subscription state for one user.

    The record is owned by the subscription store; this package only reads
    it. Transitions in ``billing`` return new records rather than mutating.
    ``premium_expiry`` of None means premium is active indefinitely.
    """

    trial_start: Optional[datetime]
    trial_length: timedelta = timedelta(days=DEFAULT_TRIAL_DAYS)
    premium_active: bool = False
    premium_activated_at: Optional[datetime] = None
    premium_expiry: Optional[datetime] = None
    plan: SubscriptionPlan = SubscriptionPlan.TRIAL

    @property
    def trial_end(self) -> Optional[datetime]:
        if self.trial_start is None:
            return None
        return self.trial_start + self.trial_length


@dataclass(frozen=True)
class EntitlementVerdict:
    """Access decision for a record at a given moment. Never stored."""

    can_access: bool
    trial_active: bool
    trial_days_left: int
    is_premium: bool
    state: EntitlementState
    plan: SubscriptionPlan
    trial_ends_at: Optional[datetime] = None


@dataclass(frozen=True)
class TrialNotice:
    """User-facing message about the trial window."""

    kind: str  # "trial_expiring" | "trial_expired"
    title: str
    message: str
    action_url: str = "/pricing"
