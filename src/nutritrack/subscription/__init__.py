"""Subscription entitlement: trial window, premium plans and feature gating.

Key components:
- evaluate_entitlement: pure (record, now) -> EntitlementVerdict
- billing transitions returning new records for signup, payment, cancellation
- FeatureGate: protected content or an upsell prompt per feature
"""

from __future__ import annotations

from nutritrack.subscription.billing import (
    activate_premium,
    cancel_premium,
    premium_expiry_for,
    start_trial,
)
from nutritrack.subscription.entitlement import (
    evaluate_entitlement,
    grace_days_left,
    trial_notice,
    validate_record,
)
from nutritrack.subscription.gate import FeatureGate, GateDecision, UpsellPrompt
from nutritrack.subscription.models import (
    PLAN_FEATURES,
    EntitlementState,
    EntitlementVerdict,
    Feature,
    SubscriptionPlan,
    SubscriptionRecord,
    TrialNotice,
)

__all__ = [
    "EntitlementState",
    "EntitlementVerdict",
    "Feature",
    "FeatureGate",
    "GateDecision",
    "PLAN_FEATURES",
    "SubscriptionPlan",
    "SubscriptionRecord",
    "TrialNotice",
    "UpsellPrompt",
    "activate_premium",
    "cancel_premium",
    "evaluate_entitlement",
    "grace_days_left",
    "premium_expiry_for",
    "start_trial",
    "trial_notice",
    "validate_record",
]
