"""Feature gate: protected content or an upgrade prompt."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, TypeVar, Union

from nutritrack.subscription.entitlement import evaluate_entitlement
from nutritrack.subscription.models import (
    PLAN_FEATURES,
    EntitlementVerdict,
    Feature,
    SubscriptionRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRICING_PATH = "/pricing"


@dataclass(frozen=True)
class UpsellPrompt:
    """Shown in place of a locked feature."""

    feature: str
    title: str
    description: str
    action_label: str = "Upgrade to Premium"
    action_url: str = PRICING_PATH


@dataclass(frozen=True)
class GateDecision:
    """Result of checking one feature against a verdict."""

    feature: str
    granted: bool
    # granted: "trial" | "premium" | "free_plan"
    # denied: "expired" | "plan_excludes_feature"
    reason: str


def _parse_feature(feature: Union[Feature, str]) -> Optional[Feature]:
    if isinstance(feature, Feature):
        return feature
    try:
        return Feature(feature)
    except ValueError:
        return None


def _feature_name(feature: Union[Feature, str]) -> str:
    return feature.value if isinstance(feature, Feature) else feature


class FeatureGate:
    """Checks features for one subscription record at one moment.

    The verdict is computed once on construction.
    """

    def __init__(self, record: SubscriptionRecord, now: datetime) -> None:
        self.verdict: EntitlementVerdict = evaluate_entitlement(record, now)

    def check(self, feature: Union[Feature, str]) -> GateDecision:
        name = _feature_name(feature)
        parsed = _parse_feature(feature)

        if parsed is None:
            logger.warning("Unknown feature %r requested, denying", name)
            return GateDecision(feature=name, granted=False, reason="plan_excludes_feature")

        if parsed in PLAN_FEATURES[self.verdict.plan]:
            reason = self.verdict.state.value if self.verdict.can_access else "free_plan"
            return GateDecision(feature=name, granted=True, reason=reason)

        reason = "plan_excludes_feature" if self.verdict.can_access else "expired"
        return GateDecision(feature=name, granted=False, reason=reason)

    def render(
        self,
        feature: Union[Feature, str],
        content: T,
        title: str,
        description: str,
    ) -> Union[T, UpsellPrompt]:
        """Return ``content`` if the feature is unlocked, else an UpsellPrompt."""
        if self.check(feature).granted:
            return content
        return UpsellPrompt(
            feature=_feature_name(feature),
            title=title,
            description=description,
        )
