"""Body metrics and subscription entitlement for a personal nutrition tracker."""

__version__ = "0.1.0"
