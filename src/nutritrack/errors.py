"""Exceptions raised by the metrics calculator and entitlement evaluator."""

from __future__ import annotations


class NutritrackError(Exception):
    """Base exception for nutritrack domain errors."""


class InvalidInputError(NutritrackError, ValueError):
    """Raised when profile data is malformed.

    Covers non-positive or non-finite weight, height, age or BMR values,
    and unknown sex categories.
    """


class InvalidRecordError(NutritrackError, ValueError):
    """Raised when a subscription record is malformed or clock-inconsistent."""
