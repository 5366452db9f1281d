"""Body metrics: BMI, BMR, TDEE and macronutrient targets."""

from __future__ import annotations

from nutritrack.profiles.body_calc import (
    ActivityLevel,
    BMICategory,
    BMIResult,
    MacroGoal,
    MacronutrientPlan,
    MacroSplit,
    MetabolicResult,
    MetricsReport,
    Sex,
    UserProfile,
    calculate_metrics,
    classify_bmi,
    compute_bmi,
    compute_bmr,
    compute_macronutrients,
    compute_tdee,
    metrics_to_dict,
    resolve_activity_level,
    suggest_macro_split,
)

__all__ = [
    "ActivityLevel",
    "BMICategory",
    "BMIResult",
    "MacroGoal",
    "MacroSplit",
    "MacronutrientPlan",
    "MetabolicResult",
    "MetricsReport",
    "Sex",
    "UserProfile",
    "calculate_metrics",
    "classify_bmi",
    "compute_bmi",
    "compute_bmr",
    "compute_macronutrients",
    "compute_tdee",
    "metrics_to_dict",
    "resolve_activity_level",
    "suggest_macro_split",
]
