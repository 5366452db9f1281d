"""Body metrics calculator for BMI, energy expenditure and macro targets.

Computes BMI with a seven-band weight classification, BMR with the
Mifflin-St Jeor equation, TDEE from activity multipliers, and gram targets
for protein, carbohydrate and fat from a percentage split of TDEE.

Every function is pure: inputs are validated and either a result is
returned or InvalidInputError is raised.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from nutritrack.errors import InvalidInputError

logger = logging.getLogger(__name__)


class Sex(Enum):
    """Biological sex for BMR calculation."""
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value: Union["Sex", str]) -> "Sex":
        """Parse a sex value, accepting localized labels.

        Raises:
            InvalidInputError: If the value is not a recognized label
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            sex = _SEX_ALIASES.get(value.strip().lower())
            if sex is not None:
                return sex
        raise InvalidInputError(f"sex must be 'male' or 'female', got {value!r}")


_SEX_ALIASES = {
    "male": Sex.MALE,
    "m": Sex.MALE,
    "maschio": Sex.MALE,
    "female": Sex.FEMALE,
    "f": Sex.FEMALE,
    "femmina": Sex.FEMALE,
}


class ActivityLevel(Enum):
    """Activity level multipliers for TDEE calculation."""
    SEDENTARY = "sedentary"          # Little or no exercise
    LIGHT = "light"                  # Light exercise 1-3 days/week
    MODERATE = "moderate"            # Moderate exercise 3-5 days/week
    ACTIVE = "active"                # Hard exercise 6-7 days/week
    VERY_ACTIVE = "very_active"      # Very hard exercise, physical job

    @property
    def multiplier(self) -> float:
        return ACTIVITY_MULTIPLIERS[self]


# Activity level multipliers (Harris-Benedict activity factors)
ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

DEFAULT_ACTIVITY_LEVEL = ActivityLevel.MODERATE

# Display labels seen upstream, English and Italian
_ACTIVITY_ALIASES = {
    "sedentary": ActivityLevel.SEDENTARY,
    "sedentario": ActivityLevel.SEDENTARY,
    "light": ActivityLevel.LIGHT,
    "lightly_active": ActivityLevel.LIGHT,
    "leggero": ActivityLevel.LIGHT,
    "moderate": ActivityLevel.MODERATE,
    "moderato": ActivityLevel.MODERATE,
    "active": ActivityLevel.ACTIVE,
    "attivo": ActivityLevel.ACTIVE,
    "very_active": ActivityLevel.VERY_ACTIVE,
    "very active": ActivityLevel.VERY_ACTIVE,
    "molto attivo": ActivityLevel.VERY_ACTIVE,
}


def resolve_activity_level(value: Union[ActivityLevel, str, None]) -> ActivityLevel:
    """Map an activity level label to its enum member.

    Unrecognized values fall back to MODERATE instead of failing, since
    they usually come from localized display strings. The fallback is
    logged at WARNING level.

    Args:
        value: ActivityLevel member or label such as "sedentary" or "molto attivo"

    Returns:
        Resolved ActivityLevel
    """
    if isinstance(value, ActivityLevel):
        return value
    if isinstance(value, str):
        level = _ACTIVITY_ALIASES.get(value.strip().lower())
        if level is not None:
            return level

    logger.warning(
        "Unrecognized activity level %r, using %s multiplier",
        value,
        DEFAULT_ACTIVITY_LEVEL.value,
    )
    return DEFAULT_ACTIVITY_LEVEL


class BMICategory(Enum):
    """Weight classification bands, ordered from lowest to highest BMI."""
    SEVERE_UNDERWEIGHT = "severe_underweight"
    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESITY_I = "obesity_i"
    OBESITY_II = "obesity_ii"
    OBESITY_III = "obesity_iii"

    @property
    def label(self) -> str:
        return _BMI_LABELS[self]

    @property
    def description(self) -> str:
        return _BMI_DESCRIPTIONS[self]


_BMI_LABELS = {
    BMICategory.SEVERE_UNDERWEIGHT: "Severe underweight",
    BMICategory.UNDERWEIGHT: "Underweight",
    BMICategory.NORMAL: "Normal weight",
    BMICategory.OVERWEIGHT: "Overweight",
    BMICategory.OBESITY_I: "Obesity class I",
    BMICategory.OBESITY_II: "Obesity class II",
    BMICategory.OBESITY_III: "Obesity class III",
}

_BMI_DESCRIPTIONS = {
    BMICategory.SEVERE_UNDERWEIGHT: "Weight far below the healthy range for this height",
    BMICategory.UNDERWEIGHT: "Weight below the healthy range for this height",
    BMICategory.NORMAL: "Healthy weight for this height",
    BMICategory.OVERWEIGHT: "Weight above the healthy range for this height",
    BMICategory.OBESITY_I: "Moderately increased health risk",
    BMICategory.OBESITY_II: "Severely increased health risk",
    BMICategory.OBESITY_III: "Very severely increased health risk",
}

# (exclusive upper bound, category); bounds belong to the next band up
BMI_BANDS = (
    (16.5, BMICategory.SEVERE_UNDERWEIGHT),
    (18.5, BMICategory.UNDERWEIGHT),
    (25.0, BMICategory.NORMAL),
    (30.0, BMICategory.OVERWEIGHT),
    (35.0, BMICategory.OBESITY_I),
    (40.0, BMICategory.OBESITY_II),
)

# Energy densities in kcal per gram
KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARBS = 4
KCAL_PER_GRAM_FAT = 9


@dataclass(frozen=True)
class MacroSplit:
    """Share of daily calories per macronutrient, in percent."""

    proteins: int
    carbs: int
    fats: int

    def __post_init__(self) -> None:
        if self.proteins + self.carbs + self.fats != 100:
            raise InvalidInputError(
                f"macro split must sum to 100, got "
                f"{self.proteins}/{self.carbs}/{self.fats}"
            )


DEFAULT_MACRO_SPLIT = MacroSplit(proteins=30, carbs=40, fats=30)


class MacroGoal(Enum):
    """Dietary goal used to pick a macro split."""
    MAINTENANCE = "maintenance"
    FAT_LOSS = "fat_loss"
    MUSCLE_GAIN = "muscle_gain"
    KETO = "keto"


MACRO_SPLITS = {
    MacroGoal.MAINTENANCE: DEFAULT_MACRO_SPLIT,
    MacroGoal.FAT_LOSS: MacroSplit(proteins=40, carbs=30, fats=30),
    MacroGoal.MUSCLE_GAIN: MacroSplit(proteins=35, carbs=45, fats=20),
    MacroGoal.KETO: MacroSplit(proteins=25, carbs=5, fats=70),
}

# Checked in order; a goal text matches the first entry with a keyword in it
_GOAL_KEYWORDS = (
    (MacroGoal.FAT_LOSS, ("fat_loss", "fat loss", "dimagrimento", "perdita")),
    (MacroGoal.MUSCLE_GAIN, ("muscle", "muscolo", "massa")),
    (MacroGoal.MAINTENANCE, ("maintenance", "mantenimento")),
    (MacroGoal.KETO, ("keto", "chetogenica")),
)


@dataclass(frozen=True)
class BMIResult:
    """Body Mass Index with its weight classification."""

    bmi: float
    category: BMICategory
    description: str


@dataclass(frozen=True)
class MetabolicResult:
    """Basal and total daily energy expenditure in kcal/day."""

    bmr: int
    tdee: int
    activity_level: ActivityLevel
    multiplier: float


@dataclass(frozen=True)
class MacronutrientPlan:
    """Daily gram targets per macronutrient."""

    proteins: int
    carbs: int
    fats: int

    @property
    def calories(self) -> int:
        """Calories implied by the rounded gram targets."""
        return (
            self.proteins * KCAL_PER_GRAM_PROTEIN
            + self.carbs * KCAL_PER_GRAM_CARBS
            + self.fats * KCAL_PER_GRAM_FAT
        )


@dataclass
class UserProfile:
    """Physical profile supplied per calculation request."""

    weight_kg: float
    height_cm: float
    age: int
    sex: Sex
    activity_level: ActivityLevel = DEFAULT_ACTIVITY_LEVEL

    def __post_init__(self) -> None:
        _require_positive("weight", self.weight_kg)
        _require_positive("height", self.height_cm)
        _require_age(self.age)
        self.sex = Sex.parse(self.sex)
        self.activity_level = resolve_activity_level(self.activity_level)


@dataclass(frozen=True)
class MetricsReport:
    """All body metrics computed for one profile."""

    profile: UserProfile
    bmi: BMIResult
    metabolism: MetabolicResult
    macro_split: MacroSplit
    macros: MacronutrientPlan

    def summary(self) -> str:
        """Human-readable summary of metrics."""
        lines = [
            f"BMI: {self.bmi.bmi} ({self.bmi.category.label})",
            f"BMR: {self.metabolism.bmr} kcal/day",
            f"TDEE: {self.metabolism.tdee} kcal/day "
            f"({self.metabolism.activity_level.value}, x{self.metabolism.multiplier})",
            f"Protein: {self.macros.proteins}g ({self.macro_split.proteins}%)",
            f"Carbs: {self.macros.carbs}g ({self.macro_split.carbs}%)",
            f"Fat: {self.macros.fats}g ({self.macro_split.fats}%)",
        ]
        return "\n".join(lines)


def _require_positive(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError(f"{name} must be positive and finite, got {value!r}")


def _require_age(age: object) -> None:
    if isinstance(age, bool) or not isinstance(age, numbers.Integral):
        raise InvalidInputError(f"age must be a whole number of years, got {age!r}")
    if age <= 0:
        raise InvalidInputError(f"age must be positive, got {age!r}")


def _round_half_up(name: str, value: float) -> int:
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} is out of range")
    return int(math.floor(value + 0.5))


def classify_bmi(bmi: float) -> tuple[BMICategory, str]:
    """Classify a BMI value into its weight band.

    Bands are half-open on the right, so a value on a boundary belongs to
    the upper band (18.5 is normal, 25.0 is overweight).

    Args:
        bmi: Body Mass Index

    Returns:
        Tuple of (category, description)
    """
    if isinstance(bmi, bool) or not isinstance(bmi, numbers.Real):
        raise InvalidInputError(f"bmi must be a number, got {bmi!r}")
    if not math.isfinite(bmi) or bmi < 0:
        raise InvalidInputError(f"bmi must be non-negative and finite, got {bmi!r}")

    for upper, category in BMI_BANDS:
        if bmi < upper:
            return category, category.description
    return BMICategory.OBESITY_III, BMICategory.OBESITY_III.description


def compute_bmi(weight_kg: float, height_cm: float) -> BMIResult:
    """Calculate Body Mass Index.

    Args:
        weight_kg: Weight in kilograms
        height_cm: Height in centimeters

    Returns:
        BMIResult with BMI rounded to one decimal
    """
    _require_positive("weight", weight_kg)
    _require_positive("height", height_cm)

    height_m = height_cm / 100
    try:
        bmi = round(weight_kg / (height_m ** 2), 1)
    except OverflowError as e:
        raise InvalidInputError("bmi is out of range") from e
    if not math.isfinite(bmi):
        raise InvalidInputError("bmi is out of range")
    category, description = classify_bmi(bmi)
    return BMIResult(bmi=bmi, category=category, description=description)


def compute_bmr(
    weight_kg: float,
    height_cm: float,
    age: int,
    sex: Union[Sex, str],
) -> int:
    """Calculate Basal Metabolic Rate using Mifflin-St Jeor equation.

    The result is rounded once, after the full linear combination.

    Args:
        weight_kg: Weight in kilograms
        height_cm: Height in centimeters
        age: Age in years
        sex: Biological sex

    Returns:
        BMR in kcal per day
    """
    _require_positive("weight", weight_kg)
    _require_positive("height", height_cm)
    _require_age(age)
    sex_enum = Sex.parse(sex)

    base = (10 * weight_kg) + (6.25 * height_cm) - (5 * age)
    if sex_enum == Sex.MALE:
        bmr = base + 5
    else:
        bmr = base - 161

    return _round_half_up("bmr", bmr)


def compute_tdee(bmr: float, activity_level: Union[ActivityLevel, str, None]) -> int:
    """Calculate Total Daily Energy Expenditure.

    Args:
        bmr: Basal Metabolic Rate in kcal/day
        activity_level: Activity level; unrecognized labels use MODERATE

    Returns:
        TDEE in kcal per day
    """
    _require_positive("bmr", bmr)
    level = resolve_activity_level(activity_level)
    return _round_half_up("tdee", bmr * ACTIVITY_MULTIPLIERS[level])


def compute_macronutrients(
    tdee: float,
    split: MacroSplit = DEFAULT_MACRO_SPLIT,
) -> MacronutrientPlan:
    """Split TDEE into daily gram targets.

    Each macronutrient is rounded on its own, so the grams may not add
    back up to exactly ``tdee`` calories.

    Args:
        tdee: Total Daily Energy Expenditure in kcal/day
        split: Percentage of calories per macronutrient

    Returns:
        MacronutrientPlan in grams
    """
    _require_positive("tdee", tdee)
    return MacronutrientPlan(
        proteins=_round_half_up("proteins", tdee * split.proteins / 100 / KCAL_PER_GRAM_PROTEIN),
        carbs=_round_half_up("carbs", tdee * split.carbs / 100 / KCAL_PER_GRAM_CARBS),
        fats=_round_half_up("fats", tdee * split.fats / 100 / KCAL_PER_GRAM_FAT),
    )


def suggest_macro_split(goal: Union[MacroGoal, str, None]) -> MacroSplit:
    """Suggest a macro split for a dietary goal.

    Args:
        goal: MacroGoal or free-text goal such as "fat_loss" or "mantenimento"

    Returns:
        MacroSplit for the goal, or the default 30/40/30 split
    """
    if isinstance(goal, MacroGoal):
        return MACRO_SPLITS[goal]
    if not goal:
        return DEFAULT_MACRO_SPLIT

    lowered = goal.lower()
    for macro_goal, keywords in _GOAL_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return MACRO_SPLITS[macro_goal]
    return DEFAULT_MACRO_SPLIT


def calculate_metrics(
    profile: UserProfile,
    goal: Optional[Union[MacroGoal, str]] = None,
) -> MetricsReport:
    """Calculate BMI, BMR, TDEE and macro targets for a profile.

    Args:
        profile: Validated user profile
        goal: Optional dietary goal selecting the macro split

    Returns:
        MetricsReport with all derived values
    """
    bmi = compute_bmi(profile.weight_kg, profile.height_cm)
    bmr = compute_bmr(profile.weight_kg, profile.height_cm, profile.age, profile.sex)
    tdee = compute_tdee(bmr, profile.activity_level)
    split = suggest_macro_split(goal)

    return MetricsReport(
        profile=profile,
        bmi=bmi,
        metabolism=MetabolicResult(
            bmr=bmr,
            tdee=tdee,
            activity_level=profile.activity_level,
            multiplier=ACTIVITY_MULTIPLIERS[profile.activity_level],
        ),
        macro_split=split,
        macros=compute_macronutrients(tdee, split),
    )


def metrics_to_dict(report: MetricsReport) -> dict:
    """Convert MetricsReport to dict for JSON output."""
    return {
        "profile": {
            "weight_kg": report.profile.weight_kg,
            "height_cm": report.profile.height_cm,
            "age": report.profile.age,
            "sex": report.profile.sex.value,
            "activity_level": report.profile.activity_level.value,
        },
        "bmi": {
            "value": report.bmi.bmi,
            "category": report.bmi.category.value,
            "label": report.bmi.category.label,
            "description": report.bmi.description,
        },
        "metabolism": {
            "bmr": report.metabolism.bmr,
            "tdee": report.metabolism.tdee,
            "multiplier": report.metabolism.multiplier,
        },
        "macros": {
            "split": {
                "proteins": report.macro_split.proteins,
                "carbs": report.macro_split.carbs,
                "fats": report.macro_split.fats,
            },
            "grams": {
                "proteins": report.macros.proteins,
                "carbs": report.macros.carbs,
                "fats": report.macros.fats,
            },
        },
    }
