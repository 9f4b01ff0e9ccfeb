"""Body-mass index and its weight classification."""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from vitalcare.domain.numbers import coerce_number, round_half_away


class BMIClassification(str, Enum):
    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESITY_GRADE_I = "obesity grade I"
    OBESITY_GRADE_II = "obesity grade II"
    OBESITY_GRADE_III = "obesity grade III"


# Upper bounds (exclusive) of each band, applied to the rounded BMI
_BANDS: tuple[tuple[float, BMIClassification], ...] = (
    (18.5, BMIClassification.UNDERWEIGHT),
    (25.0, BMIClassification.NORMAL),
    (30.0, BMIClassification.OVERWEIGHT),
    (35.0, BMIClassification.OBESITY_GRADE_I),
    (40.0, BMIClassification.OBESITY_GRADE_II),
)


class BMIResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    bmi: float
    classification: BMIClassification


def classify_bmi(bmi: float) -> BMIClassification:
    for upper, classification in _BANDS:
        if bmi < upper:
            return classification
    return BMIClassification.OBESITY_GRADE_III


def compute_bmi(weight_kg: Any, height_cm: Any) -> BMIResult | None:
    """
    Compute BMI from weight in kilograms and height in centimetres.

    Returns None (never a default value) when either input is missing or not
    numeric, when height or weight is not positive, or when the inputs are so
    extreme that the index cannot be represented. The index is rounded to one
    decimal half away from zero and the classification uses that rounded value.
    """
    weight = coerce_number(weight_kg)
    height = coerce_number(height_cm)
    if weight is None or height is None or height <= 0 or weight <= 0:
        return None

    height_m = height / 100
    squared = height_m * height_m
    if squared == 0:
        return None
    raw = weight / squared
    if not math.isfinite(raw):
        return None
    bmi = round_half_away(raw, 1)
    return BMIResult(bmi=bmi, classification=classify_bmi(bmi))
