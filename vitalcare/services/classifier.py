"""
Vital-sign classification against the reference range table.

`classify` is pure and total: absent readings are skipped, a malformed blood
pressure string counts as absent, and it never raises for a valid measurement.
"""

from typing import cast

from vitalcare.domain.models import Bound, Deviation, VitalParameter, VitalSignMeasurement
from vitalcare.domain.numbers import format_number
from vitalcare.domain.reference_ranges import PARAMETER_ORDER, REFERENCE_RANGES, ReferenceRange

_DIRECTION = {Bound.MIN: "below normal", Bound.MAX: "above normal"}


def describe(reference: ReferenceRange, value: float, bound: Bound, bound_value: float) -> str:
    """e.g. "Temperature (38.2°C) above normal (37.5°C)"."""
    return (
        f"{reference.label} ({format_number(value)}{reference.unit}) {_DIRECTION[bound]} "
        f"({format_number(bound_value)}{reference.unit})"
    )


def check_value(parameter: VitalParameter, value: float | None) -> Deviation | None:
    """Deviation for a single reading, or None when absent or within range."""
    if value is None:
        return None
    reference = REFERENCE_RANGES[parameter]
    bound = reference.check(value)
    if bound is None:
        return None
    # check() only reports MAX when the range has a maximum
    bound_value = reference.minimum if bound is Bound.MIN else cast(float, reference.maximum)
    return Deviation(
        parameter=parameter,
        value=value,
        bound=bound,
        bound_value=bound_value,
        description=describe(reference, value, bound, bound_value),
    )


def classify(measurement: VitalSignMeasurement) -> list[Deviation]:
    """Out-of-range readings of `measurement`, in the fixed parameter order."""
    deviations: list[Deviation] = []
    for parameter in PARAMETER_ORDER:
        deviation = check_value(parameter, measurement.value_of(parameter))
        if deviation is not None:
            deviations.append(deviation)
    return deviations


def has_deviation(measurement: VitalSignMeasurement) -> bool:
    return any(
        REFERENCE_RANGES[p].check(v) is not None
        for p in PARAMETER_ORDER
        if (v := measurement.value_of(p)) is not None
    )
