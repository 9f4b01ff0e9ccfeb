"""
Clinical reference ranges for vital signs.

This is the single source of the thresholds used by classification, alerting,
the dashboard and report statistics. Bounds are inclusive; oxygen saturation
has no upper alert bound.
"""

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vitalcare.domain.models import Bound, VitalParameter


class ReferenceRange(BaseModel):
    """Inclusive [minimum, maximum] interval considered normal for a parameter."""

    model_config = ConfigDict(frozen=True)

    parameter: VitalParameter
    label: str = Field(description="Human-readable parameter name used in alert text")
    unit: str = Field(default="", description="Unit suffix appended to values in alert text")
    minimum: float
    maximum: float | None = Field(default=None, description="None means no upper alert bound")
    decimals: int = Field(default=0, ge=0, description="Precision of readings and their mean")

    @model_validator(mode="after")
    def minimum_below_maximum(self) -> "ReferenceRange":
        if self.maximum is not None and self.minimum > self.maximum:
            raise ValueError(f"{self.parameter.value}: minimum exceeds maximum")
        return self

    def check(self, value: float) -> Bound | None:
        """Return the violated bound, or None when `value` is within range."""
        if value < self.minimum:
            return Bound.MIN
        if self.maximum is not None and value > self.maximum:
            return Bound.MAX
        return None


# Fixed evaluation order: keeps alert messages deterministic
PARAMETER_ORDER: tuple[VitalParameter, ...] = (
    VitalParameter.SYSTOLIC_PRESSURE,
    VitalParameter.DIASTOLIC_PRESSURE,
    VitalParameter.TEMPERATURE,
    VitalParameter.HEART_RATE,
    VitalParameter.RESPIRATORY_RATE,
    VitalParameter.OXYGEN_SATURATION,
    VitalParameter.GLYCEMIA,
)

REFERENCE_RANGES: Mapping[VitalParameter, ReferenceRange] = MappingProxyType(
    {
        r.parameter: r
        for r in (
            ReferenceRange(
                parameter=VitalParameter.SYSTOLIC_PRESSURE,
                label="Systolic pressure",
                minimum=90,
                maximum=120,
            ),
            ReferenceRange(
                parameter=VitalParameter.DIASTOLIC_PRESSURE,
                label="Diastolic pressure",
                minimum=60,
                maximum=80,
            ),
            ReferenceRange(
                parameter=VitalParameter.TEMPERATURE,
                label="Temperature",
                unit="°C",
                minimum=36.0,
                maximum=37.5,
                decimals=1,
            ),
            ReferenceRange(
                parameter=VitalParameter.HEART_RATE,
                label="Heart rate",
                unit=" bpm",
                minimum=60,
                maximum=100,
            ),
            ReferenceRange(
                parameter=VitalParameter.RESPIRATORY_RATE,
                label="Respiratory rate",
                unit=" irpm",
                minimum=12,
                maximum=20,
            ),
            ReferenceRange(
                parameter=VitalParameter.OXYGEN_SATURATION,
                label="Oxygen saturation",
                unit="%",
                minimum=95,
            ),
            ReferenceRange(
                parameter=VitalParameter.GLYCEMIA,
                label="Glycemia",
                unit=" mg/dL",
                minimum=70,
                maximum=100,
            ),
        )
    }
)


def reference_range(parameter: VitalParameter) -> ReferenceRange:
    return REFERENCE_RANGES[parameter]
