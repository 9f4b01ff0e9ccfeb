"""
Measurement submission: validation, BMI derivation, persistence and alerting.

Write-path validation is strict: every malformed field is reported at once and
nothing is written. Classification afterwards works on the stored, typed
measurement and never fails.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from vitalcare.config import AppConfig, get_config
from vitalcare.domain.blood_pressure import (
    MAX_PRESSURE,
    format_blood_pressure,
    parse_blood_pressure,
)
from vitalcare.domain.bmi import BMIResult, compute_bmi
from vitalcare.domain.models import Deviation, Notification, VitalSignMeasurement
from vitalcare.domain.numbers import coerce_number
from vitalcare.exceptions import ValidationError
from vitalcare.services.classifier import classify
from vitalcare.services.notifications import NotificationComposer, clinical_alert_key
from vitalcare.services.repository import CareRepository

logger = structlog.get_logger(__name__)

_INTEGER_FIELDS = ("heart_rate", "respiratory_rate", "saturation", "glycemia")
_DECIMAL_FIELDS = ("temperature", "weight", "height")


class Evaluation(BaseModel):
    """What a measurement means clinically, before or after it is stored."""

    model_config = ConfigDict(frozen=True)

    deviations: list[Deviation]
    bmi: BMIResult | None = None


class SubmissionOutcome(BaseModel):
    """Result of a submission; `notification` is None when every reading was in range."""

    model_config = ConfigDict(frozen=True)

    measurement: VitalSignMeasurement
    deviations: list[Deviation]
    bmi: BMIResult | None = None
    notification: Notification | None = None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class MeasurementService:
    """Validates, stores and evaluates vital-sign submissions."""

    def __init__(
        self,
        repository: CareRepository,
        composer: NotificationComposer | None = None,
        config: AppConfig | None = None,
    ) -> None:
        self.repository = repository
        self.config = config or get_config()
        self.composer = composer or NotificationComposer(self.config)
        self.logger = logger.bind(component="measurement_service")

    def parse_submission(self, data: Mapping[str, Any]) -> VitalSignMeasurement:
        """
        Turn raw form input into a measurement ready to be stored.

        Blank fields are absent. Blood pressure may come either as a combined
        "120/80" string or as separate systolic and diastolic values, never as
        one half only.

        Raises:
            ValidationError: patient id missing, or one or more malformed fields
                (all listed in `details`).
        """
        patient_id = data.get("patient_id")
        if _is_blank(patient_id):
            raise ValidationError("A patient must be selected", details={"patient_id": "required"})

        errors: dict[str, str] = {}

        def number(field: str, integer: bool = False) -> float | None:
            raw = data.get(field)
            if _is_blank(raw):
                return None
            value = coerce_number(raw)
            if value is None:
                errors[field] = "not a number"
                return None
            if value <= 0:
                errors[field] = "must be positive"
                return None
            if integer:
                if not value.is_integer():
                    errors[field] = "must be a whole number"
                    return None
                return int(value)
            return value

        values: dict[str, Any] = {field: number(field, integer=True) for field in _INTEGER_FIELDS}
        values.update({field: number(field) for field in _DECIMAL_FIELDS})
        values["blood_pressure"] = self._blood_pressure(data, errors)

        timestamp = data.get("timestamp")
        if not _is_blank(timestamp):
            try:
                values["timestamp"] = (
                    timestamp if isinstance(timestamp, datetime)
                    else datetime.fromisoformat(str(timestamp))
                )
            except ValueError:
                errors["timestamp"] = "not an ISO 8601 date-time"

        if errors:
            self.logger.info("measurement_rejected", patient_id=patient_id, fields=sorted(errors))
            raise ValidationError("Invalid measurement", details=errors)

        notes = data.get("notes")
        return VitalSignMeasurement(
            patient_id=str(patient_id).strip(),
            notes=None if _is_blank(notes) else str(notes),
            **{k: v for k, v in values.items() if v is not None},
        )

    def _blood_pressure(self, data: Mapping[str, Any], errors: dict[str, str]) -> str | None:
        combined = data.get("blood_pressure")
        systolic_raw, diastolic_raw = data.get("systolic"), data.get("diastolic")
        has_parts = not _is_blank(systolic_raw) or not _is_blank(diastolic_raw)

        if not _is_blank(combined):
            if has_parts:
                errors["blood_pressure"] = "give either blood_pressure or systolic and diastolic"
                return None
            parsed = parse_blood_pressure(str(combined))
            if parsed is None:
                errors["blood_pressure"] = "expected systolic/diastolic, e.g. 120/80"
                return None
            systolic, diastolic = parsed
        elif has_parts:
            if _is_blank(systolic_raw) or _is_blank(diastolic_raw):
                errors["blood_pressure"] = "systolic and diastolic must be given together"
                return None
            systolic_value, diastolic_value = (
                coerce_number(systolic_raw),
                coerce_number(diastolic_raw),
            )
            for field, value in (("systolic", systolic_value), ("diastolic", diastolic_value)):
                if value is None or not value.is_integer() or not 1 <= value <= MAX_PRESSURE:
                    errors[field] = f"must be a whole number between 1 and {MAX_PRESSURE}"
            if "systolic" in errors or "diastolic" in errors:
                return None
            systolic, diastolic = int(systolic_value), int(diastolic_value)  # type: ignore[arg-type]
        else:
            return None

        if systolic <= diastolic:
            errors["blood_pressure"] = "systolic must be greater than diastolic"
            return None
        return format_blood_pressure(systolic, diastolic)

    def evaluate(self, measurement: VitalSignMeasurement) -> Evaluation:
        """Classify and derive BMI without writing anything."""
        return Evaluation(
            deviations=classify(measurement),
            bmi=compute_bmi(measurement.weight, measurement.height),
        )

    def submit(self, data: Mapping[str, Any], created_by: str | None = None) -> SubmissionOutcome:
        """
        Validate and store a measurement, then alert on any out-of-range reading.

        The patient is resolved before anything is written, so an unknown patient
        leaves no trace. The returned notification (if any) is already stored;
        handing it to the delivery channel is the caller's job.

        The measurement and its alert are two writes. If storing the alert fails
        the error propagates with the measurement already stored. Recover by
        calling `alert_for` on that stored measurement, not `submit`, which
        would store a second copy.
        """
        draft = self.parse_submission(data)
        self.repository.fetch_patient(draft.patient_id)

        bmi = compute_bmi(draft.weight, draft.height)
        measurement = draft.model_copy(
            update={"bmi": bmi.bmi if bmi else None, "created_by": created_by}
        )
        measurement_id = self.repository.insert_measurement(measurement)
        measurement = measurement.model_copy(update={"id": measurement_id})
        self.logger.info(
            "measurement_recorded", measurement_id=measurement_id, patient_id=measurement.patient_id
        )

        deviations = classify(measurement)
        notification = self.alert_for(measurement, deviations) if deviations else None
        return SubmissionOutcome(
            measurement=measurement, deviations=deviations, bmi=bmi, notification=notification
        )

    def alert_for(
        self, measurement: VitalSignMeasurement, deviations: list[Deviation] | None = None
    ) -> Notification | None:
        """
        Store the clinical alert for a stored measurement and return it.

        Safe to call again for the same measurement (e.g. a retried request):
        with duplicate suppression on, the existing alert is returned instead of
        a second one being written.
        """
        if measurement.id is None:
            raise ValidationError(
                "Only stored measurements can raise alerts", details={"id": "missing"}
            )
        deviations = classify(measurement) if deviations is None else deviations
        if not deviations:
            return None

        if self.config.evaluation.suppress_duplicate_alerts:
            existing = self.repository.find_notification_by_dedup_key(
                clinical_alert_key(measurement.id)
            )
            if existing is not None:
                self.logger.info(
                    "duplicate_alert_suppressed",
                    measurement_id=measurement.id,
                    notification_id=existing.id,
                )
                return existing

        patient = self.repository.fetch_patient(measurement.patient_id)
        notification = self.composer.clinical_alert(patient, measurement.id, deviations)
        notification_id = self.repository.insert_notification(notification)
        self.logger.warning(
            "clinical_alert_raised",
            notification_id=notification_id,
            measurement_id=measurement.id,
            patient_id=patient.id,
            deviation_count=len(deviations),
        )
        return notification.model_copy(update={"id": notification_id})
