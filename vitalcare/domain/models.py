"""
Domain models for patient vital-sign evaluation and reporting.

These models represent the core clinical concepts and are framework-agnostic.
They use Pydantic for validation; persistence and delivery live behind the
protocols in `vitalcare.services.repository`.
"""

import math
from datetime import UTC, date, datetime, time
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from vitalcare.domain.blood_pressure import parse_blood_pressure


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CareCategory(str, Enum):
    """Care setting a patient is attended in."""

    HOME = "home"
    HOSPITAL = "hospital"
    FREELANCE = "freelance"


class Role(str, Enum):
    """Roles yielded by the identity provider."""

    ADMIN = "admin"
    NURSE = "nurse"
    MANAGER = "manager"
    CAREGIVER = "caregiver"


# Roles that see every broadcast notification
PRIVILEGED_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.NURSE, Role.MANAGER})


class VitalParameter(str, Enum):
    """Vital-sign parameters evaluated against reference ranges."""

    SYSTOLIC_PRESSURE = "systolic_pressure"
    DIASTOLIC_PRESSURE = "diastolic_pressure"
    TEMPERATURE = "temperature"
    HEART_RATE = "heart_rate"
    RESPIRATORY_RATE = "respiratory_rate"
    OXYGEN_SATURATION = "oxygen_saturation"
    GLYCEMIA = "glycemia"


class Bound(str, Enum):
    """Side of a reference range that a reading violated."""

    MIN = "min"
    MAX = "max"


class NotificationKind(str, Enum):
    PENDING_REGISTRATION = "pending_registration"
    REGISTRATION_APPROVED = "registration_approved"
    REGISTRATION_REJECTED = "registration_rejected"
    CLINICAL_ALERT = "clinical_alert"


class ReportSubtype(str, Enum):
    VITAL_SIGNS = "vital_signs"
    APPOINTMENTS = "appointments"


class User(BaseModel):
    """Authenticated caller as seen by the core: only identity and role matter."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    role: Role

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES


class Patient(BaseModel):
    """Patient record owned by the care-provider organization."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    age: int | None = Field(default=None, ge=0, le=150)
    phone: str | None = None
    address: str | None = None
    insurance: str | None = None
    care_category: CareCategory = CareCategory.HOME
    notes: str | None = None


class VitalSignMeasurement(BaseModel):
    """
    One set of vital signs taken for a patient.

    Every clinical field is optional: partial vitals are valid and absent fields
    are skipped by classification and statistics. Blood pressure is kept in its
    persisted "systolic/diastolic" form; `systolic`/`diastolic` decode it.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    patient_id: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=_utcnow)
    blood_pressure: str | None = None
    temperature: float | None = None
    heart_rate: int | None = None
    respiratory_rate: int | None = None
    saturation: int | None = None
    glycemia: int | None = None
    weight: float | None = Field(default=None, description="Weight in kilograms")
    height: float | None = Field(default=None, description="Height in centimetres")
    bmi: float | None = None
    notes: str | None = None
    created_by: str | None = None

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps from legacy rows are taken as UTC."""
        return v.replace(tzinfo=UTC) if v.tzinfo is None else v

    @property
    def systolic(self) -> int | None:
        parsed = parse_blood_pressure(self.blood_pressure)
        return parsed[0] if parsed else None

    @property
    def diastolic(self) -> int | None:
        parsed = parse_blood_pressure(self.blood_pressure)
        return parsed[1] if parsed else None

    def value_of(self, parameter: VitalParameter) -> float | None:
        """Reading for `parameter`, or None when it was not taken or is not a finite number."""
        values: dict[VitalParameter, float | None] = {
            VitalParameter.SYSTOLIC_PRESSURE: self.systolic,
            VitalParameter.DIASTOLIC_PRESSURE: self.diastolic,
            VitalParameter.TEMPERATURE: self.temperature,
            VitalParameter.HEART_RATE: self.heart_rate,
            VitalParameter.RESPIRATORY_RATE: self.respiratory_rate,
            VitalParameter.OXYGEN_SATURATION: self.saturation,
            VitalParameter.GLYCEMIA: self.glycemia,
        }
        value = values[parameter]
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value


class Appointment(BaseModel):
    """Schedule entry for a patient (visit, consultation, procedure, exam...)."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    patient_id: str = Field(min_length=1)
    scheduled_date: date
    scheduled_time: time | None = None
    appointment_type: str = Field(min_length=1)
    status: str = "scheduled"
    notes: str | None = None


class Deviation(BaseModel):
    """A single reading found outside its reference range. Never persisted on its own."""

    model_config = ConfigDict(frozen=True)

    parameter: VitalParameter
    value: float
    bound: Bound
    bound_value: float
    description: str


class RegistrationRequest(BaseModel):
    """Access request submitted by a prospective user."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    requester_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None


# Notification payloads: one strongly typed variant per notification kind


class ClinicalAlertPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[NotificationKind.CLINICAL_ALERT] = NotificationKind.CLINICAL_ALERT
    measurement_id: str
    patient_id: str
    patient_name: str
    deviations: list[str] = Field(min_length=1)


class PendingRegistrationPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[NotificationKind.PENDING_REGISTRATION] = NotificationKind.PENDING_REGISTRATION
    requester_id: str
    requester_name: str
    requester_email: str


class RegistrationDecisionPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[
        NotificationKind.REGISTRATION_APPROVED, NotificationKind.REGISTRATION_REJECTED
    ]
    request_id: str
    decided_by: str


NotificationPayload = Annotated[
    ClinicalAlertPayload | PendingRegistrationPayload | RegistrationDecisionPayload,
    Field(discriminator="kind"),
]


class Notification(BaseModel):
    """
    Notification record handed to persistence and then to the delivery channel.

    A notification without `target_user_id` is a broadcast; `audience` names
    the roles it is pushed to. Immutable: marking as read yields a new value.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    kind: NotificationKind
    title: str = Field(min_length=1)
    message: str
    created_at: datetime = Field(default_factory=_utcnow)
    read: bool = False
    target_user_id: str | None = None
    audience: frozenset[Role] = Field(default_factory=frozenset)
    dedup_key: str | None = Field(
        default=None, description="Idempotency key used to suppress duplicate alerts"
    )
    payload: NotificationPayload | None = None

    @model_validator(mode="after")
    def payload_matches_kind(self) -> "Notification":
        if self.payload is not None and self.payload.kind != self.kind:
            raise ValueError(
                f"payload of kind {self.payload.kind.value} cannot be attached "
                f"to a {self.kind.value} notification"
            )
        return self

    @property
    def is_broadcast(self) -> bool:
        return self.target_user_id is None

    def mark_read(self) -> "Notification":
        """Return the read version of this notification; already-read values are returned as is."""
        return self if self.read else self.model_copy(update={"read": True})


# Statistics and reports


class ParameterStatistics(BaseModel):
    """Descriptive statistics over the present readings of one parameter."""

    model_config = ConfigDict(frozen=True)

    count: int = Field(gt=0)
    mean: int | float
    minimum: int | float
    maximum: int | float


class VitalSignStatistics(BaseModel):
    """Per-parameter statistics; a parameter with no readings is None, never zero."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0, description="Matching records, whatever fields they carry")
    systolic_pressure: ParameterStatistics | None = None
    diastolic_pressure: ParameterStatistics | None = None
    temperature: ParameterStatistics | None = None
    heart_rate: ParameterStatistics | None = None
    respiratory_rate: ParameterStatistics | None = None
    oxygen_saturation: ParameterStatistics | None = None
    glycemia: ParameterStatistics | None = None

    def for_parameter(self, parameter: VitalParameter) -> ParameterStatistics | None:
        return getattr(self, parameter.value)


class AppointmentStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0)
    counts_by_type: dict[str, int] = Field(default_factory=dict)


class ReportWindow(BaseModel):
    """Inclusive time window; a missing side is unbounded."""

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="after")
    def start_before_end(self) -> "ReportWindow":
        if self.start and self.end and self.start > self.end:
            raise ValueError("window start must not be after window end")
        return self

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def contains_day(self, day: date) -> bool:
        if self.start is not None and day < self.start.date():
            return False
        if self.end is not None and day > self.end.date():
            return False
        return True


class VitalSignsReportPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtype: Literal[ReportSubtype.VITAL_SIGNS] = ReportSubtype.VITAL_SIGNS
    patient: Patient
    window: ReportWindow
    records: list[VitalSignMeasurement]
    statistics: VitalSignStatistics
    computed_at: datetime = Field(default_factory=_utcnow)


class AppointmentsReportPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtype: Literal[ReportSubtype.APPOINTMENTS] = ReportSubtype.APPOINTMENTS
    patient: Patient
    window: ReportWindow
    records: list[Appointment]
    statistics: AppointmentStatistics
    computed_at: datetime = Field(default_factory=_utcnow)


ReportPayload = Annotated[
    VitalSignsReportPayload | AppointmentsReportPayload,
    Field(discriminator="subtype"),
]


class ReportRequest(BaseModel):
    """Parameters a report is computed from."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    patient_id: str = Field(min_length=1)
    subtype: ReportSubtype
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def period_is_ordered(self) -> "ReportRequest":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class Report(BaseModel):
    """
    Stored report with its frozen payload.

    The payload is a point-in-time snapshot computed when the report was
    created or last edited; it is never refreshed lazily.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    title: str = Field(min_length=1)
    patient_id: str = Field(min_length=1)
    subtype: ReportSubtype
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_by: str | None = None
    updated_at: datetime | None = None
    payload: ReportPayload | None = None

    @model_validator(mode="after")
    def payload_matches_report(self) -> "Report":
        if self.payload is None:
            return self
        if self.payload.subtype != self.subtype:
            raise ValueError("payload subtype does not match report subtype")
        if self.payload.patient.id != self.patient_id:
            raise ValueError("payload patient does not match report patient")
        return self

    def to_request(self) -> ReportRequest:
        return ReportRequest(
            title=self.title,
            patient_id=self.patient_id,
            subtype=self.subtype,
            start_date=self.start_date,
            end_date=self.end_date,
            notes=self.notes,
        )
