"""
Report aggregation and composition.

Reports are point-in-time snapshots: the payload (matching records plus
statistics plus the patient as it was) is computed in full whenever a report is
created or edited and stored with a single write. Two reports built from the
same parameters at different times may differ if the underlying data changed.

Key rules:
- Day-level bounds are inclusive; a day-level end covers that whole day in the
  configured reporting timezone
- Absent readings are skipped, never zero-filled
- An empty window gives total 0 and no statistics (None), never 0 or NaN
- Repository failures propagate unchanged; nothing is retried here
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime, time, tzinfo
from typing import Any

import pydantic
import structlog
from pydantic import BaseModel, ConfigDict

from vitalcare.config import AppConfig, get_config
from vitalcare.domain.models import (
    Appointment,
    AppointmentsReportPayload,
    AppointmentStatistics,
    ParameterStatistics,
    Patient,
    Report,
    ReportPayload,
    ReportRequest,
    ReportSubtype,
    ReportWindow,
    VitalSignMeasurement,
    VitalSignsReportPayload,
    VitalSignStatistics,
)
from vitalcare.domain.numbers import mean_half_away
from vitalcare.domain.reference_ranges import PARAMETER_ORDER, REFERENCE_RANGES
from vitalcare.exceptions import ValidationError
from vitalcare.services.repository import CareRepository

logger = structlog.get_logger(__name__)

DateBound = date | datetime | None

_EDITABLE_FIELDS = frozenset(ReportRequest.model_fields)


class VitalSignsAggregate(BaseModel):
    model_config = ConfigDict(frozen=True)

    window: ReportWindow
    records: list[VitalSignMeasurement]
    statistics: VitalSignStatistics


class AppointmentsAggregate(BaseModel):
    model_config = ConfigDict(frozen=True)

    window: ReportWindow
    records: list[Appointment]
    statistics: AppointmentStatistics


Aggregate = VitalSignsAggregate | AppointmentsAggregate


def build_window(start: DateBound, end: DateBound, tz: tzinfo = UTC) -> ReportWindow:
    """Inclusive window; day-level dates become start-of-day / end-of-day in `tz`."""

    def instant(value: DateBound, at: time) -> datetime | None:
        if value is None:
            return None
        # datetime is a subclass of date, so test it first
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=tz)
        return datetime.combine(value, at, tzinfo=tz)

    try:
        return ReportWindow(start=instant(start, time.min), end=instant(end, time.max))
    except pydantic.ValidationError as e:
        raise ValidationError(
            "Report period start must not be after its end",
            details={"start": str(start), "end": str(end)},
        ) from e


def _day(value: DateBound) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def summarize(values: list[float], decimals: int) -> ParameterStatistics | None:
    """Mean/min/max of present readings; the mean is rounded to the reading precision."""
    if not values:
        return None
    mean = mean_half_away(values, decimals)
    return ParameterStatistics(
        count=len(values),
        mean=int(mean) if decimals == 0 else mean,
        minimum=min(values),
        maximum=max(values),
    )


def compute_vital_statistics(records: Iterable[VitalSignMeasurement]) -> VitalSignStatistics:
    records = list(records)
    per_parameter: dict[str, ParameterStatistics | None] = {}
    for parameter in PARAMETER_ORDER:
        values = [v for r in records if (v := r.value_of(parameter)) is not None]
        per_parameter[parameter.value] = summarize(values, REFERENCE_RANGES[parameter].decimals)
    return VitalSignStatistics(total=len(records), **per_parameter)


def compute_appointment_statistics(records: Iterable[Appointment]) -> AppointmentStatistics:
    records = list(records)
    counts = Counter(r.appointment_type for r in records)
    return AppointmentStatistics(total=len(records), counts_by_type=dict(sorted(counts.items())))


class ReportAggregator:
    """Fetches a patient's records for a window and computes their statistics."""

    def __init__(self, repository: CareRepository, config: AppConfig | None = None) -> None:
        self.repository = repository
        self.config = config or get_config()
        self.logger = logger.bind(component="report_aggregator")

    def aggregate(
        self,
        patient_id: str,
        subtype: ReportSubtype,
        start: DateBound = None,
        end: DateBound = None,
    ) -> Aggregate:
        """
        Aggregate every record of `subtype` for the patient within [start, end].

        Records are ordered newest first (id breaks ties) so repeated calls over
        unchanged data produce identical output.
        """
        if not patient_id:
            raise ValidationError("A patient is required", details={"patient_id": "required"})

        window = build_window(start, end, self.config.reporting.tzinfo)

        if subtype is ReportSubtype.VITAL_SIGNS:
            measurements = sorted(
                self.repository.fetch_measurements(patient_id, window.start, window.end),
                key=lambda m: (m.timestamp, m.id or ""),
                reverse=True,
            )
            result: Aggregate = VitalSignsAggregate(
                window=window,
                records=measurements,
                statistics=compute_vital_statistics(measurements),
            )
        else:
            appointments = sorted(
                self.repository.fetch_appointments(patient_id, _day(start), _day(end)),
                key=lambda a: (a.scheduled_date, a.scheduled_time or time.min, a.id or ""),
                reverse=True,
            )
            result = AppointmentsAggregate(
                window=window,
                records=appointments,
                statistics=compute_appointment_statistics(appointments),
            )

        self.logger.info(
            "report_aggregated",
            patient_id=patient_id,
            subtype=subtype.value,
            total=result.statistics.total,
        )
        return result


class ReportComposer:
    """Creates and edits reports, recomputing their frozen payload each time."""

    def __init__(
        self,
        repository: CareRepository,
        aggregator: ReportAggregator | None = None,
        config: AppConfig | None = None,
    ) -> None:
        self.repository = repository
        self.config = config or get_config()
        self.aggregator = aggregator or ReportAggregator(repository, self.config)
        self.logger = logger.bind(component="report_composer")

    @staticmethod
    def compose_payload(patient: Patient, aggregate: Aggregate) -> ReportPayload:
        """Wrap an aggregate with the patient snapshot taken at computation time."""
        if isinstance(aggregate, VitalSignsAggregate):
            return VitalSignsReportPayload(
                patient=patient,
                window=aggregate.window,
                records=aggregate.records,
                statistics=aggregate.statistics,
            )
        return AppointmentsReportPayload(
            patient=patient,
            window=aggregate.window,
            records=aggregate.records,
            statistics=aggregate.statistics,
        )

    def _compute(self, request: ReportRequest) -> ReportPayload:
        patient = self.repository.fetch_patient(request.patient_id)
        aggregate = self.aggregator.aggregate(
            request.patient_id, request.subtype, request.start_date, request.end_date
        )
        return self.compose_payload(patient, aggregate)

    def create(
        self, request: ReportRequest | Mapping[str, Any], created_by: str | None = None
    ) -> Report:
        """Compute the payload and store the report with one write."""
        request = _validated_request(request)
        report = Report(
            **request.model_dump(),
            created_by=created_by,
            payload=self._compute(request),
        )
        report_id = self.repository.upsert_report(report)
        self.logger.info(
            "report_created",
            report_id=report_id,
            patient_id=request.patient_id,
            subtype=request.subtype.value,
            total=report.payload.statistics.total if report.payload else 0,
        )
        return report.model_copy(update={"id": report_id})

    def edit(
        self, report_id: str, changes: Mapping[str, Any], edited_by: str | None = None
    ) -> Report:
        """
        Apply `changes` to a stored report and recompute its payload wholesale.

        The previous payload stays in place until the single replacing write
        succeeds.
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown report fields", details={field: "not editable" for field in sorted(unknown)}
            )

        current = self.repository.fetch_report(report_id)
        request = _validated_request({**current.to_request().model_dump(), **changes})
        report = current.model_copy(
            update={
                **request.model_dump(),
                "payload": self._compute(request),
                "updated_by": edited_by,
                "updated_at": datetime.now(UTC),
            }
        )
        self.repository.upsert_report(report)
        self.logger.info("report_updated", report_id=report_id, fields=sorted(changes))
        return report

    def verify(self, report: Report) -> bool:
        """True when re-aggregating the report's parameters reproduces its stored statistics."""
        if report.payload is None:
            return False
        aggregate = self.aggregator.aggregate(
            report.patient_id, report.subtype, report.start_date, report.end_date
        )
        return aggregate.statistics == report.payload.statistics


def _validated_request(data: ReportRequest | Mapping[str, Any]) -> ReportRequest:
    if isinstance(data, ReportRequest):
        return data
    try:
        return ReportRequest.model_validate(dict(data))
    except pydantic.ValidationError as e:
        details = {".".join(str(p) for p in err["loc"]) or "report": err["msg"] for err in e.errors()}
        raise ValidationError("Invalid report parameters", details=details) from e
