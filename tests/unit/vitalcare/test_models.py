"""
Tests for domain models, error types and the Result type.
"""

from datetime import UTC, date, datetime

import pydantic
import pytest
from hypothesis import given
from hypothesis import strategies as st

from vitalcare.domain.models import (
    AppointmentsReportPayload,
    AppointmentStatistics,
    Patient,
    Report,
    ReportRequest,
    ReportSubtype,
    ReportWindow,
    Role,
    User,
    VitalParameter,
    VitalSignMeasurement,
)
from vitalcare.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from vitalcare.services.result import Result


class TestResult:
    """Test the Result type for explicit error handling."""

    def test_result_ok_creates_successful_result(self) -> None:
        result: Result[str, Exception] = Result.ok("success")
        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == "success"

    def test_result_error_creates_failed_result(self) -> None:
        error = ValueError("test error")
        result: Result[str, ValueError] = Result.err(error)
        assert not result.is_ok()
        assert result.is_err()
        assert result.unwrap_or("default") == "default"
        assert result.unwrap_err() is error

    def test_unwrap_raises_on_error_result(self) -> None:
        result: Result[str, ValueError] = Result.err(ValueError("test error"))

        with pytest.raises(ValueError, match="test error"):
            result.unwrap()

    def test_unwrap_err_raises_on_ok_result(self) -> None:
        with pytest.raises(ValueError, match="unwrap_err"):
            Result.ok(1).unwrap_err()


class TestErrors:
    def test_error_codes(self) -> None:
        assert ValidationError("bad", details={"f": "x"}).error_code == "VALIDATION_ERROR"
        assert NotFoundError("gone", resource="patient").details == {"resource": "patient"}
        assert PermissionDeniedError().error_code == "FORBIDDEN"

    def test_errors_keep_builtin_semantics(self) -> None:
        assert isinstance(ValidationError("bad"), ValueError)
        assert isinstance(NotFoundError("gone"), LookupError)


class TestVitalSignMeasurement:
    def test_naive_timestamp_is_utc(self) -> None:
        m = VitalSignMeasurement(patient_id="p", timestamp=datetime(2024, 3, 1, 8, 0))
        assert m.timestamp.tzinfo is UTC

    def test_value_of_reads_each_parameter(self) -> None:
        m = VitalSignMeasurement(
            patient_id="p",
            blood_pressure="120/80",
            temperature=36.6,
            heart_rate=72,
            respiratory_rate=16,
            saturation=98,
            glycemia=90,
        )
        assert [m.value_of(p) for p in VitalParameter] == [120, 80, 36.6, 72, 16, 98, 90]

    @given(
        systolic=st.integers(min_value=1, max_value=999),
        diastolic=st.integers(min_value=1, max_value=999),
    )
    def test_pressure_halves_decode(self, systolic: int, diastolic: int) -> None:
        m = VitalSignMeasurement(patient_id="p", blood_pressure=f"{systolic}/{diastolic}")
        assert (m.systolic, m.diastolic) == (systolic, diastolic)

    def test_measurement_is_immutable(self) -> None:
        m = VitalSignMeasurement(patient_id="p")
        with pytest.raises(ValueError, match="frozen"):
            m.heart_rate = 80  # type: ignore[misc]


class TestUser:
    @pytest.mark.parametrize(
        "role,privileged",
        [(Role.ADMIN, True), (Role.NURSE, True), (Role.MANAGER, True), (Role.CAREGIVER, False)],
    )
    def test_privileged_roles(self, role: Role, privileged: bool) -> None:
        assert User(id="u", role=role).is_privileged is privileged


class TestReportModels:
    def test_window_bounds_are_inclusive(self) -> None:
        start, end = datetime(2024, 3, 1, tzinfo=UTC), datetime(2024, 3, 10, tzinfo=UTC)
        window = ReportWindow(start=start, end=end)
        assert window.contains(start)
        assert window.contains(end)
        assert window.contains_day(date(2024, 3, 10))
        assert not window.contains_day(date(2024, 3, 11))

    def test_window_order_is_validated(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ReportWindow(start=datetime(2024, 3, 2, tzinfo=UTC), end=datetime(2024, 3, 1, tzinfo=UTC))

    def test_request_period_order_is_validated(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="start_date"):
            ReportRequest(
                title="x",
                patient_id="p",
                subtype=ReportSubtype.APPOINTMENTS,
                start_date=date(2024, 3, 2),
                end_date=date(2024, 3, 1),
            )

    def test_payload_must_match_report(self) -> None:
        payload = AppointmentsReportPayload(
            patient=Patient(id="p", name="Maria"),
            window=ReportWindow(),
            records=[],
            statistics=AppointmentStatistics(total=0),
        )
        with pytest.raises(pydantic.ValidationError, match="subtype"):
            Report(title="x", patient_id="p", subtype=ReportSubtype.VITAL_SIGNS, payload=payload)
        with pytest.raises(pydantic.ValidationError, match="patient"):
            Report(title="x", patient_id="other", subtype=ReportSubtype.APPOINTMENTS, payload=payload)

    def test_payload_round_trips_through_json(self) -> None:
        payload = AppointmentsReportPayload(
            patient=Patient(id="p", name="Maria"),
            window=ReportWindow(),
            records=[],
            statistics=AppointmentStatistics(total=0),
        )
        report = Report(title="x", patient_id="p", subtype=ReportSubtype.APPOINTMENTS, payload=payload)

        restored = Report.model_validate_json(report.model_dump_json())

        assert isinstance(restored.payload, AppointmentsReportPayload)
        assert restored == report
