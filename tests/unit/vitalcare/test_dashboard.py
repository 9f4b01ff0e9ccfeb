from collections.abc import Callable
from datetime import UTC, date, datetime

from adapters.memory import InMemoryCareRepository
from vitalcare.config import AppConfig
from vitalcare.domain.models import Appointment, CareCategory, Patient, VitalSignMeasurement
from vitalcare.services.dashboard import TREND_DAYS, DashboardService

TODAY = date(2024, 3, 10)


def test_empty_dashboard(repository: InMemoryCareRepository, config: AppConfig) -> None:
    summary = DashboardService(repository, config).summarize(today=TODAY)

    assert summary.total_patients == 0
    assert summary.patients_by_category == {c: 0 for c in CareCategory}
    assert summary.active_alerts == 0
    assert len(summary.measurements_per_day) == TREND_DAYS
    assert all(d.count == 0 for d in summary.measurements_per_day)


def test_counts(
    repository: InMemoryCareRepository,
    config: AppConfig,
    patient: Patient,
    record_measurement: Callable[..., VitalSignMeasurement],
) -> None:
    repository.add_patient(Patient(id="patient-2", name="João", care_category=CareCategory.HOSPITAL))
    record_measurement(patient.id, datetime(2024, 3, 10, 8, tzinfo=UTC), heart_rate=72)
    record_measurement(patient.id, datetime(2024, 3, 10, 14, tzinfo=UTC), temperature=38.5)
    record_measurement("patient-2", datetime(2024, 3, 8, 9, tzinfo=UTC), saturation=90)
    record_measurement(patient.id, datetime(2024, 2, 1, 9, tzinfo=UTC), blood_pressure="118/76")
    repository.add_appointment(
        Appointment(patient_id=patient.id, scheduled_date=TODAY, appointment_type="visit")
    )
    repository.add_appointment(
        Appointment(patient_id=patient.id, scheduled_date=date(2024, 3, 11), appointment_type="exam")
    )

    summary = DashboardService(repository, config).summarize(today=TODAY)

    assert summary.total_patients == 2
    assert summary.patients_by_category[CareCategory.HOME] == 1
    assert summary.patients_by_category[CareCategory.HOSPITAL] == 1
    assert summary.patients_by_category[CareCategory.FREELANCE] == 0
    assert summary.measurements_today == 2
    assert summary.appointments_today == 1
    assert summary.active_alerts == 2
    assert summary.measurements_per_day[0].day == date(2024, 3, 4)
    assert summary.measurements_per_day[-1].day == TODAY
    assert [d.count for d in summary.measurements_per_day] == [0, 0, 0, 0, 1, 0, 2]
