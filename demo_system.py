"""
End-to-end demo of the evaluation and reporting pipeline.

This script walks through:
1. Configuration loading
2. Measurement submission, classification and BMI
3. Clinical alert composition and delivery
4. Report creation and verification
5. Dashboard summary

Run with: uv run python demo_system.py
"""

import asyncio
from datetime import date, time, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.memory import InMemoryCareRepository, InMemoryChannel
from vitalcare.config import get_config, print_config_summary
from vitalcare.domain.models import (
    Appointment,
    CareCategory,
    Patient,
    ReportSubtype,
    Role,
    User,
    VitalSignsReportPayload,
)
from vitalcare.domain.reference_ranges import PARAMETER_ORDER, REFERENCE_RANGES
from vitalcare.exceptions import ValidationError
from vitalcare.log import configure_logging
from vitalcare.services import (
    DashboardService,
    MeasurementService,
    NotificationDispatcher,
    NotificationService,
    ReportComposer,
)

console = Console()

NURSE = User(id="nurse-1", name="Ana", role=Role.NURSE)


def seed(repository: InMemoryCareRepository) -> Patient:
    patient = repository.add_patient(
        Patient(
            id="patient-1",
            name="Maria Silva",
            age=78,
            phone="+55 11 99999-0000",
            care_category=CareCategory.HOME,
        )
    )
    repository.add_patient(
        Patient(id="patient-2", name="João Souza", age=64, care_category=CareCategory.HOSPITAL)
    )
    today = date.today()
    for offset, kind in enumerate(["visit", "consultation", "visit", "exam"]):
        repository.add_appointment(
            Appointment(
                patient_id=patient.id,
                scheduled_date=today - timedelta(days=offset),
                scheduled_time=time(9 + offset, 0),
                appointment_type=kind,
            )
        )
    return patient


def show_reference_ranges() -> None:
    table = Table(title="Reference Ranges")
    table.add_column("Parameter")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    for parameter in PARAMETER_ORDER:
        r = REFERENCE_RANGES[parameter]
        maximum = "-" if r.maximum is None else f"{r.maximum:g}"
        table.add_row(f"{r.label}{r.unit}", f"{r.minimum:g}", maximum)
    console.print(table)


async def submit_measurements(
    measurements: MeasurementService, dispatcher: NotificationDispatcher, patient: Patient
) -> None:
    console.print(Panel("Submitting measurements", style="blue"))

    submissions = [
        {"patient_id": patient.id, "blood_pressure": "118/76", "temperature": "36.6",
         "heart_rate": "72", "saturation": "97", "weight": "70", "height": "170"},
        {"patient_id": patient.id, "systolic": "150", "diastolic": "95", "temperature": "38,2"},
        {"patient_id": patient.id, "saturation": "91", "glycemia": "65"},
        {"patient_id": patient.id},
    ]

    for data in submissions:
        outcome = measurements.submit(data, created_by=NURSE.id)
        dispatcher.submit(outcome.notification)
        bmi = f"{outcome.bmi.bmi} ({outcome.bmi.classification.value})" if outcome.bmi else "-"
        console.print(f"Measurement {outcome.measurement.id[:8]} BMI: {bmi}")
        if outcome.deviations:
            for deviation in outcome.deviations:
                console.print(f"  {deviation.description}", style="red")
        else:
            console.print("  All readings within range", style="green")

    try:
        measurements.submit({"patient_id": patient.id, "blood_pressure": "12O/80", "heart_rate": "x"})
    except ValidationError as e:
        console.print(f"Rejected submission: {e.message} {e.details}", style="yellow")

    results = await dispatcher.flush()
    delivered = sum(1 for r in results if r.is_ok())
    console.print(f"Delivered {delivered}/{len(results)} notification pushes", style="green")


def show_report(reports: ReportComposer, patient: Patient) -> None:
    console.print(Panel("Generating reports", style="blue"))

    report = reports.create(
        {
            "title": "Weekly vital signs",
            "patient_id": patient.id,
            "subtype": ReportSubtype.VITAL_SIGNS,
            "start_date": date.today() - timedelta(days=7),
            "end_date": date.today(),
        },
        created_by=NURSE.id,
    )
    payload = report.payload
    assert isinstance(payload, VitalSignsReportPayload)

    table = Table(title=f"{report.title} - {payload.patient.name} ({payload.statistics.total} records)")
    table.add_column("Parameter")
    table.add_column("Count", justify="right")
    table.add_column("Mean", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    for parameter in PARAMETER_ORDER:
        stats = payload.statistics.for_parameter(parameter)
        label = REFERENCE_RANGES[parameter].label
        if stats is None:
            table.add_row(label, "0", "-", "-", "-")
        else:
            table.add_row(
                label, str(stats.count), str(stats.mean), str(stats.minimum), str(stats.maximum)
            )
    console.print(table)
    console.print(f"Snapshot reproducible: {reports.verify(report)}")

    appointments = reports.create(
        {"title": "Appointments", "patient_id": patient.id, "subtype": ReportSubtype.APPOINTMENTS},
        created_by=NURSE.id,
    )
    if appointments.payload is not None:
        console.print(f"Appointments by type: {appointments.payload.statistics.model_dump()}")


def show_notifications(notifications: NotificationService) -> None:
    console.print(Panel("Notifications", style="blue"))
    for notification in notifications.visible_to(NURSE):
        console.print(f"[bold]{notification.title}[/bold] ({notification.kind.value})")
        console.print(notification.message)
    console.print(f"Unread for {NURSE.name}: {notifications.unread_count(NURSE)}")


def show_dashboard(dashboard: DashboardService) -> None:
    summary = dashboard.summarize()
    table = Table(title="Dashboard")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Patients", str(summary.total_patients))
    for category, count in summary.patients_by_category.items():
        table.add_row(f"  {category.value}", str(count))
    table.add_row("Measurements today", str(summary.measurements_today))
    table.add_row("Appointments today", str(summary.appointments_today))
    table.add_row("Active alerts", str(summary.active_alerts))
    console.print(table)


async def main() -> None:
    config = get_config()
    configure_logging(config.logging)
    print_config_summary()
    show_reference_ranges()

    repository = InMemoryCareRepository()
    patient = seed(repository)
    channel = InMemoryChannel("demo")
    dispatcher = NotificationDispatcher([channel])

    await submit_measurements(MeasurementService(repository, config=config), dispatcher, patient)
    show_report(ReportComposer(repository, config=config), patient)
    show_notifications(NotificationService(repository))
    show_dashboard(DashboardService(repository, config=config))

    topics = sorted({topic for topic, _ in channel.published})
    console.print(f"Channel topics used: {', '.join(topics)}", style="dim")


if __name__ == "__main__":
    asyncio.run(main())
