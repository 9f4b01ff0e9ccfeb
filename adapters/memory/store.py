"""
In-memory implementation of the care repository.

Backs tests and the demo script. Mirrors the behaviour the core expects from
the relational store: generated ids, inclusive window filters, NotFoundError
for missing rows, and whole-row replacement on upsert.
"""

import uuid
from datetime import date, datetime

from vitalcare.domain.models import Appointment, Notification, Patient, Report, VitalSignMeasurement
from vitalcare.exceptions import NotFoundError


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryCareRepository:
    """Dict-backed store implementing the `CareRepository` protocol."""

    def __init__(self) -> None:
        self.patients: dict[str, Patient] = {}
        self.measurements: dict[str, VitalSignMeasurement] = {}
        self.appointments: dict[str, Appointment] = {}
        self.notifications: dict[str, Notification] = {}
        self.reports: dict[str, Report] = {}

    # Seeding helpers (the form layer owns these writes in production)

    def add_patient(self, patient: Patient) -> Patient:
        self.patients[patient.id] = patient
        return patient

    def add_appointment(self, appointment: Appointment) -> Appointment:
        stored = appointment if appointment.id else appointment.model_copy(update={"id": _new_id()})
        self.appointments[stored.id] = stored  # type: ignore[index]
        return stored

    # Patients

    def fetch_patient(self, patient_id: str) -> Patient:
        try:
            return self.patients[patient_id]
        except KeyError:
            raise NotFoundError(f"Patient {patient_id} not found", resource="patient") from None

    def list_patients(self) -> list[Patient]:
        return list(self.patients.values())

    # Measurements

    def fetch_measurements(
        self, patient_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[VitalSignMeasurement]:
        return [
            m
            for m in self.measurements.values()
            if m.patient_id == patient_id
            and (start is None or m.timestamp >= start)
            and (end is None or m.timestamp <= end)
        ]

    def insert_measurement(self, measurement: VitalSignMeasurement) -> str:
        measurement_id = measurement.id or _new_id()
        self.measurements[measurement_id] = measurement.model_copy(update={"id": measurement_id})
        return measurement_id

    # Appointments

    def fetch_appointments(
        self, patient_id: str, start: date | None = None, end: date | None = None
    ) -> list[Appointment]:
        return [
            a
            for a in self.appointments.values()
            if a.patient_id == patient_id
            and (start is None or a.scheduled_date >= start)
            and (end is None or a.scheduled_date <= end)
        ]

    def list_appointments_on(self, day: date) -> list[Appointment]:
        return [a for a in self.appointments.values() if a.scheduled_date == day]

    # Notifications

    def insert_notification(self, notification: Notification) -> str:
        notification_id = notification.id or _new_id()
        self.notifications[notification_id] = notification.model_copy(
            update={"id": notification_id}
        )
        return notification_id

    def fetch_notification(self, notification_id: str) -> Notification:
        try:
            return self.notifications[notification_id]
        except KeyError:
            raise NotFoundError(
                f"Notification {notification_id} not found", resource="notification"
            ) from None

    def update_notification(self, notification: Notification) -> None:
        if notification.id is None or notification.id not in self.notifications:
            raise NotFoundError(
                f"Notification {notification.id} not found", resource="notification"
            )
        self.notifications[notification.id] = notification

    def list_notifications(self) -> list[Notification]:
        return list(self.notifications.values())

    def find_notification_by_dedup_key(self, dedup_key: str) -> Notification | None:
        return next(
            (n for n in self.notifications.values() if n.dedup_key == dedup_key),
            None,
        )

    # Reports

    def fetch_report(self, report_id: str) -> Report:
        try:
            return self.reports[report_id]
        except KeyError:
            raise NotFoundError(f"Report {report_id} not found", resource="report") from None

    def upsert_report(self, report: Report) -> str:
        report_id = report.id or _new_id()
        self.reports[report_id] = report.model_copy(update={"id": report_id})
        return report_id
