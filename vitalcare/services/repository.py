"""
Capabilities the core depends on, expressed as Protocols.

The persistence store and the real-time delivery channel are external
collaborators; services receive implementations explicitly so a fake or
in-memory store can be substituted in tests. Implementations carry their own
timeout and retry policy; the core propagates their failures unchanged.
"""

from datetime import date, datetime
from typing import Protocol

from vitalcare.domain.models import Appointment, Notification, Patient, Report, VitalSignMeasurement


class CareRepository(Protocol):
    """Read/write access to patients, measurements, appointments, notifications and reports."""

    def fetch_patient(self, patient_id: str) -> Patient:
        """Return the patient or raise `NotFoundError`."""
        ...

    def list_patients(self) -> list[Patient]: ...

    def fetch_measurements(
        self, patient_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[VitalSignMeasurement]:
        """Measurements for a patient with `start <= timestamp <= end`; None bounds are open."""
        ...

    def insert_measurement(self, measurement: VitalSignMeasurement) -> str:
        """Persist a measurement and return its id."""
        ...

    def fetch_appointments(
        self, patient_id: str, start: date | None = None, end: date | None = None
    ) -> list[Appointment]:
        """Appointments for a patient with `start <= scheduled_date <= end`."""
        ...

    def list_appointments_on(self, day: date) -> list[Appointment]: ...

    def insert_notification(self, notification: Notification) -> str: ...

    def fetch_notification(self, notification_id: str) -> Notification:
        """Return the notification or raise `NotFoundError`."""
        ...

    def update_notification(self, notification: Notification) -> None: ...

    def list_notifications(self) -> list[Notification]: ...

    def find_notification_by_dedup_key(self, dedup_key: str) -> Notification | None: ...

    def fetch_report(self, report_id: str) -> Report:
        """Return the report or raise `NotFoundError`."""
        ...

    def upsert_report(self, report: Report) -> str:
        """Insert or replace a report, payload included, in one write."""
        ...


class DeliveryChannel(Protocol):
    """Push mechanism that notifies connected clients; delivery is best-effort."""

    channel_name: str

    async def publish(self, topic: str, notification: Notification) -> None: ...
