"""
Notification composition, audience routing and read-state handling.

The composer is a one-shot translation from a domain event (out-of-range
measurement, registration request, registration decision) to exactly one
Notification value. It never persists anything: storing the value is the job
of `NotificationService` or of the caller, and pushing it to connected clients
is the job of the dispatcher.
"""

from collections.abc import Sequence

import structlog

from vitalcare.config import AppConfig, get_config
from vitalcare.domain.models import (
    ClinicalAlertPayload,
    Deviation,
    Notification,
    NotificationKind,
    Patient,
    PendingRegistrationPayload,
    RegistrationDecisionPayload,
    RegistrationRequest,
    Role,
    User,
)
from vitalcare.exceptions import PermissionDeniedError, ValidationError
from vitalcare.services.repository import CareRepository

logger = structlog.get_logger(__name__)


def clinical_alert_key(measurement_id: str) -> str:
    """Idempotency key of the alert raised for a measurement."""
    return f"clinical-alert:{measurement_id}"


def is_visible_to(notification: Notification, user: User) -> bool:
    """Targeted notifications are visible to their target only; broadcasts to privileged roles."""
    if notification.target_user_id is not None:
        return notification.target_user_id == user.id
    return user.is_privileged


class NotificationComposer:
    """Builds Notification values for domain events; encapsulates audience routing."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or get_config()
        self.logger = logger.bind(component="notification_composer")

    def clinical_alert(
        self, patient: Patient, measurement_id: str, deviations: Sequence[Deviation]
    ) -> Notification:
        """One broadcast alert listing every deviation, prefixed by the patient's name."""
        if not deviations:
            raise ValidationError(
                "A clinical alert needs at least one deviation",
                details={"deviations": "empty"},
            )
        if not measurement_id:
            raise ValidationError(
                "A clinical alert needs the originating measurement id",
                details={"measurement_id": "missing"},
            )

        descriptions = [d.description for d in deviations]
        notification = Notification(
            kind=NotificationKind.CLINICAL_ALERT,
            title=self.config.evaluation.alert_title,
            message="\n".join([f"Patient: {patient.name}", *descriptions]),
            audience=self.config.notifications.clinical_alert_audience,
            dedup_key=clinical_alert_key(measurement_id),
            payload=ClinicalAlertPayload(
                measurement_id=measurement_id,
                patient_id=patient.id,
                patient_name=patient.name,
                deviations=descriptions,
            ),
        )
        self.logger.info(
            "clinical_alert_composed",
            patient_id=patient.id,
            measurement_id=measurement_id,
            deviation_count=len(descriptions),
            parameters=[d.parameter.value for d in deviations],
        )
        return notification

    def pending_registration(self, request: RegistrationRequest) -> Notification:
        """Broadcast to administrators that someone asked for access."""
        return Notification(
            kind=NotificationKind.PENDING_REGISTRATION,
            title="New registration pending",
            message=f"{request.name} requested access to the system.",
            audience=self.config.notifications.registration_audience,
            payload=PendingRegistrationPayload(
                requester_id=request.requester_id,
                requester_name=request.name,
                requester_email=request.email,
            ),
        )

    def registration_decision(
        self, request: RegistrationRequest, approved: bool, decided_by: str
    ) -> Notification:
        """Tell the requesting user whether their access was approved."""
        if approved:
            kind = NotificationKind.REGISTRATION_APPROVED
            title = "Registration approved"
            message = "Your registration was approved. You can now access the system."
        else:
            kind = NotificationKind.REGISTRATION_REJECTED
            title = "Registration rejected"
            message = (
                "Your registration was rejected. "
                "Contact an administrator for more information."
            )
        return Notification(
            kind=kind,
            title=title,
            message=message,
            target_user_id=request.requester_id,
            payload=RegistrationDecisionPayload(
                kind=kind, request_id=request.id, decided_by=decided_by
            ),
        )


class NotificationService:
    """Stores composed notifications and manages what each caller sees and has read."""

    def __init__(
        self, repository: CareRepository, composer: NotificationComposer | None = None
    ) -> None:
        self.repository = repository
        self.composer = composer or NotificationComposer()
        self.logger = logger.bind(component="notification_service")

    def _store(self, notification: Notification) -> Notification:
        notification_id = self.repository.insert_notification(notification)
        stored = notification.model_copy(update={"id": notification_id})
        self.logger.info(
            "notification_stored",
            notification_id=notification_id,
            kind=notification.kind.value,
            broadcast=notification.is_broadcast,
        )
        return stored

    def request_registration(self, request: RegistrationRequest) -> Notification:
        return self._store(self.composer.pending_registration(request))

    def decide_registration(
        self, request: RegistrationRequest, approved: bool, decided_by: User
    ) -> Notification:
        if decided_by.role is not Role.ADMIN:
            raise PermissionDeniedError("Only administrators can decide registrations")
        return self._store(self.composer.registration_decision(request, approved, decided_by.id))

    def visible_to(self, user: User) -> list[Notification]:
        """Notifications the caller can see, newest first."""
        visible = [n for n in self.repository.list_notifications() if is_visible_to(n, user)]
        return sorted(visible, key=lambda n: (n.created_at, n.id or ""), reverse=True)

    def unread_count(self, user: User) -> int:
        return sum(1 for n in self.visible_to(user) if not n.read)

    def mark_read(self, notification_id: str, user: User) -> Notification:
        """Mark as read. Idempotent: a second call returns the read notification without writing."""
        notification = self.repository.fetch_notification(notification_id)
        if not is_visible_to(notification, user):
            raise PermissionDeniedError()
        if notification.read:
            return notification

        updated = notification.mark_read()
        self.repository.update_notification(updated)
        self.logger.info("notification_marked_read", notification_id=notification_id, user_id=user.id)
        return updated

    def mark_all_read(self, user: User) -> int:
        """Mark every unread notification visible to `user` as read; returns how many changed."""
        changed = 0
        for notification in self.visible_to(user):
            if not notification.read:
                self.repository.update_notification(notification.mark_read())
                changed += 1
        self.logger.info("notifications_marked_read", user_id=user.id, count=changed)
        return changed
