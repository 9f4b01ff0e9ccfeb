"""
Tests for best-effort notification delivery in `vitalcare/services/dispatcher.py`.
"""

import pytest

from adapters.memory import InMemoryCareRepository, InMemoryChannel
from vitalcare.domain.models import Notification, NotificationKind, Patient, Role
from vitalcare.services.dispatcher import NotificationDispatcher, topics_for
from vitalcare.services.measurements import MeasurementService


class FailingChannel:
    channel_name = "broken"

    def __init__(self) -> None:
        self.attempts = 0

    async def publish(self, topic: str, notification: Notification) -> None:
        self.attempts += 1
        raise ConnectionError("socket closed")


def stored(**fields: object) -> Notification:
    defaults: dict[str, object] = {
        "id": "n-1",
        "kind": NotificationKind.CLINICAL_ALERT,
        "title": "x",
        "message": "",
    }
    return Notification(**{**defaults, **fields})  # type: ignore[arg-type]


class TestTopics:
    def test_targeted_goes_to_user_topic(self) -> None:
        n = stored(kind=NotificationKind.REGISTRATION_APPROVED, target_user_id="caregiver-1")
        assert topics_for(n) == ["user:caregiver-1"]

    def test_broadcast_goes_to_audience_roles_in_stable_order(self) -> None:
        n = stored(audience=frozenset({Role.NURSE, Role.ADMIN}))
        assert topics_for(n) == ["role:admin", "role:nurse"]

    def test_broadcast_without_audience_goes_to_privileged_roles(self) -> None:
        assert topics_for(stored()) == ["role:admin", "role:manager", "role:nurse"]


class TestNotificationDispatcher:
    @pytest.mark.asyncio
    async def test_flush_publishes_to_every_channel(self) -> None:
        first, second = InMemoryChannel("first"), InMemoryChannel("second")
        dispatcher = NotificationDispatcher([first])
        dispatcher.add_channel(second)
        dispatcher.submit(stored(audience=frozenset({Role.ADMIN, Role.NURSE})))

        results = await dispatcher.flush()

        assert len(results) == 4
        assert all(r.is_ok() for r in results)
        assert len(first.messages_for("role:nurse")) == 1
        assert len(second.messages_for("role:admin")) == 1
        assert len(dispatcher.pending) == 0

    @pytest.mark.asyncio
    async def test_failed_push_is_reported_not_raised(self) -> None:
        healthy, broken = InMemoryChannel(), FailingChannel()
        dispatcher = NotificationDispatcher([broken, healthy])
        dispatcher.submit(
            stored(target_user_id="caregiver-1", kind=NotificationKind.REGISTRATION_REJECTED)
        )

        results = await dispatcher.flush()

        assert [r.is_ok() for r in results] == [False, True]
        assert isinstance(results[0].unwrap_err(), ConnectionError)
        assert results[1].unwrap().topic == "user:caregiver-1"
        assert broken.attempts == 1
        assert len(healthy.messages_for("user:caregiver-1")) == 1

    @pytest.mark.asyncio
    async def test_stored_alert_survives_failed_delivery(
        self,
        measurement_service: MeasurementService,
        repository: InMemoryCareRepository,
        patient: Patient,
    ) -> None:
        outcome = measurement_service.submit({"patient_id": patient.id, "heart_rate": "140"})
        dispatcher = NotificationDispatcher([FailingChannel()])
        dispatcher.submit(outcome.notification)

        results = await dispatcher.flush()

        assert results and all(r.is_err() for r in results)
        assert outcome.notification is not None
        assert outcome.notification.id in repository.notifications

    @pytest.mark.asyncio
    async def test_flush_with_nothing_queued(self) -> None:
        assert await NotificationDispatcher([InMemoryChannel()]).flush() == []

    def test_nothing_to_send_is_ignored(self) -> None:
        dispatcher = NotificationDispatcher()
        dispatcher.submit(None)
        assert len(dispatcher.pending) == 0

    def test_unstored_notification_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="stored"):
            NotificationDispatcher().submit(stored(id=None))

    def test_channel_must_publish(self) -> None:
        with pytest.raises(TypeError):
            NotificationDispatcher().add_channel(object())  # type: ignore[arg-type]
