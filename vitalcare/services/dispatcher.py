"""
Best-effort delivery of stored notifications to real-time channels.

Services hand notifications over; the dispatcher alone talks to delivery
channels. A notification is always written before it reaches the dispatcher,
so a failed push never rolls anything back: clients still see it on their next
fetch.
"""

import asyncio
from collections import deque
from collections.abc import Sequence

import structlog

from vitalcare.domain.models import PRIVILEGED_ROLES, Notification, Role
from vitalcare.services.repository import DeliveryChannel
from vitalcare.services.result import Result

logger = structlog.get_logger(__name__)


def user_topic(user_id: str) -> str:
    return f"user:{user_id}"


def role_topic(role: Role) -> str:
    return f"role:{role.value}"


def topics_for(notification: Notification) -> list[str]:
    """
    Routing topics for a notification.

    Targeted notifications go to their user only; broadcasts go to each role
    in their audience (every privileged role when none is named), in a stable order.
    """
    if notification.target_user_id is not None:
        return [user_topic(notification.target_user_id)]
    audience = notification.audience or PRIVILEGED_ROLES
    return [role_topic(role) for role in sorted(audience, key=lambda r: r.value)]


class Delivery:
    """A successful push of one notification to one topic on one channel."""

    def __init__(self, channel_name: str, topic: str, notification_id: str | None) -> None:
        self.channel_name = channel_name
        self.topic = topic
        self.notification_id = notification_id

    def __repr__(self) -> str:
        return f"Delivery({self.channel_name!r}, {self.topic!r}, {self.notification_id!r})"


class NotificationDispatcher:
    """Queues notifications and publishes them to every configured channel."""

    def __init__(self, channels: Sequence[DeliveryChannel] | None = None) -> None:
        self.channels: list[DeliveryChannel] = list(channels or [])
        self.pending: deque[Notification] = deque()
        self.logger = logger.bind(component="notification_dispatcher")

    def add_channel(self, channel: DeliveryChannel) -> None:
        if not hasattr(channel, "publish"):
            raise TypeError(f"Channel {channel} must implement DeliveryChannel protocol")
        self.channels.append(channel)
        self.logger.info("channel_added", channel=channel.channel_name)

    def submit(self, notification: Notification | None) -> None:
        """Queue a stored notification for delivery; None (nothing to send) is ignored."""
        if notification is None:
            return
        if notification.id is None:
            raise ValueError("Only stored notifications can be dispatched")
        self.pending.append(notification)

    async def flush(self) -> list[Result[Delivery, Exception]]:
        """
        Publish every queued notification.

        One Result per (notification, topic, channel). Failures are logged and
        returned, never raised, and do not stop the remaining deliveries.
        """
        results: list[Result[Delivery, Exception]] = []
        while self.pending:
            notification = self.pending.popleft()
            for topic in topics_for(notification):
                for channel in self.channels:
                    results.append(await self._publish(channel, topic, notification))
        return results

    async def _publish(
        self, channel: DeliveryChannel, topic: str, notification: Notification
    ) -> Result[Delivery, Exception]:
        try:
            await channel.publish(topic, notification)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(
                "notification_delivery_failed",
                channel=channel.channel_name,
                topic=topic,
                notification_id=notification.id,
                error=str(e),
            )
            return Result.err(e)

        self.logger.debug(
            "notification_delivered",
            channel=channel.channel_name,
            topic=topic,
            notification_id=notification.id,
        )
        return Result.ok(Delivery(channel.channel_name, topic, notification.id))
