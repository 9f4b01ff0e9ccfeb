"""In-process delivery channel that records what was pushed, per topic."""

from collections import defaultdict

import structlog

from vitalcare.domain.models import Notification

logger = structlog.get_logger(__name__)


class InMemoryChannel:
    """Delivery channel implementing the `DeliveryChannel` protocol without a network."""

    def __init__(self, channel_name: str = "memory") -> None:
        self.channel_name = channel_name
        self.published: list[tuple[str, Notification]] = []
        self._by_topic: defaultdict[str, list[Notification]] = defaultdict(list)
        self.logger = logger.bind(channel=channel_name)

    async def publish(self, topic: str, notification: Notification) -> None:
        self.published.append((topic, notification))
        self._by_topic[topic].append(notification)
        self.logger.debug("notification_published", topic=topic, notification_id=notification.id)

    def messages_for(self, topic: str) -> list[Notification]:
        return list(self._by_topic.get(topic, []))
