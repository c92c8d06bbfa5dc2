"""
Outbox Dispatcher

Delivers outbox events to notification, analytics and event bus
collaborators after the state change that produced them is persisted.
Delivery runs in background tasks; failures are logged and never reach
the caller.
"""

import asyncio
import logging
from typing import Iterable, Optional, Set

from ..protocols import AnalyticsCollectorProtocol, NotificationClientProtocol
from .models import (
    AdApprovedNotification,
    AdClickTracked,
    AdImpressionTracked,
    AdLifecycleChanged,
    AdRejectedNotification,
    OutboxEvent,
)
from .publishers import AdEventPublisher

logger = logging.getLogger(__name__)


class OutboxDispatcher:
    """Routes outbox events to the collaborator that handles them"""

    def __init__(
        self,
        notification_client: Optional[NotificationClientProtocol] = None,
        analytics_client: Optional[AnalyticsCollectorProtocol] = None,
        publisher: Optional[AdEventPublisher] = None,
    ):
        self.notification_client = notification_client
        self.analytics_client = analytics_client
        self.publisher = publisher
        self._pending: Set[asyncio.Task] = set()

    def dispatch(self, events: Iterable[OutboxEvent]) -> None:
        """Schedule delivery of events without waiting for it"""
        for event in events:
            task = asyncio.create_task(self.deliver(event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def deliver(self, event: OutboxEvent) -> None:
        """Deliver one event, logging instead of raising on failure"""
        try:
            await self._route(event)
        except Exception as e:
            logger.error(
                f"Failed to deliver {type(event).__name__} for campaign {event.campaign_id}: {e}"
            )

    async def _route(self, event: OutboxEvent) -> None:
        if isinstance(event, AdApprovedNotification):
            if not self.notification_client:
                logger.debug("Notification client not configured, skipping approval email")
                return
            await self.notification_client.notify_approved(event.campaign)

        elif isinstance(event, AdRejectedNotification):
            if not self.notification_client:
                logger.debug("Notification client not configured, skipping rejection email")
                return
            await self.notification_client.notify_rejected(event.campaign, event.reason)

        elif isinstance(event, AdImpressionTracked):
            if self.analytics_client:
                await self.analytics_client.track_impression(event.campaign_id, event.title)

        elif isinstance(event, AdClickTracked):
            if self.analytics_client:
                await self.analytics_client.track_click(event.campaign_id, event.title)

        elif isinstance(event, AdLifecycleChanged):
            if self.publisher:
                await self.publisher.publish_lifecycle(event.data)

        else:
            logger.warning(f"No route for outbox event {type(event).__name__}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending))


__all__ = ["OutboxDispatcher"]
