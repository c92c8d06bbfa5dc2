"""
Ad Event Publishers

Publishes ad events to NATS JetStream.
"""

import logging
from typing import Any, Dict, Optional

from core.nats_client import Event, ServiceSource

from ..models import Campaign
from ..protocols import EventBusProtocol
from .models import AdCreatedEventData, AdEventType, AdLifecycleEventData

logger = logging.getLogger(__name__)


class AdEventPublisher:
    """Publisher for ad service events"""

    def __init__(self, event_bus: Optional[EventBusProtocol] = None, currency: str = "eur"):
        self.event_bus = event_bus
        self.currency = currency
        self.source = ServiceSource.AD_SERVICE

    async def publish(
        self,
        event_type: AdEventType,
        data: Dict[str, Any],
    ) -> bool:
        """
        Publish an event to NATS.

        Args:
            event_type: The event type enum
            data: Event data payload

        Returns:
            True if published successfully, False otherwise
        """
        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_type.value}")
            return False

        try:
            event = Event(event_type=event_type, source=self.source, data=data)
            published = await self.event_bus.publish_event(event)
            logger.debug(f"Published event: {event_type.value}")
            return bool(published)

        except Exception as e:
            logger.error(f"Failed to publish event {event_type.value}: {e}")
            return False

    async def publish_ad_created(self, campaign: Campaign) -> bool:
        """Publish ad.created event"""
        data = AdCreatedEventData(
            campaign_id=campaign.campaign_id,
            owner_id=campaign.owner_id,
            title=campaign.title,
            ad_type=campaign.ad_type.value,
            price=str(campaign.price),
            currency=self.currency,
            start_date=campaign.start_date,
            end_date=campaign.end_date,
        )
        return await self.publish(AdEventType.CREATED, data.model_dump(mode="json"))

    async def publish_lifecycle(self, data: AdLifecycleEventData) -> bool:
        """Publish the event matching a lifecycle transition (ad.approved, ad.paused, ...)"""
        return await self.publish(data.event_type, data.model_dump(mode="json"))


__all__ = ["AdEventPublisher"]
