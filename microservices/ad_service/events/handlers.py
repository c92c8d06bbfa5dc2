"""
Ad Event Handlers

Handles incoming events from other services.
"""

import logging
from typing import Any, Dict

from .models import AdSubscribedEventType, PaymentCompletedEventData

logger = logging.getLogger(__name__)


class AdEventHandler:
    """Handler for ad service subscribed events"""

    def __init__(self, ad_service=None):
        self.ad_service = ad_service

    async def handle_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Route event to appropriate handler"""
        handlers = {
            AdSubscribedEventType.PAYMENT_COMPLETED.value: self.handle_payment_succeeded,
            AdSubscribedEventType.PAYMENT_INTENT_SUCCEEDED.value: self.handle_payment_succeeded,
        }

        handler = handlers.get(event_type)
        if handler:
            try:
                await handler(data)
            except Exception as e:
                logger.error(f"Error handling event {event_type}: {e}", exc_info=True)
        else:
            logger.debug(f"No handler for event type: {event_type}")

    async def handle_bus_event(self, event) -> None:
        """Adapter for NATSEventBus subscriptions"""
        await self.handle_event(event.type, event.data)

    async def handle_payment_succeeded(self, data: Dict[str, Any]) -> None:
        """
        Handle payment.completed / payment_intent.succeeded

        Marks the referenced campaign as paid; a PENDING campaign goes live.
        """
        event_data = PaymentCompletedEventData(**data)
        campaign_id = event_data.resolved_campaign_id()
        if not campaign_id:
            logger.debug("Payment event without campaign reference, ignoring")
            return

        if not self.ad_service:
            return

        await self.ad_service.handle_payment_succeeded(campaign_id)
        logger.info(f"Payment recorded for campaign {campaign_id} (payment {event_data.payment_id})")


__all__ = ["AdEventHandler"]
