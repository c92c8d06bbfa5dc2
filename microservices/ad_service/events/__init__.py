"""
Ad Service Events

Event models, publisher, outbox dispatcher and subscribed-event handler.
"""

from .models import (
    AdEventType,
    AdSubscribedEventType,
    AdStreamConfig,
    AdCreatedEventData,
    AdLifecycleEventData,
    OutboxEvent,
    AdApprovedNotification,
    AdRejectedNotification,
    AdLifecycleChanged,
    AdImpressionTracked,
    AdClickTracked,
    PaymentCompletedEventData,
)
from .dispatcher import OutboxDispatcher
from .handlers import AdEventHandler
from .publishers import AdEventPublisher

__all__ = [
    # Event Types
    "AdEventType",
    "AdSubscribedEventType",
    "AdStreamConfig",
    # Event Data Models
    "AdCreatedEventData",
    "AdLifecycleEventData",
    "PaymentCompletedEventData",
    # Outbox
    "OutboxEvent",
    "AdApprovedNotification",
    "AdRejectedNotification",
    "AdLifecycleChanged",
    "AdImpressionTracked",
    "AdClickTracked",
    "OutboxDispatcher",
    # Handler and Publisher
    "AdEventHandler",
    "AdEventPublisher",
]
