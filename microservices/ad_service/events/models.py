"""
Ad Event Data Models

Event type definitions and the outbox events produced by lifecycle
transitions and engagement tracking.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import AdStatus, Campaign, LifecycleEvent, utc_now


# =============================================================================
# Event Type Definitions
# =============================================================================


class AdEventType(str, Enum):
    """
    Events published by ad_service.

    Other services should reference these when subscribing.
    """
    # Campaign lifecycle events
    CREATED = "ad.created"
    UPDATED = "ad.updated"
    APPROVED = "ad.approved"
    REJECTED = "ad.rejected"
    PAID = "ad.paid"
    PAUSED = "ad.paused"
    RESUMED = "ad.resumed"
    EXPIRED = "ad.expired"
    DELETED = "ad.deleted"


class AdSubscribedEventType(str, Enum):
    """
    Events that ad_service subscribes to from other services.
    """
    # Payment events (from payment_service)
    PAYMENT_COMPLETED = "payment.completed"

    # Raw gateway webhook relayed onto the bus
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"


class AdStreamConfig:
    """Stream configuration for ad_service"""
    STREAM_NAME = "ad-stream"
    SUBJECTS = ["ad.>"]
    MAX_MESSAGES = 100000


LIFECYCLE_EVENT_TYPES: Dict[LifecycleEvent, AdEventType] = {
    LifecycleEvent.APPROVE: AdEventType.APPROVED,
    LifecycleEvent.REJECT: AdEventType.REJECTED,
    LifecycleEvent.PAYMENT_SUCCEEDED: AdEventType.PAID,
    LifecycleEvent.PAUSE: AdEventType.PAUSED,
    LifecycleEvent.RESUME: AdEventType.RESUMED,
    LifecycleEvent.EDIT: AdEventType.UPDATED,
    LifecycleEvent.DELETE: AdEventType.DELETED,
    LifecycleEvent.EXPIRE: AdEventType.EXPIRED,
}


# =============================================================================
# Published Event Data Models
# =============================================================================


class AdCreatedEventData(BaseModel):
    """Data for ad.created event"""
    campaign_id: str
    owner_id: str
    title: str
    ad_type: str
    price: str
    currency: str = "eur"
    start_date: datetime
    end_date: datetime
    timestamp: datetime = Field(default_factory=utc_now)


class AdLifecycleEventData(BaseModel):
    """Data for status-changing lifecycle events (ad.approved, ad.paused, ...)"""
    campaign_id: str
    owner_id: str
    event: LifecycleEvent
    previous_status: Optional[AdStatus] = None
    new_status: Optional[AdStatus] = None
    actor_id: str
    changed_fields: List[str] = Field(default_factory=list)
    reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def event_type(self) -> AdEventType:
        return LIFECYCLE_EVENT_TYPES[self.event]


# =============================================================================
# Outbox Events
# =============================================================================


class OutboxEvent(BaseModel):
    """Side effect recorded by a transition, delivered after persistence"""
    campaign_id: str
    timestamp: datetime = Field(default_factory=utc_now)


class AdApprovedNotification(OutboxEvent):
    """Approval email to the campaign owner"""
    campaign: Campaign


class AdRejectedNotification(OutboxEvent):
    """Rejection email to the campaign owner"""
    campaign: Campaign
    reason: str


class AdLifecycleChanged(OutboxEvent):
    """Lifecycle event for the event bus"""
    data: AdLifecycleEventData


class AdImpressionTracked(OutboxEvent):
    """Impression forwarded to the analytics collector"""
    title: Optional[str] = None


class AdClickTracked(OutboxEvent):
    """Click forwarded to the analytics collector"""
    title: Optional[str] = None


# =============================================================================
# Subscribed Event Data Models
# =============================================================================


class PaymentCompletedEventData(BaseModel):
    """
    Data from payment.completed or payment_intent.succeeded.

    The campaign id may arrive as ``campaign_id``, ``ad_id`` or inside the
    gateway's ``metadata`` block.
    """
    payment_id: Optional[str] = None
    campaign_id: Optional[str] = None
    ad_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def resolved_campaign_id(self) -> Optional[str]:
        return (
            self.campaign_id
            or self.ad_id
            or self.metadata.get("campaign_id")
            or self.metadata.get("adId")
            or self.metadata.get("ad_id")
        )


__all__ = [
    "AdEventType",
    "AdSubscribedEventType",
    "AdStreamConfig",
    "LIFECYCLE_EVENT_TYPES",
    "AdCreatedEventData",
    "AdLifecycleEventData",
    "OutboxEvent",
    "AdApprovedNotification",
    "AdRejectedNotification",
    "AdLifecycleChanged",
    "AdImpressionTracked",
    "AdClickTracked",
    "PaymentCompletedEventData",
]
