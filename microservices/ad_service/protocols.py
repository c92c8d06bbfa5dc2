"""
Ad Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from .models import AdStatus, Campaign, CounterField, SlotFilter


# ====================
# Repository Protocol
# ====================


class AdRepositoryProtocol(Protocol):
    """Protocol for the ad campaign store.

    Implementations own per-record write serialization: counter increments and
    status compare-and-set must be atomic at the storage layer.
    """

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def find_eligible(self, slot_filter: SlotFilter) -> List[Campaign]:
        """Campaigns matching a slot filter"""
        ...

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        ...

    async def list_by_owner(self, owner_id: str) -> List[Campaign]:
        """All campaigns owned by an advertiser"""
        ...

    async def list_expirable(self, now: datetime) -> List[Campaign]:
        """ACTIVE or PAUSED campaigns whose end date is before now"""
        ...

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        """Insert a campaign"""
        ...

    async def update_campaign(
        self, campaign_id: str, updates: Dict[str, Any]
    ) -> Optional[Campaign]:
        """Apply field updates"""
        ...

    async def delete_campaign(self, campaign_id: str) -> bool:
        """Delete unless PENDING/SUCCEEDED transactions are attached"""
        ...

    async def has_active_transactions(self, campaign_id: str) -> bool:
        """Whether PENDING or SUCCEEDED transactions reference the campaign"""
        ...

    async def increment_counter(
        self, campaign_id: str, field: CounterField
    ) -> Optional[Campaign]:
        """Atomically add one to a counter, returning the updated record"""
        ...

    async def compare_and_set_status(
        self,
        campaign_id: str,
        expected: AdStatus,
        new_status: AdStatus,
        **fields: Any,
    ) -> Optional[Campaign]:
        """Set status (and fields) only if the stored status equals expected"""
        ...


# ====================
# Event Bus Protocol
# ====================


class EventBusProtocol(Protocol):
    """Protocol for event bus operations"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event to the event bus"""
        ...

    async def subscribe(
        self, subject: str, handler: Any, durable: Optional[str] = None
    ) -> None:
        """Subscribe to events matching a subject"""
        ...

    async def close(self) -> None:
        """Close event bus connection"""
        ...


# ====================
# Service Client Protocols
# ====================


class NotificationClientProtocol(Protocol):
    """Protocol for the advertiser notification service"""

    async def notify_approved(self, campaign: Campaign) -> None:
        """Tell the owner their campaign went live"""
        ...

    async def notify_rejected(self, campaign: Campaign, reason: str) -> None:
        """Tell the owner their campaign was rejected"""
        ...


class AnalyticsCollectorProtocol(Protocol):
    """Protocol for the external analytics collector"""

    async def track_impression(self, campaign_id: str, title: Optional[str] = None) -> None:
        """Record an ad impression event"""
        ...

    async def track_click(self, campaign_id: str, title: Optional[str] = None) -> None:
        """Record an ad click event"""
        ...


# ====================
# Custom Exceptions
# ====================


class AdServiceError(Exception):
    """Base exception for ad service errors"""

    error_code = "ad_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CampaignValidationError(AdServiceError):
    """Raised when caller input fails business validation"""

    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidRangeError(CampaignValidationError):
    """Raised when end date is not after start date"""

    error_code = "invalid_range"


class InvalidDurationError(CampaignValidationError):
    """Raised when a campaign runs fewer or more days than allowed"""

    error_code = "invalid_duration"

    def __init__(self, message: str, days: int):
        super().__init__(message, "end_date")
        self.days = days


class InvalidPriceError(CampaignValidationError):
    """Raised when a manual price override is negative"""

    error_code = "invalid_price"


class PaymentRequiredError(AdServiceError):
    """Raised when approving an unpaid campaign"""

    error_code = "payment_required"


class InvalidStateError(AdServiceError):
    """Raised when campaign is in invalid state for operation"""

    error_code = "invalid_state"

    def __init__(self, message: str, current_status: Optional[AdStatus] = None):
        super().__init__(message)
        self.current_status = current_status


class ActiveTransactionsError(InvalidStateError):
    """Raised when deleting a campaign with pending or settled payments"""

    error_code = "active_transactions"


class CampaignExpiredError(AdServiceError):
    """Raised when resuming a campaign past its end date"""

    error_code = "campaign_expired"


class UnauthorizedError(AdServiceError):
    """Raised when the caller may not act on the campaign"""

    error_code = "unauthorized"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AdServiceError):
    """Raised when campaign is not found"""

    error_code = "not_found"

    def __init__(self, message: str = "Campaign not found"):
        super().__init__(message)


__all__ = [
    "AdRepositoryProtocol",
    "EventBusProtocol",
    "NotificationClientProtocol",
    "AnalyticsCollectorProtocol",
    "AdServiceError",
    "CampaignValidationError",
    "InvalidRangeError",
    "InvalidDurationError",
    "InvalidPriceError",
    "PaymentRequiredError",
    "InvalidStateError",
    "ActiveTransactionsError",
    "CampaignExpiredError",
    "UnauthorizedError",
    "NotFoundError",
]
