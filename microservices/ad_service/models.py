"""
Ad Service Data Models

Canonical data structures for the ad serving and campaign lifecycle engine.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional
from uuid import uuid4

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator


# ====================
# Enums
# ====================


class AdType(str, Enum):
    """Ad creative type"""
    BANNER_TOP = "BANNER_TOP"
    BANNER_SIDE = "BANNER_SIDE"
    INLINE = "INLINE"
    FOOTER = "FOOTER"
    SLIDER = "SLIDER"
    TICKER = "TICKER"
    POPUP = "POPUP"
    STICKY = "STICKY"


class AdStatus(str, Enum):
    """Campaign lifecycle status"""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    EXPIRED = "EXPIRED"
    REJECTED = "REJECTED"


class Role(str, Enum):
    """Caller role as resolved by the request layer"""
    ADVERTISER = "ADVERTISER"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"
    SYSTEM = "SYSTEM"


class LifecycleEvent(str, Enum):
    """Events accepted by the lifecycle state machine"""
    APPROVE = "approve"
    REJECT = "reject"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAUSE = "pause"
    RESUME = "resume"
    EDIT = "edit"
    DELETE = "delete"
    EXPIRE = "expire"


class TransactionStatus(str, Enum):
    """Payment transaction status attached to a campaign"""
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class CounterField(str, Enum):
    """Engagement counters that support atomic increments"""
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
TERMINAL_STATUSES = frozenset({AdStatus.EXPIRED, AdStatus.REJECTED})
BLOCKING_TRANSACTION_STATUSES = frozenset({TransactionStatus.PENDING, TransactionStatus.SUCCEEDED})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ====================
# Core Models
# ====================


class BaseContract(BaseModel):
    """Base model for all ad service contracts"""

    model_config = ConfigDict(from_attributes=True)


class Actor(BaseContract):
    """The caller performing an operation"""
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_system(self) -> bool:
        return self.role == Role.SYSTEM


SYSTEM_ACTOR = Actor(user_id="system", role=Role.SYSTEM)


class Campaign(BaseContract):
    """Persisted ad campaign record"""
    campaign_id: str = Field(default_factory=lambda: f"ad_{uuid4().hex[:16]}")
    title: str = Field(..., min_length=1, max_length=255)
    name: Optional[str] = Field(None, max_length=255)
    ad_type: AdType
    position: Optional[str] = Field(None, max_length=50)
    image_url: str
    target_link: Optional[str] = None

    price: Decimal = Field(default=Decimal("0"), ge=0)
    is_paid: bool = False

    status: AdStatus = AdStatus.PENDING
    rejection_reason: Optional[str] = None

    start_date: AwareDatetime
    end_date: AwareDatetime

    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)

    owner_id: str

    created_at: AwareDatetime = Field(default_factory=utc_now)
    updated_at: AwareDatetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def validate_invariants(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if self.status == AdStatus.ACTIVE and not self.is_paid:
            raise ValueError("ACTIVE campaigns must be paid")
        return self

    @property
    def has_position(self) -> bool:
        return bool(self.position)

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id


class SlotResolution(BaseContract):
    """Ad types and positions eligible for a page slot"""
    model_config = ConfigDict(frozen=True)

    slot_name: str
    allowed_types: FrozenSet[AdType]
    allowed_positions: FrozenSet[str]


class SlotFilter(BaseContract):
    """Store query for campaigns eligible to fill a slot at an instant"""
    model_config = ConfigDict(frozen=True)

    slot_name: str
    now: AwareDatetime
    status: AdStatus = AdStatus.ACTIVE
    allowed_types: FrozenSet[AdType] = frozenset()
    allowed_positions: FrozenSet[str] = frozenset()

    def matches(self, campaign: Campaign) -> bool:
        """Evaluate the filter against a single campaign"""
        if campaign.status != self.status:
            return False
        if campaign.start_date > self.now or campaign.end_date < self.now:
            return False
        if campaign.position in self.allowed_positions:
            return True
        return campaign.ad_type in self.allowed_types and not campaign.has_position


# ====================
# Request Models
# ====================


class CampaignCreateRequest(BaseContract):
    """Validated input for creating a campaign"""
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    name: Optional[str] = Field(None, max_length=255)
    ad_type: AdType
    position: Optional[str] = Field(None, max_length=50)
    image_url: str = Field(..., min_length=1)
    target_link: Optional[str] = None
    start_date: AwareDatetime
    end_date: AwareDatetime
    price: Optional[Decimal] = None


class CampaignUpdateRequest(BaseContract):
    """Validated field updates applied by an EDIT event"""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    name: Optional[str] = Field(None, max_length=255)
    ad_type: Optional[AdType] = None
    position: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = Field(None, min_length=1)
    target_link: Optional[str] = None
    start_date: Optional[AwareDatetime] = None
    end_date: Optional[AwareDatetime] = None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set by the caller"""
        return self.model_dump(exclude_unset=True)


class RejectRequest(BaseContract):
    """Validated input for rejecting a campaign"""
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(..., min_length=1, max_length=1000)


# ====================
# Metrics Models
# ====================


class CampaignMetrics(BaseContract):
    """Engagement metrics for a single campaign"""
    campaign_id: str
    title: str
    impressions: int
    clicks: int
    ctr: float
    status: AdStatus
    start_date: datetime
    end_date: datetime
    created_at: datetime


class AdvertiserMetrics(BaseContract):
    """Engagement roll-up for every campaign owned by an advertiser"""
    owner_id: str
    total_ads: int
    total_impressions: int
    total_clicks: int
    average_ctr: float
    ads: List[CampaignMetrics] = Field(default_factory=list)


__all__ = [
    "AdType",
    "AdStatus",
    "Role",
    "LifecycleEvent",
    "TransactionStatus",
    "CounterField",
    "ADMIN_ROLES",
    "TERMINAL_STATUSES",
    "BLOCKING_TRANSACTION_STATUSES",
    "utc_now",
    "BaseContract",
    "Actor",
    "SYSTEM_ACTOR",
    "Campaign",
    "SlotResolution",
    "SlotFilter",
    "CampaignCreateRequest",
    "CampaignUpdateRequest",
    "RejectRequest",
    "CampaignMetrics",
    "AdvertiserMetrics",
]
