"""
Ad Service Data Contract

Re-exports the ad service models and provides test data factories.
All ad tests build their campaigns and actors through AdTestDataFactory.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4
import random

from microservices.ad_service.models import (
    ADMIN_ROLES,
    Actor,
    AdStatus,
    AdType,
    AdvertiserMetrics,
    Campaign,
    CampaignCreateRequest,
    CampaignMetrics,
    CampaignUpdateRequest,
    CounterField,
    LifecycleEvent,
    RejectRequest,
    Role,
    SlotFilter,
    SlotResolution,
    SYSTEM_ACTOR,
)

# Fixed reference instant so date arithmetic in tests is reproducible
NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# TEST DATA FACTORY
# =============================================================================


class AdTestDataFactory:
    """Factory for generating ad service test data"""

    @staticmethod
    def make_campaign_id() -> str:
        """Generate campaign ID"""
        return f"ad_{uuid4().hex[:16]}"

    @staticmethod
    def make_user_id() -> str:
        """Generate user ID"""
        return f"usr_{uuid4().hex[:16]}"

    @staticmethod
    def make_title() -> str:
        """Generate random ad title"""
        adjectives = ["Summer", "Flash", "Premium", "Local", "Weekend", "Grand"]
        nouns = ["Sale", "Opening", "Offer", "Deals", "Event", "Launch"]
        return f"{random.choice(adjectives)} {random.choice(nouns)} {random.randint(1, 100)}"

    # Actors

    @classmethod
    def make_advertiser(cls, user_id: Optional[str] = None) -> Actor:
        return Actor(user_id=user_id or cls.make_user_id(), role=Role.ADVERTISER)

    @classmethod
    def make_admin(cls, role: Role = Role.ADMIN) -> Actor:
        return Actor(user_id=cls.make_user_id(), role=role)

    @classmethod
    def make_editor(cls) -> Actor:
        return Actor(user_id=cls.make_user_id(), role=Role.EDITOR)

    @staticmethod
    def make_system() -> Actor:
        return SYSTEM_ACTOR

    # Campaigns

    @classmethod
    def make_campaign(
        cls,
        ad_type: AdType = AdType.BANNER_TOP,
        status: AdStatus = AdStatus.ACTIVE,
        is_paid: Optional[bool] = None,
        position: Optional[str] = None,
        impressions: int = 0,
        clicks: int = 0,
        owner_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        **overrides: Any,
    ) -> Campaign:
        """Campaign running from a day before NOW to a week after it"""
        start = start_date or NOW - timedelta(days=1)
        end = end_date or start + timedelta(days=8)
        if is_paid is None:
            is_paid = status in (AdStatus.ACTIVE, AdStatus.PAUSED, AdStatus.EXPIRED)
        return Campaign(
            campaign_id=overrides.pop("campaign_id", cls.make_campaign_id()),
            title=overrides.pop("title", cls.make_title()),
            ad_type=ad_type,
            position=position,
            image_url=overrides.pop("image_url", "https://cdn.example.com/ads/banner.png"),
            target_link=overrides.pop("target_link", "https://advertiser.example.com"),
            price=overrides.pop("price", Decimal("400")),
            is_paid=is_paid,
            status=status,
            start_date=start,
            end_date=end,
            impressions=impressions,
            clicks=clicks,
            owner_id=owner_id or cls.make_user_id(),
            created_at=overrides.pop("created_at", NOW - timedelta(days=2)),
            updated_at=overrides.pop("updated_at", NOW - timedelta(days=2)),
            **overrides,
        )

    @classmethod
    def make_pending_campaign(cls, is_paid: bool = False, **kwargs) -> Campaign:
        return cls.make_campaign(status=AdStatus.PENDING, is_paid=is_paid, **kwargs)

    @classmethod
    def make_paused_campaign(cls, **kwargs) -> Campaign:
        return cls.make_campaign(status=AdStatus.PAUSED, **kwargs)

    @classmethod
    def make_create_request(
        cls,
        ad_type: AdType = AdType.BANNER_TOP,
        days: int = 10,
        start_date: Optional[datetime] = None,
        **overrides: Any,
    ) -> CampaignCreateRequest:
        start = start_date or NOW + timedelta(days=1)
        return CampaignCreateRequest(
            title=overrides.pop("title", cls.make_title()),
            ad_type=ad_type,
            image_url=overrides.pop("image_url", "https://cdn.example.com/ads/new.png"),
            target_link=overrides.pop("target_link", "https://advertiser.example.com/landing"),
            start_date=start,
            end_date=overrides.pop("end_date", start + timedelta(days=days)),
            **overrides,
        )


__all__ = [
    "NOW",
    "ADMIN_ROLES",
    "Actor",
    "AdStatus",
    "AdType",
    "AdvertiserMetrics",
    "Campaign",
    "CampaignCreateRequest",
    "CampaignMetrics",
    "CampaignUpdateRequest",
    "CounterField",
    "LifecycleEvent",
    "RejectRequest",
    "Role",
    "SlotFilter",
    "SlotResolution",
    "SYSTEM_ACTOR",
    "AdTestDataFactory",
]
