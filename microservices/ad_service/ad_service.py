"""
Ad Service Business Logic

Slot serving, pricing, campaign lifecycle, engagement tracking and
analytics behind one facade. Pure decisions are delegated to the engine
components; this layer loads and persists campaigns and hands outbox
events to the dispatcher once the new state is stored.
"""

import logging
import random
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from pydantic import ValidationError

from core.config import AdEngineConfig

from .analytics import AnalyticsAggregator
from .engagement import EngagementCounter
from .events.dispatcher import OutboxDispatcher
from .events.publishers import AdEventPublisher
from .lifecycle import LifecycleStateMachine, Payload, TransitionResult
from .models import (
    Actor,
    AdStatus,
    AdType,
    AdvertiserMetrics,
    Campaign,
    CampaignCreateRequest,
    CampaignMetrics,
    CampaignUpdateRequest,
    LifecycleEvent,
    RejectRequest,
    Role,
    SlotFilter,
    SYSTEM_ACTOR,
    utc_now,
)
from .pricing import PricingEngine
from .protocols import (
    ActiveTransactionsError,
    AdRepositoryProtocol,
    AnalyticsCollectorProtocol,
    CampaignValidationError,
    EventBusProtocol,
    InvalidStateError,
    NotFoundError,
    NotificationClientProtocol,
    UnauthorizedError,
)
from .rotation import RotationSelector
from .slots import SlotResolver

logger = logging.getLogger(__name__)


class AdService:
    """Ad service business logic layer"""

    def __init__(
        self,
        repository: AdRepositoryProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        notification_client: Optional[NotificationClientProtocol] = None,
        analytics_client: Optional[AnalyticsCollectorProtocol] = None,
        config: Optional[AdEngineConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.config = config or AdEngineConfig()

        self.pricing = PricingEngine(self.config)
        self.slots = SlotResolver()
        self.rotation = RotationSelector(rng)
        self.lifecycle = LifecycleStateMachine()
        self.engagement = EngagementCounter(repository)
        self.analytics = AnalyticsAggregator(repository)

        self.publisher = AdEventPublisher(event_bus, currency=self.config.currency)
        self.dispatcher = OutboxDispatcher(
            notification_client=notification_client,
            analytics_client=analytics_client,
            publisher=self.publisher,
        )

    # ====================
    # Serving
    # ====================

    def resolve_slot(self, slot_name: str, now: Optional[datetime] = None) -> SlotFilter:
        """Store filter for campaigns eligible to fill a slot"""
        return self.slots.build_filter(slot_name, now)

    def select(self, pool: Sequence[Campaign], limit: Optional[int] = None) -> List[Campaign]:
        """Pick the campaign(s) to render from an eligible pool"""
        return self.rotation.select(pool, self.config.slider_limit if limit is None else limit)

    async def serve_slot(
        self,
        slot_name: str,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Campaign]:
        """Resolve a slot, load eligible campaigns and rotate among them"""
        slot_filter = self.resolve_slot(slot_name, now)
        pool = await self.repository.find_eligible(slot_filter)
        selected = self.select(pool, limit)
        logger.debug(f"Slot {slot_name}: {len(pool)} eligible, serving {len(selected)}")
        return selected

    # ====================
    # Pricing and Creation
    # ====================

    def price(
        self,
        ad_type: AdType,
        start_date: datetime,
        end_date: datetime,
        override: Optional[Decimal] = None,
    ) -> Decimal:
        return self.pricing.price(ad_type, start_date, end_date, override)

    async def create_campaign(self, request: CampaignCreateRequest, actor: Actor) -> Campaign:
        """
        Create a campaign awaiting payment and review.

        Advertisers own what they create. Only administrators may set a
        custom price.
        """
        if not (actor.is_admin or actor.role == Role.ADVERTISER):
            raise UnauthorizedError()
        if request.price is not None and not actor.is_admin:
            raise UnauthorizedError("Only administrators can set a custom price")

        price = self.pricing.price(
            request.ad_type, request.start_date, request.end_date, request.price
        )
        campaign = Campaign(
            title=request.title,
            name=request.name,
            ad_type=request.ad_type,
            position=request.position or None,
            image_url=request.image_url,
            target_link=request.target_link,
            start_date=request.start_date,
            end_date=request.end_date,
            price=price,
            is_paid=False,
            status=AdStatus.PENDING,
            owner_id=actor.user_id,
        )
        campaign = await self.repository.save_campaign(campaign)
        await self.publisher.publish_ad_created(campaign)

        logger.info(f"Campaign created: {campaign.campaign_id} ({campaign.ad_type.value}, {price})")
        return campaign

    async def get_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self.repository.get_campaign(campaign_id)
        if campaign is None:
            raise NotFoundError()
        return campaign

    # ====================
    # Lifecycle
    # ====================

    async def transition(
        self,
        campaign_id: str,
        event: LifecycleEvent,
        actor: Actor,
        payload: Payload = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Apply a lifecycle event and persist the outcome.

        Status changes and edits are written with compare-and-set; if another writer
        moved the campaign first, InvalidStateError is raised and nothing
        is overwritten.
        """
        campaign = await self.get_campaign(campaign_id)
        result = self.lifecycle.apply(campaign, event, actor, payload, now)

        if event == LifecycleEvent.DELETE:
            await self._delete(campaign)
        else:
            # EDIT keeps the status but still requires it unchanged since the read
            stored = await self.repository.compare_and_set_status(
                campaign_id,
                result.previous_status,
                result.campaign.status,
                **result.changes,
            )
            if stored is None:
                current = await self.repository.get_campaign(campaign_id)
                if current is None:
                    raise NotFoundError()
                raise InvalidStateError(
                    f"Campaign status changed to {current.status.value} during {event.value}",
                    current.status,
                )
            result = replace(result, campaign=stored)

        self.dispatcher.dispatch(result.outbox)
        logger.info(
            f"Campaign {campaign_id}: {event.value} by {actor.user_id} "
            f"({result.previous_status.value} -> {result.campaign.status.value})"
        )
        return result

    async def _delete(self, campaign: Campaign) -> None:
        deleted = await self.repository.delete_campaign(campaign.campaign_id)
        if deleted:
            return
        if await self.repository.has_active_transactions(campaign.campaign_id):
            raise ActiveTransactionsError(
                "Cannot delete campaign with pending or completed transactions",
                campaign.status,
            )
        raise NotFoundError()

    async def approve(self, campaign_id: str, actor: Actor) -> Campaign:
        result = await self.transition(campaign_id, LifecycleEvent.APPROVE, actor)
        return result.campaign

    async def reject(self, campaign_id: str, reason: str, actor: Actor) -> Campaign:
        try:
            payload = RejectRequest(reason=reason)
        except ValidationError as e:
            raise CampaignValidationError("Rejection reason is required", "reason") from e
        result = await self.transition(campaign_id, LifecycleEvent.REJECT, actor, payload)
        return result.campaign

    async def pause(self, campaign_id: str, actor: Actor) -> Campaign:
        result = await self.transition(campaign_id, LifecycleEvent.PAUSE, actor)
        return result.campaign

    async def resume(self, campaign_id: str, actor: Actor, now: Optional[datetime] = None) -> Campaign:
        result = await self.transition(campaign_id, LifecycleEvent.RESUME, actor, now=now)
        return result.campaign

    async def update_campaign(
        self, campaign_id: str, request: CampaignUpdateRequest, actor: Actor
    ) -> Campaign:
        result = await self.transition(campaign_id, LifecycleEvent.EDIT, actor, request)
        return result.campaign

    async def delete_campaign(self, campaign_id: str, actor: Actor) -> None:
        await self.transition(campaign_id, LifecycleEvent.DELETE, actor)

    async def handle_payment_succeeded(
        self, campaign_id: str, actor: Actor = SYSTEM_ACTOR
    ) -> Campaign:
        """Mark a campaign paid; a PENDING campaign goes live"""
        result = await self.transition(campaign_id, LifecycleEvent.PAYMENT_SUCCEEDED, actor)
        return result.campaign

    async def expire_campaigns(self, now: Optional[datetime] = None) -> int:
        """Move ACTIVE/PAUSED campaigns past their end date to EXPIRED"""
        now = now or utc_now()
        expired = 0
        for campaign in await self.repository.list_expirable(now):
            try:
                await self.transition(campaign.campaign_id, LifecycleEvent.EXPIRE, SYSTEM_ACTOR, now=now)
                expired += 1
            except (InvalidStateError, NotFoundError) as e:
                logger.warning(f"Skipping expiry of campaign {campaign.campaign_id}: {e.message}")

        if expired:
            logger.info(f"Expired {expired} campaign(s)")
        return expired

    # ====================
    # Engagement
    # ====================

    async def record_impression(self, campaign_id: str) -> None:
        event = await self.engagement.record_impression(campaign_id)
        self.dispatcher.dispatch([event])

    async def record_click(self, campaign_id: str) -> None:
        event = await self.engagement.record_click(campaign_id)
        self.dispatcher.dispatch([event])

    # ====================
    # Analytics
    # ====================

    async def campaign_analytics(self, campaign_id: str, actor: Actor) -> CampaignMetrics:
        return await self.analytics.per_campaign(campaign_id, actor)

    async def advertiser_analytics(self, owner_id: str, actor: Actor) -> AdvertiserMetrics:
        return await self.analytics.per_advertiser(owner_id, actor)

    async def close(self) -> None:
        """Wait for background deliveries"""
        await self.dispatcher.drain()


__all__ = ["AdService"]
