"""
Campaign Analytics

Per-campaign and per-advertiser engagement metrics.
"""

import logging
from typing import List

from .engagement import ctr
from .models import Actor, AdvertiserMetrics, Campaign, CampaignMetrics
from .protocols import AdRepositoryProtocol, NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)


def campaign_metrics(campaign: Campaign) -> CampaignMetrics:
    return CampaignMetrics(
        campaign_id=campaign.campaign_id,
        title=campaign.title,
        impressions=campaign.impressions,
        clicks=campaign.clicks,
        ctr=ctr(campaign.impressions, campaign.clicks),
        status=campaign.status,
        start_date=campaign.start_date,
        end_date=campaign.end_date,
        created_at=campaign.created_at,
    )


def summarize(owner_id: str, campaigns: List[Campaign]) -> AdvertiserMetrics:
    """Roll up campaigns; the average CTR comes from the aggregate totals"""
    total_impressions = sum(c.impressions for c in campaigns)
    total_clicks = sum(c.clicks for c in campaigns)
    return AdvertiserMetrics(
        owner_id=owner_id,
        total_ads=len(campaigns),
        total_impressions=total_impressions,
        total_clicks=total_clicks,
        average_ctr=ctr(total_impressions, total_clicks),
        ads=[campaign_metrics(c) for c in campaigns],
    )


class AnalyticsAggregator:
    """Computes engagement dashboards from stored counters"""

    def __init__(self, repository: AdRepositoryProtocol):
        self.repository = repository

    async def per_campaign(self, campaign_id: str, actor: Actor) -> CampaignMetrics:
        campaign = await self.repository.get_campaign(campaign_id)
        if campaign is None:
            raise NotFoundError()
        if not (actor.is_admin or campaign.is_owned_by(actor.user_id)):
            raise UnauthorizedError()
        return campaign_metrics(campaign)

    async def per_advertiser(self, owner_id: str, actor: Actor) -> AdvertiserMetrics:
        if not (actor.is_admin or actor.user_id == owner_id):
            raise UnauthorizedError()
        campaigns = await self.repository.list_by_owner(owner_id)
        return summarize(owner_id, campaigns)


__all__ = ["AnalyticsAggregator", "campaign_metrics", "summarize"]
