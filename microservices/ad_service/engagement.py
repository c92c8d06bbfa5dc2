"""
Engagement Tracking

Impression and click counting through the store's atomic increment, plus
the click-through-rate formula shared with analytics.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from .events.models import AdClickTracked, AdImpressionTracked
from .models import CounterField
from .protocols import AdRepositoryProtocol, NotFoundError

logger = logging.getLogger(__name__)

_CTR_QUANTUM = Decimal("0.01")


def ctr(impressions: int, clicks: int) -> float:
    """Click-through rate as a percentage rounded half-up to two decimals"""
    if impressions <= 0:
        return 0.0
    rate = Decimal(clicks) * 100 / Decimal(impressions)
    return float(rate.quantize(_CTR_QUANTUM, rounding=ROUND_HALF_UP))


class EngagementCounter:
    """Records impressions and clicks without read-modify-write races"""

    def __init__(self, repository: AdRepositoryProtocol):
        self.repository = repository

    async def record_impression(self, campaign_id: str) -> AdImpressionTracked:
        campaign = await self.repository.increment_counter(campaign_id, CounterField.IMPRESSIONS)
        if campaign is None:
            raise NotFoundError()
        return AdImpressionTracked(campaign_id=campaign_id, title=campaign.title)

    async def record_click(self, campaign_id: str) -> AdClickTracked:
        campaign = await self.repository.increment_counter(campaign_id, CounterField.CLICKS)
        if campaign is None:
            raise NotFoundError()
        return AdClickTracked(campaign_id=campaign_id, title=campaign.title)


__all__ = ["ctr", "EngagementCounter"]
