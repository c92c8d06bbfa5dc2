"""
Ad Rotation

Weighted random selection favouring campaigns with fewer impressions.
"""

import random
from typing import List, Optional, Sequence

from .models import AdType, Campaign


def rotation_weight(campaign: Campaign) -> float:
    return 1.0 / (1 + campaign.impressions)


class RotationSelector:
    """Picks which eligible campaign(s) to show"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def pick(self, pool: Sequence[Campaign]) -> Campaign:
        """Draw one campaign with probability proportional to its weight"""
        weights = [rotation_weight(c) for c in pool]
        remaining = self.rng.uniform(0, sum(weights))

        for campaign, weight in zip(pool, weights):
            remaining -= weight
            if remaining <= 0:
                return campaign

        # Rounding left a sliver past the last weight
        return pool[0]

    def select(self, pool: Sequence[Campaign], limit: int) -> List[Campaign]:
        """
        Select campaigns to render.

        A SLIDER winner expands into the first ``limit`` campaigns of the pool,
        any other winner is returned alone. The pool is never modified.
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if not pool:
            return []

        winner = self.pick(pool)
        if winner.ad_type == AdType.SLIDER:
            return list(pool[:limit])
        return [winner]


__all__ = ["RotationSelector", "rotation_weight"]
