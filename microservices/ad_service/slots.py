"""
Slot Resolution

Maps a page slot name to the ad types and positions allowed to fill it.
"""

from datetime import datetime
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from .models import AdStatus, AdType, SlotFilter, SlotResolution, utc_now


SLOT_TYPES: Mapping[str, FrozenSet[AdType]] = MappingProxyType({
    "HEADER": frozenset({AdType.BANNER_TOP}),
    "TOP_BANNER": frozenset({AdType.BANNER_TOP}),
    "SIDEBAR": frozenset({AdType.BANNER_SIDE}),
    "INLINE": frozenset({AdType.INLINE}),
    "FOOTER": frozenset({AdType.FOOTER}),
    "MID_PAGE": frozenset({AdType.INLINE, AdType.BANNER_TOP}),
    "BETWEEN_SECTIONS": frozenset({AdType.INLINE, AdType.BANNER_TOP}),
    "MOBILE": frozenset({AdType.BANNER_SIDE, AdType.BANNER_TOP, AdType.INLINE}),
})

SLOT_POSITIONS: Mapping[str, FrozenSet[str]] = MappingProxyType({
    "HEADER": frozenset({"HEADER"}),
    "TOP_BANNER": frozenset({"TOP_BANNER", "HEADER"}),
    "SIDEBAR": frozenset({"SIDEBAR"}),
    "INLINE": frozenset({"INLINE", "INLINE_ARTICLE"}),
    "FOOTER": frozenset({"FOOTER"}),
    "MID_PAGE": frozenset({"MID_PAGE", "INLINE", "INLINE_ARTICLE"}),
    "BETWEEN_SECTIONS": frozenset({"BETWEEN_SECTIONS", "INLINE", "INLINE_ARTICLE"}),
    "MOBILE": frozenset({"MOBILE"}),
})


class SlotResolver:
    """Resolves slot names against the static slot tables"""

    def __init__(
        self,
        slot_types: Mapping[str, FrozenSet[AdType]] = SLOT_TYPES,
        slot_positions: Mapping[str, FrozenSet[str]] = SLOT_POSITIONS,
    ):
        self._slot_types = slot_types
        self._slot_positions = slot_positions

    def resolve(self, slot_name: str) -> SlotResolution:
        """
        Eligible types and positions for a slot.

        Unknown slots allow no ad types and only a position equal to the slot
        name, so advertisers can target custom placements by tag.
        """
        return SlotResolution(
            slot_name=slot_name,
            allowed_types=frozenset(self._slot_types.get(slot_name, frozenset())),
            allowed_positions=frozenset(self._slot_positions.get(slot_name, frozenset({slot_name}))),
        )

    def build_filter(self, slot_name: str, now: Optional[datetime] = None) -> SlotFilter:
        """Store query for ACTIVE campaigns running at ``now`` that fit the slot"""
        resolution = self.resolve(slot_name)
        return SlotFilter(
            slot_name=slot_name,
            now=now or utc_now(),
            status=AdStatus.ACTIVE,
            allowed_types=resolution.allowed_types,
            allowed_positions=resolution.allowed_positions,
        )


__all__ = ["SLOT_TYPES", "SLOT_POSITIONS", "SlotResolver"]
