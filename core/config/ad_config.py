#!/usr/bin/env python3
"""Ad engine business configuration

Pricing rates, duration bounds and serving defaults for the ad engine.
"""
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _decimal(val: str, default: Decimal) -> Decimal:
    try:
        return Decimal(val) if val else default
    except InvalidOperation:
        return default


# Daily rates in EUR per ad type
DEFAULT_AD_RATES: Dict[str, Decimal] = {
    "BANNER_TOP": Decimal("50"),
    "BANNER_SIDE": Decimal("25"),
    "INLINE": Decimal("15"),
    "FOOTER": Decimal("20"),
    "SLIDER": Decimal("30"),
    "TICKER": Decimal("10"),
    "POPUP": Decimal("40"),
    "STICKY": Decimal("35"),
}

FALLBACK_RATE_TYPE = "INLINE"


@dataclass
class AdEngineConfig:
    """Ad pricing and serving configuration"""
    min_duration_days: int = 1
    max_duration_days: int = 365
    rates: Dict[str, Decimal] = field(default_factory=lambda: dict(DEFAULT_AD_RATES))
    slider_limit: int = 5
    currency: str = "eur"

    @classmethod
    def from_env(cls) -> 'AdEngineConfig':
        """Load ad engine config from environment variables"""
        rates = {
            ad_type: _decimal(os.getenv(f"AD_RATE_{ad_type}", ""), default)
            for ad_type, default in DEFAULT_AD_RATES.items()
        }
        return cls(
            min_duration_days=_int(os.getenv("AD_MIN_DURATION_DAYS", "1"), 1),
            max_duration_days=_int(os.getenv("AD_MAX_DURATION_DAYS", "365"), 365),
            rates=rates,
            slider_limit=_int(os.getenv("AD_SLIDER_LIMIT", "5"), 5),
            currency=os.getenv("AD_CURRENCY", "eur"),
        )
