"""
Ad Pricing

Duration-based pricing: a per-day rate for the ad type times the number of
started days the campaign runs.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Mapping, Optional, Union

from core.config import AdEngineConfig, FALLBACK_RATE_TYPE

from .models import AdType
from .protocols import InvalidDurationError, InvalidPriceError, InvalidRangeError


def duration_days(start_date: datetime, end_date: datetime) -> int:
    """Whole days between two instants, counting a partial day as a full one"""
    delta: timedelta = end_date - start_date
    partial = 1 if (delta.seconds or delta.microseconds) else 0
    return delta.days + partial


def _is_naive(value: datetime) -> bool:
    return value.tzinfo is None or value.utcoffset() is None


class PricingEngine:
    """Computes campaign prices from the rate card"""

    def __init__(self, config: Optional[AdEngineConfig] = None):
        self.config = config or AdEngineConfig()

    @property
    def rates(self) -> Mapping[str, Decimal]:
        return self.config.rates

    def rate_per_day(self, ad_type: Union[AdType, str]) -> Decimal:
        """Daily rate for an ad type; unknown types are billed at the INLINE rate"""
        key = ad_type.value if isinstance(ad_type, AdType) else str(ad_type)
        rate = self.rates.get(key)
        if rate is None:
            rate = self.rates[FALLBACK_RATE_TYPE]
        return Decimal(rate)

    def duration_days(self, start_date: datetime, end_date: datetime) -> int:
        """Validated billable days for a date range"""
        if _is_naive(start_date) or _is_naive(end_date):
            raise InvalidRangeError("Start and end dates must include a timezone", "start_date")
        if end_date <= start_date:
            raise InvalidRangeError("End date must be after start date", "end_date")

        days = duration_days(start_date, end_date)
        if days < self.config.min_duration_days:
            raise InvalidDurationError(
                f"Ad duration must be at least {self.config.min_duration_days} day(s)", days
            )
        if days > self.config.max_duration_days:
            raise InvalidDurationError(
                f"Ad duration cannot exceed {self.config.max_duration_days} days", days
            )
        return days

    def price(
        self,
        ad_type: Union[AdType, str],
        start_date: datetime,
        end_date: datetime,
        override: Optional[Decimal] = None,
    ) -> Decimal:
        """
        Price a campaign.

        Args:
            ad_type: Creative type being booked
            start_date: Campaign start
            end_date: Campaign end, strictly after start
            override: Manual price replacing the computed one. Negative
                overrides are rejected, which is stricter than a plain
                replacement of the computed price.

        Returns:
            Price in the configured currency

        Raises:
            InvalidRangeError: end_date is not after start_date, or a date
                lacks a timezone
            InvalidDurationError: duration outside configured bounds
            InvalidPriceError: negative override
        """
        days = self.duration_days(start_date, end_date)

        if override is not None:
            override = Decimal(override)
            if override < 0:
                raise InvalidPriceError("Price cannot be negative", "price")
            return override

        return self.rate_per_day(ad_type) * days


__all__ = ["PricingEngine", "duration_days"]
