"""
GA4 Measurement Protocol Client

Sends server-side ad engagement events to Google Analytics 4.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx

from core.config import ServiceConfig, get_settings

logger = logging.getLogger(__name__)

GA4_COLLECT_URL = "https://www.google-analytics.com/mp/collect"


class GA4AnalyticsClient:
    """Client for the GA4 Measurement Protocol"""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or get_settings().services
        self.measurement_id = config.ga4_measurement_id
        self.api_secret = config.ga4_api_secret
        self.timeout = config.ga4_timeout
        self.transport = transport
        self.enabled = bool(config.ga4_enabled and self.measurement_id and self.api_secret)

        if self.enabled:
            logger.info("GA4 client initialized")
        else:
            logger.warning("GA4 client disabled - missing configuration")

    @staticmethod
    def generate_client_id() -> str:
        return f"server.{int(time.time() * 1000)}.{uuid.uuid4().hex[:12]}"

    async def send_event(
        self,
        event_name: str,
        params: Dict[str, Any],
        client_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """
        Send one event to GA4.

        A non-2xx response is logged; transport errors are logged and raised.
        """
        if not self.enabled:
            return

        payload: Dict[str, Any] = {
            "client_id": client_id or self.generate_client_id(),
            "events": [{"name": event_name, "params": params}],
        }
        if user_id:
            payload["user_id"] = user_id

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    GA4_COLLECT_URL,
                    params={"measurement_id": self.measurement_id, "api_secret": self.api_secret},
                    json=payload,
                )
            if response.is_error:
                logger.error(f"GA4 event failed: {response.status_code} {response.reason_phrase}")

        except Exception as e:
            logger.error(f"Failed to send GA4 event {event_name}: {e}")
            raise

    async def track_impression(self, campaign_id: str, title: Optional[str] = None) -> None:
        await self.send_event("ad_impression", {"ad_id": campaign_id, "ad_title": title})

    async def track_click(self, campaign_id: str, title: Optional[str] = None) -> None:
        await self.send_event("ad_click", {"ad_id": campaign_id, "ad_title": title})


__all__ = ["GA4AnalyticsClient", "GA4_COLLECT_URL"]
