"""
Notification Service Client

Client for calling notification_service to email advertisers about
campaign review outcomes.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config import ServiceConfig, get_settings

from ..models import Campaign

logger = logging.getLogger(__name__)


class NotificationClient:
    """Client for notification_service"""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_attempts: int = 3,
        retry_wait=None,
    ):
        config = config or get_settings().services
        self.base_url = config.notification_service_url.rstrip("/")
        self.timeout = config.notification_timeout
        self.transport = transport
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    async def send_notification(
        self,
        user_id: str,
        subject: str,
        template: str,
        variables: Dict[str, Any],
        channel_type: str = "email",
    ) -> Dict[str, Any]:
        """
        Send a notification via notification_service.

        Transport failures are retried; HTTP error responses are not.

        Returns:
            Notification response with notification_id
        """
        request_data = {
            "user_id": user_id,
            "channel_type": channel_type,
            "content": {
                "subject": subject,
                "template": template,
                "variables": variables,
            },
        }

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self.retry_wait,
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                        response = await client.post(
                            f"{self.base_url}/api/v1/notifications",
                            json=request_data,
                        )
                        response.raise_for_status()
                        return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Error sending notification: {e.response.text}")
            raise

        except Exception as e:
            logger.error(f"Error sending notification: {e}")
            raise

    async def notify_approved(self, campaign: Campaign) -> None:
        """Email the owner that their campaign is live"""
        await self.send_notification(
            user_id=campaign.owner_id,
            subject="Your Ad Has Been Approved",
            template="ad_approved",
            variables={
                "ad_id": campaign.campaign_id,
                "ad_title": campaign.title,
                "ad_type": campaign.ad_type.value,
                "ad_start_date": campaign.start_date.date().isoformat(),
                "ad_end_date": campaign.end_date.date().isoformat(),
            },
        )
        logger.info(f"Approval notification sent for campaign {campaign.campaign_id}")

    async def notify_rejected(self, campaign: Campaign, reason: str) -> None:
        """Email the owner why their campaign was rejected"""
        await self.send_notification(
            user_id=campaign.owner_id,
            subject="Ad Review Update",
            template="ad_rejected",
            variables={
                "ad_id": campaign.campaign_id,
                "ad_title": campaign.title,
                "rejection_reason": reason,
            },
        )
        logger.info(f"Rejection notification sent for campaign {campaign.campaign_id}")


__all__ = ["NotificationClient"]
