#!/usr/bin/env python3
"""Service configuration for collaborator services

Endpoints and credentials for the services the ad engine notifies:
the notification service and the GA4 analytics collector.
"""
import os
from dataclasses import dataclass
from typing import Optional

def _bool(val: str) -> bool:
    return val.lower() == "true"


@dataclass
class ServiceConfig:
    """Collaborator service endpoints"""

    # ===========================================
    # Notification service (advertiser emails)
    # ===========================================
    notification_service_url: str = "http://localhost:8206"
    notification_timeout: float = 10.0

    # ===========================================
    # GA4 Measurement Protocol
    # ===========================================
    ga4_enabled: bool = False
    ga4_measurement_id: Optional[str] = None
    ga4_api_secret: Optional[str] = None
    ga4_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        return cls(
            notification_service_url=os.getenv("NOTIFICATION_SERVICE_URL", "http://localhost:8206"),
            notification_timeout=float(os.getenv("NOTIFICATION_TIMEOUT", "10.0")),
            ga4_enabled=_bool(os.getenv("GA4_ENABLED", "false")),
            ga4_measurement_id=os.getenv("GA4_MEASUREMENT_ID"),
            ga4_api_secret=os.getenv("GA4_API_SECRET"),
            ga4_timeout=float(os.getenv("GA4_TIMEOUT", "5.0")),
        )
