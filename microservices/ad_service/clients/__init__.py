"""
Ad Service Clients

Clients for calling other services.
"""

from .analytics_client import GA4AnalyticsClient
from .notification_client import NotificationClient

__all__ = [
    "GA4AnalyticsClient",
    "NotificationClient",
]
