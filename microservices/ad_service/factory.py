"""
Ad Service Factory

Factory for creating ad service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config import AdEngineSettings, get_settings
from core.logger import setup_service_logger
from core.nats_client import NATSEventBus

from .ad_repository import AdRepository
from .ad_service import AdService
from .clients.analytics_client import GA4AnalyticsClient
from .clients.notification_client import NotificationClient
from .events.handlers import AdEventHandler
from .events.models import AdSubscribedEventType

logger = logging.getLogger(__name__)


class AdServiceFactory:
    """Factory for creating ad service components"""

    def __init__(self, settings: Optional[AdEngineSettings] = None):
        self.settings = settings or get_settings()
        self._repository: Optional[AdRepository] = None
        self._service: Optional[AdService] = None
        self._nats_client: Optional[NATSEventBus] = None
        self._event_handler: Optional[AdEventHandler] = None
        self._notification_client: Optional[NotificationClient] = None
        self._analytics_client: Optional[GA4AnalyticsClient] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        setup_service_logger("ad_service")
        logger.info("Initializing Ad Service components...")

        # Initialize repository
        self._repository = AdRepository(self.settings.infrastructure)
        await self._repository.initialize()

        # Initialize NATS client
        try:
            self._nats_client = NATSEventBus(
                service_name="ad_service",
                config=self.settings.infrastructure,
            )
            await self._nats_client.connect()
            logger.info("NATS client connected")
        except Exception as e:
            logger.warning(f"NATS client initialization failed: {e}")
            self._nats_client = None

        # Initialize service clients
        self._notification_client = NotificationClient(self.settings.services)
        self._analytics_client = GA4AnalyticsClient(self.settings.services)

        # Initialize main service
        self._service = AdService(
            repository=self._repository,
            event_bus=self._nats_client,
            notification_client=self._notification_client,
            analytics_client=self._analytics_client,
            config=self.settings.ads,
        )

        # Initialize event handler
        self._event_handler = AdEventHandler(ad_service=self._service)
        if self._nats_client:
            for event_type in AdSubscribedEventType:
                await self._nats_client.subscribe(
                    event_type.value,
                    self._event_handler.handle_bus_event,
                    durable=f"ad-service-{event_type.value.replace('.', '-').replace('_', '-')}",
                )

        logger.info("Ad Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Ad Service components...")

        if self._service:
            await self._service.close()

        if self._nats_client:
            await self._nats_client.close()

        if self._repository:
            await self._repository.close()

        logger.info("Ad Service components closed")

    @property
    def repository(self) -> AdRepository:
        """Get ad repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> AdService:
        """Get ad service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def nats_client(self) -> Optional[NATSEventBus]:
        """Get NATS client"""
        return self._nats_client

    @property
    def event_handler(self) -> AdEventHandler:
        """Get event handler"""
        if not self._event_handler:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._event_handler


# Global factory instance
_factory: Optional[AdServiceFactory] = None


async def get_factory() -> AdServiceFactory:
    """Get or create factory instance"""
    global _factory
    if _factory is None:
        _factory = AdServiceFactory()
        await _factory.initialize()
    return _factory


async def close_factory() -> None:
    """Close factory instance"""
    global _factory
    if _factory:
        await _factory.close()
        _factory = None


__all__ = [
    "AdServiceFactory",
    "get_factory",
    "close_factory",
]
