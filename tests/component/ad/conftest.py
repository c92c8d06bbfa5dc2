"""
Component Test Fixtures for Ad Service

Provides an in-memory repository with atomic counters and compare-and-set,
plus recording doubles for the notification, analytics and event bus
collaborators.
"""

import asyncio
import random
import threading
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import AdEngineConfig
from microservices.ad_service.ad_service import AdService
from microservices.ad_service.models import BLOCKING_TRANSACTION_STATUSES, TransactionStatus
from tests.contracts.ad.data_contract import (
    AdStatus,
    AdTestDataFactory,
    Campaign,
    CounterField,
    SlotFilter,
)


# ====================
# Mock Repository
# ====================


class MockAdRepository:
    """In-memory repository for component testing"""

    def __init__(self):
        self.campaigns: Dict[str, Campaign] = {}
        self.transactions: Dict[str, List[TransactionStatus]] = {}
        self._lock = threading.Lock()
        self.fail_with: Optional[Exception] = None

    async def initialize(self):
        pass

    async def close(self):
        pass

    def _check(self):
        if self.fail_with:
            raise self.fail_with

    def add(self, *campaigns: Campaign) -> None:
        for campaign in campaigns:
            self.campaigns[campaign.campaign_id] = campaign

    def add_transaction(self, campaign_id: str, status: TransactionStatus) -> None:
        self.transactions.setdefault(campaign_id, []).append(status)

    async def find_eligible(self, slot_filter: SlotFilter) -> List[Campaign]:
        self._check()
        return [c for c in self.campaigns.values() if slot_filter.matches(c)]

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        self._check()
        return self.campaigns.get(campaign_id)

    async def list_by_owner(self, owner_id: str) -> List[Campaign]:
        return [c for c in self.campaigns.values() if c.owner_id == owner_id]

    async def list_expirable(self, now) -> List[Campaign]:
        return [
            c for c in self.campaigns.values()
            if c.status in (AdStatus.ACTIVE, AdStatus.PAUSED) and c.end_date < now
        ]

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        self._check()
        self.campaigns[campaign.campaign_id] = campaign
        return campaign

    async def update_campaign(self, campaign_id: str, updates: Dict[str, Any]) -> Optional[Campaign]:
        with self._lock:
            current = self.campaigns.get(campaign_id)
            if current is None:
                return None
            updated = current.model_copy(update=updates)
            self.campaigns[campaign_id] = updated
            return updated

    async def has_active_transactions(self, campaign_id: str) -> bool:
        return any(s in BLOCKING_TRANSACTION_STATUSES for s in self.transactions.get(campaign_id, []))

    async def delete_campaign(self, campaign_id: str) -> bool:
        with self._lock:
            if campaign_id not in self.campaigns:
                return False
            if any(s in BLOCKING_TRANSACTION_STATUSES for s in self.transactions.get(campaign_id, [])):
                return False
            del self.campaigns[campaign_id]
            return True

    async def increment_counter(self, campaign_id: str, field: CounterField) -> Optional[Campaign]:
        # Yield first so concurrent callers interleave around the locked section
        await asyncio.sleep(0)
        with self._lock:
            current = self.campaigns.get(campaign_id)
            if current is None:
                return None
            column = CounterField(field).value
            updated = current.model_copy(update={column: getattr(current, column) + 1})
            self.campaigns[campaign_id] = updated
            return updated

    async def compare_and_set_status(
        self, campaign_id: str, expected: AdStatus, new_status: AdStatus, **fields: Any
    ) -> Optional[Campaign]:
        with self._lock:
            current = self.campaigns.get(campaign_id)
            if current is None or current.status != expected:
                return None
            updated = current.model_copy(update={**fields, "status": new_status})
            self.campaigns[campaign_id] = updated
            return updated


# ====================
# Mock Collaborators
# ====================


class MockNotificationClient:
    """Records notifications; optionally fails"""

    def __init__(self):
        self.approved: List[Campaign] = []
        self.rejected: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    async def notify_approved(self, campaign: Campaign) -> None:
        if self.fail_with:
            raise self.fail_with
        self.approved.append(campaign)

    async def notify_rejected(self, campaign: Campaign, reason: str) -> None:
        if self.fail_with:
            raise self.fail_with
        self.rejected.append((campaign, reason))


class MockAnalyticsCollector:
    """Records tracked engagement; optionally fails"""

    def __init__(self):
        self.impressions: List[tuple] = []
        self.clicks: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    async def track_impression(self, campaign_id: str, title: Optional[str] = None) -> None:
        if self.fail_with:
            raise self.fail_with
        self.impressions.append((campaign_id, title))

    async def track_click(self, campaign_id: str, title: Optional[str] = None) -> None:
        if self.fail_with:
            raise self.fail_with
        self.clicks.append((campaign_id, title))


class MockEventBus:
    """Mock for NATS event bus"""

    def __init__(self):
        self.published_events: List[Any] = []
        self.subscriptions: Dict[str, Any] = {}
        self.fail_with: Optional[Exception] = None

    async def publish_event(self, event: Any) -> bool:
        if self.fail_with:
            raise self.fail_with
        self.published_events.append(event)
        return True

    async def subscribe(self, subject: str, handler: Any, durable: Optional[str] = None) -> None:
        self.subscriptions[subject] = handler

    async def close(self) -> None:
        pass

    def types(self) -> List[str]:
        return [e.type for e in self.published_events]


# ====================
# Fixtures
# ====================


@pytest.fixture
def mock_repository():
    return MockAdRepository()


@pytest.fixture
def mock_notification_client():
    return MockNotificationClient()


@pytest.fixture
def mock_analytics_client():
    return MockAnalyticsCollector()


@pytest.fixture
def mock_event_bus():
    return MockEventBus()


@pytest_asyncio.fixture
async def ad_service(mock_repository, mock_event_bus, mock_notification_client, mock_analytics_client):
    service = AdService(
        repository=mock_repository,
        event_bus=mock_event_bus,
        notification_client=mock_notification_client,
        analytics_client=mock_analytics_client,
        config=AdEngineConfig(),
        rng=random.Random(1234),
    )
    yield service
    await service.close()


@pytest.fixture
def admin():
    return AdTestDataFactory.make_admin()
