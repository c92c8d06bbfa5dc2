"""
NATS JetStream Client for Python Microservices

Thin async wrapper around nats-py providing an event envelope, JetStream
publishing and durable push subscriptions.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import nats
from nats.aio.client import Client as NATSConnection
from nats.js import JetStreamContext
from nats.js.errors import BadRequestError

from core.config import InfraConfig, get_settings

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles Decimal, datetime and Enum types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class ServiceSource(Enum):
    """Services that publish or consume ad engine events"""

    AD_SERVICE = "ad_service"
    PAYMENT_SERVICE = "payment_service"
    NOTIFICATION_SERVICE = "notification_service"


class Event:
    """Event envelope"""

    def __init__(
        self,
        event_type: str,
        source: ServiceSource,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value if isinstance(event_type, Enum) else event_type
        self.source = source.value
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        event = cls.__new__(cls)
        event.id = data.get("id")
        event.type = data.get("type")
        event.source = data.get("source")
        event.subject = data.get("subject")
        event.timestamp = data.get("timestamp")
        event.data = data.get("data", {})
        event.metadata = data.get("metadata", {})
        event.version = data.get("version", "1.0.0")
        return event


EventCallback = Callable[[Event], Awaitable[None]]


class NATSEventBus:
    """
    NATS JetStream event bus.

    Events are published to the subject named by their type and stored in a
    stream named after the subject's first token (``ad.approved`` goes to
    ``ad-stream``).
    """

    def __init__(self, service_name: str, config: Optional[InfraConfig] = None):
        self.service_name = service_name
        self.config = config or get_settings().infrastructure
        self.servers = self.config.nats_servers

        self._nc: Optional[NATSConnection] = None
        self._js: Optional[JetStreamContext] = None
        self._subscriptions: Dict[str, Any] = {}
        self._streams: List[str] = []

        logger.info(f"NATS EventBus initialized: {self.servers}")

    async def connect(self):
        """Connect to NATS and open a JetStream context"""
        try:
            self._nc = await nats.connect(servers=self.servers, name=self.service_name)
            self._js = self._nc.jetstream()
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

    @staticmethod
    def stream_name_for(subject: str) -> str:
        """Stream holding a subject: first subject token plus ``-stream``"""
        return f"{subject.split('.', 1)[0]}-stream"

    async def _ensure_stream(self, subject: str) -> str:
        stream_name = self.stream_name_for(subject)
        if stream_name in self._streams:
            return stream_name
        prefix = subject.split(".", 1)[0]
        try:
            await self._js.add_stream(name=stream_name, subjects=[f"{prefix}.>"])
        except BadRequestError as e:
            # Stream already exists with a compatible config
            logger.debug(f"Stream creation note: {e}")
        self._streams.append(stream_name)
        return stream_name

    async def publish_event(self, event: Event) -> bool:
        """
        Publish an event to NATS JetStream.

        Returns:
            True if the server acknowledged the message, False otherwise
        """
        if not self.is_connected:
            logger.error("Not connected to NATS")
            return False

        subject = event.subject or event.type
        try:
            stream_name = await self._ensure_stream(subject)
            payload = json.dumps(event.to_dict(), cls=DecimalEncoder).encode()
            ack = await self._js.publish(subject, payload)
            logger.info(f"Published event {event.type} [{event.id}] to stream {stream_name}, seq={ack.seq}")
            return True
        except Exception as e:
            logger.error(f"Error publishing event {event.id}: {e}")
            return False

    async def subscribe(
        self,
        subject: str,
        handler: EventCallback,
        durable: Optional[str] = None,
    ) -> None:
        """
        Subscribe to events with a durable JetStream consumer.

        Messages are acked after the handler returns and nak'd when it raises,
        so the server redelivers them.
        """
        if not self.is_connected:
            raise RuntimeError("Not connected to NATS")

        await self._ensure_stream(subject)

        async def _on_message(msg):
            try:
                raw = json.loads(msg.data.decode())
                if "type" in raw and "data" in raw:
                    event = Event.from_dict(raw)
                else:
                    event = Event(msg.subject, ServiceSource.PAYMENT_SERVICE, raw)
                    logger.debug(f"Wrapped raw event data in Event envelope: {event.type}")
                await handler(event)
                await msg.ack()
            except Exception as e:
                logger.error(f"Error processing message on {msg.subject}: {e}")
                await msg.nak()

        durable_name = durable or f"{self.service_name}-{subject.replace('.', '-').replace('>', 'all').replace('*', 'any')}"
        sub = await self._js.subscribe(subject, cb=_on_message, durable=durable_name, manual_ack=True)
        self._subscriptions[subject] = sub
        logger.info(f"Subscribed to {subject} (durable={durable_name})")

    async def unsubscribe(self, subject: str) -> bool:
        """Drop a subscription"""
        sub = self._subscriptions.pop(subject, None)
        if sub is None:
            return False
        await sub.unsubscribe()
        logger.info(f"Unsubscribed from {subject}")
        return True

    async def close(self):
        """Drain subscriptions and close the connection"""
        for subject in list(self._subscriptions):
            await self.unsubscribe(subject)

        if self._nc:
            await self._nc.drain()
            self._nc = None
            self._js = None

        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._nc is not None and self._nc.is_connected


__all__ = [
    "DecimalEncoder",
    "ServiceSource",
    "Event",
    "NATSEventBus",
]
