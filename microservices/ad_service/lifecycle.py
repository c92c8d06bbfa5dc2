"""
Campaign Lifecycle State Machine

Explicit transition table keyed by (status, event). Each entry is an ordered
list of rules; the first rule whose guard passes decides the outcome, either
a next status with field effects or a business error.

The machine is pure: it never mutates the campaign it is given and performs
no I/O. Side effects are returned as outbox events for the caller to deliver
after the new state is persisted.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from .events.models import (
    AdApprovedNotification,
    AdLifecycleChanged,
    AdLifecycleEventData,
    AdRejectedNotification,
    OutboxEvent,
)
from .models import (
    Actor,
    AdStatus,
    Campaign,
    CampaignUpdateRequest,
    LifecycleEvent,
    RejectRequest,
    Role,
    utc_now,
)
from .protocols import (
    AdServiceError,
    CampaignExpiredError,
    CampaignValidationError,
    InvalidRangeError,
    InvalidStateError,
    PaymentRequiredError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

Payload = Union[RejectRequest, CampaignUpdateRequest, None]


@dataclass(frozen=True)
class TransitionContext:
    """Inputs available to guards and effects"""
    actor: Actor
    now: datetime
    payload: Payload = None


Guard = Callable[[Campaign, TransitionContext], bool]
Effect = Callable[[Campaign, TransitionContext], Dict[str, Any]]
ErrorFactory = Callable[[Campaign], AdServiceError]


def _always(campaign: Campaign, ctx: TransitionContext) -> bool:
    return True


def _no_effect(campaign: Campaign, ctx: TransitionContext) -> Dict[str, Any]:
    return {}


@dataclass(frozen=True)
class TransitionRule:
    """One guarded outcome for a (status, event) pair"""
    guard: Guard = _always
    next_status: Optional[AdStatus] = None
    effect: Effect = _no_effect
    error: Optional[ErrorFactory] = None


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of applying an event to a campaign"""
    campaign: Campaign
    previous_status: AdStatus
    event: LifecycleEvent
    changes: Dict[str, Any] = field(default_factory=dict)
    outbox: List[OutboxEvent] = field(default_factory=list)

    @property
    def status_changed(self) -> bool:
        return self.campaign.status != self.previous_status


# ====================
# Guards
# ====================


def _unpaid(campaign: Campaign, ctx: TransitionContext) -> bool:
    return not campaign.is_paid


def _ended(campaign: Campaign, ctx: TransitionContext) -> bool:
    return campaign.end_date < ctx.now


def _not_ended(campaign: Campaign, ctx: TransitionContext) -> bool:
    return campaign.end_date >= ctx.now


def _unpaid_and_not_started(campaign: Campaign, ctx: TransitionContext) -> bool:
    return campaign.start_date > ctx.now and not campaign.is_paid


# ====================
# Effects
# ====================


def _clear_rejection(campaign: Campaign, ctx: TransitionContext) -> Dict[str, Any]:
    return {"rejection_reason": None}


def _store_rejection(campaign: Campaign, ctx: TransitionContext) -> Dict[str, Any]:
    if not isinstance(ctx.payload, RejectRequest):
        raise CampaignValidationError("Rejection reason is required", "reason")
    return {"rejection_reason": ctx.payload.reason}


def _mark_paid(campaign: Campaign, ctx: TransitionContext) -> Dict[str, Any]:
    return {"is_paid": True}


def _apply_edit(campaign: Campaign, ctx: TransitionContext) -> Dict[str, Any]:
    if not isinstance(ctx.payload, CampaignUpdateRequest):
        raise CampaignValidationError("Update payload is required")
    changes = ctx.payload.changes()
    start = changes.get("start_date", campaign.start_date)
    end = changes.get("end_date", campaign.end_date)
    if end <= start:
        raise InvalidRangeError("End date must be after start date", "end_date")
    return changes


# ====================
# Transition Table
# ====================


def _payment_required(campaign: Campaign) -> AdServiceError:
    return PaymentRequiredError("Cannot approve unpaid campaign")


def _expired(campaign: Campaign) -> AdServiceError:
    return CampaignExpiredError("Campaign has expired and cannot be resumed")


def _not_yet_ended(campaign: Campaign) -> AdServiceError:
    return InvalidStateError("Campaign has not reached its end date", campaign.status)


_EDIT = (TransitionRule(effect=_apply_edit),)
_DELETE = (TransitionRule(),)
_PAID_IN_PLACE = (TransitionRule(effect=_mark_paid),)
_EXPIRE = (
    TransitionRule(guard=_not_ended, error=_not_yet_ended),
    TransitionRule(next_status=AdStatus.EXPIRED),
)

TRANSITIONS: Mapping[Tuple[AdStatus, LifecycleEvent], Sequence[TransitionRule]] = MappingProxyType({
    (AdStatus.PENDING, LifecycleEvent.APPROVE): (
        TransitionRule(guard=_unpaid, error=_payment_required),
        TransitionRule(next_status=AdStatus.ACTIVE, effect=_clear_rejection),
    ),
    (AdStatus.PENDING, LifecycleEvent.REJECT): (
        TransitionRule(next_status=AdStatus.REJECTED, effect=_store_rejection),
    ),
    (AdStatus.PENDING, LifecycleEvent.PAYMENT_SUCCEEDED): (
        TransitionRule(next_status=AdStatus.ACTIVE, effect=_mark_paid),
    ),
    (AdStatus.ACTIVE, LifecycleEvent.PAYMENT_SUCCEEDED): _PAID_IN_PLACE,
    (AdStatus.PAUSED, LifecycleEvent.PAYMENT_SUCCEEDED): _PAID_IN_PLACE,
    (AdStatus.ACTIVE, LifecycleEvent.PAUSE): (
        TransitionRule(next_status=AdStatus.PAUSED),
    ),
    (AdStatus.PAUSED, LifecycleEvent.RESUME): (
        TransitionRule(guard=_ended, error=_expired),
        TransitionRule(guard=_unpaid_and_not_started, next_status=AdStatus.PENDING),
        TransitionRule(next_status=AdStatus.ACTIVE),
    ),
    (AdStatus.PENDING, LifecycleEvent.EDIT): _EDIT,
    (AdStatus.ACTIVE, LifecycleEvent.EDIT): _EDIT,
    (AdStatus.PAUSED, LifecycleEvent.EDIT): _EDIT,
    (AdStatus.ACTIVE, LifecycleEvent.EXPIRE): _EXPIRE,
    (AdStatus.PAUSED, LifecycleEvent.EXPIRE): _EXPIRE,
    **{(status, LifecycleEvent.DELETE): _DELETE for status in AdStatus},
})


# ====================
# Authorization
# ====================


ADMIN_ONLY_EVENTS = frozenset({LifecycleEvent.APPROVE, LifecycleEvent.REJECT})
OWNER_EVENTS = frozenset({
    LifecycleEvent.PAUSE,
    LifecycleEvent.RESUME,
    LifecycleEvent.EDIT,
    LifecycleEvent.DELETE,
})
SYSTEM_EVENTS = frozenset({LifecycleEvent.PAYMENT_SUCCEEDED, LifecycleEvent.EXPIRE})


def is_authorized(actor: Actor, campaign: Campaign, event: LifecycleEvent) -> bool:
    """Whether the actor may fire the event on the campaign"""
    if actor.is_admin:
        return True
    if event in OWNER_EVENTS:
        return actor.role == Role.ADVERTISER and campaign.is_owned_by(actor.user_id)
    if event in SYSTEM_EVENTS:
        return actor.is_system
    return False


class LifecycleStateMachine:
    """Applies lifecycle events to campaigns using the transition table"""

    def __init__(
        self,
        transitions: Mapping[Tuple[AdStatus, LifecycleEvent], Sequence[TransitionRule]] = TRANSITIONS,
    ):
        self.transitions = transitions

    def can_apply(self, status: AdStatus, event: LifecycleEvent) -> bool:
        return (status, event) in self.transitions

    def apply(
        self,
        campaign: Campaign,
        event: LifecycleEvent,
        actor: Actor,
        payload: Payload = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Apply an event to a campaign.

        Returns:
            TransitionResult with a new campaign copy and the outbox events

        Raises:
            UnauthorizedError: actor may not fire the event
            InvalidStateError: event not allowed from the current status
            AdServiceError: a guard rejected the transition
        """
        if not is_authorized(actor, campaign, event):
            raise UnauthorizedError()

        rules = self.transitions.get((campaign.status, event))
        if not rules:
            raise InvalidStateError(
                f"Cannot {event.value} a campaign in status {campaign.status.value}",
                campaign.status,
            )

        ctx = TransitionContext(actor=actor, now=now or utc_now(), payload=payload)
        rule = next(r for r in rules if r.guard(campaign, ctx))
        if rule.error is not None:
            raise rule.error(campaign)

        changes = rule.effect(campaign, ctx)
        next_status = rule.next_status or campaign.status
        updated = self._build(campaign, next_status, changes, ctx.now)

        outbox: List[OutboxEvent] = [
            AdLifecycleChanged(
                campaign_id=campaign.campaign_id,
                data=AdLifecycleEventData(
                    campaign_id=campaign.campaign_id,
                    owner_id=campaign.owner_id,
                    event=event,
                    previous_status=campaign.status,
                    new_status=next_status,
                    actor_id=actor.user_id,
                    changed_fields=sorted(changes),
                    reason=updated.rejection_reason if event == LifecycleEvent.REJECT else None,
                ),
            )
        ]
        if event == LifecycleEvent.APPROVE:
            outbox.append(AdApprovedNotification(campaign_id=campaign.campaign_id, campaign=updated))
        elif event == LifecycleEvent.REJECT:
            outbox.append(AdRejectedNotification(
                campaign_id=campaign.campaign_id,
                campaign=updated,
                reason=updated.rejection_reason,
            ))

        logger.debug(
            f"Transition {campaign.campaign_id}: {campaign.status.value} --{event.value}--> {next_status.value}"
        )
        return TransitionResult(
            campaign=updated,
            previous_status=campaign.status,
            event=event,
            changes=changes,
            outbox=outbox,
        )

    @staticmethod
    def _build(
        campaign: Campaign,
        status: AdStatus,
        changes: Dict[str, Any],
        now: datetime,
    ) -> Campaign:
        data = campaign.model_dump()
        data.update(changes)
        data["status"] = status
        data["updated_at"] = now
        try:
            return Campaign.model_validate(data)
        except ValidationError as e:
            raise CampaignValidationError(f"Invalid campaign update: {e.errors()[0]['msg']}") from e


__all__ = [
    "TRANSITIONS",
    "TransitionContext",
    "TransitionRule",
    "TransitionResult",
    "LifecycleStateMachine",
    "is_authorized",
]
