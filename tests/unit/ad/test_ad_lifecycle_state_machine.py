"""
Unit Tests for the Campaign Lifecycle State Machine

Transition table, guards, authorization and outbox events.
"""

import pytest
from datetime import timedelta

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.ad_service.events.models import (
    AdApprovedNotification,
    AdEventType,
    AdLifecycleChanged,
    AdRejectedNotification,
)
from microservices.ad_service.lifecycle import TRANSITIONS, LifecycleStateMachine
from microservices.ad_service.protocols import (
    CampaignExpiredError,
    CampaignValidationError,
    InvalidRangeError,
    InvalidStateError,
    PaymentRequiredError,
    UnauthorizedError,
)
from tests.contracts.ad.data_contract import (
    NOW,
    AdStatus,
    AdTestDataFactory,
    CampaignUpdateRequest,
    LifecycleEvent,
    RejectRequest,
    Role,
)


@pytest.fixture
def machine():
    return LifecycleStateMachine()


@pytest.fixture
def admin():
    return AdTestDataFactory.make_admin()


@pytest.fixture
def owner():
    return AdTestDataFactory.make_advertiser()


class TestApprove:

    def test_paid_pending_becomes_active(self, machine, admin):
        campaign = AdTestDataFactory.make_pending_campaign(is_paid=True)
        result = machine.apply(campaign, LifecycleEvent.APPROVE, admin, now=NOW)

        assert result.campaign.status == AdStatus.ACTIVE
        assert result.previous_status == AdStatus.PENDING
        assert result.status_changed

    def test_unpaid_pending_requires_payment(self, machine, admin):
        campaign = AdTestDataFactory.make_pending_campaign(is_paid=False)
        with pytest.raises(PaymentRequiredError):
            machine.apply(campaign, LifecycleEvent.APPROVE, admin, now=NOW)

    def test_clears_rejection_reason(self, machine, admin):
        campaign = AdTestDataFactory.make_pending_campaign(
            is_paid=True, rejection_reason="Blurry image"
        )
        result = machine.apply(campaign, LifecycleEvent.APPROVE, admin, now=NOW)

        assert result.campaign.rejection_reason is None
        assert result.changes == {"rejection_reason": None}

    def test_emits_approval_notification(self, machine, admin):
        campaign = AdTestDataFactory.make_pending_campaign(is_paid=True)
        result = machine.apply(campaign, LifecycleEvent.APPROVE, admin, now=NOW)

        kinds = [type(e) for e in result.outbox]
        assert AdLifecycleChanged in kinds
        assert AdApprovedNotification in kinds
        lifecycle = next(e for e in result.outbox if isinstance(e, AdLifecycleChanged))
        assert lifecycle.data.event_type == AdEventType.APPROVED
        assert lifecycle.data.actor_id == admin.user_id

    @pytest.mark.parametrize("status", [AdStatus.ACTIVE, AdStatus.PAUSED, AdStatus.EXPIRED, AdStatus.REJECTED])
    def test_only_pending_can_be_approved(self, machine, admin, status):
        campaign = AdTestDataFactory.make_campaign(status=status, is_paid=True)
        with pytest.raises(InvalidStateError) as exc:
            machine.apply(campaign, LifecycleEvent.APPROVE, admin, now=NOW)
        assert exc.value.current_status == status

    def test_super_admin_may_approve(self, machine):
        campaign = AdTestDataFactory.make_pending_campaign(is_paid=True)
        actor = AdTestDataFactory.make_admin(Role.SUPER_ADMIN)
        assert machine.apply(campaign, LifecycleEvent.APPROVE, actor, now=NOW).campaign.status == AdStatus.ACTIVE

    @pytest.mark.parametrize("role", [Role.ADVERTISER, Role.EDITOR, Role.SYSTEM])
    def test_non_admin_cannot_approve(self, machine, role):
        campaign = AdTestDataFactory.make_pending_campaign(is_paid=True)
        actor = AdTestDataFactory.make_advertiser(campaign.owner_id).model_copy(update={"role": role})
        with pytest.raises(UnauthorizedError):
            machine.apply(campaign, LifecycleEvent.APPROVE, actor, now=NOW)


class TestReject:

    def test_pending_becomes_rejected_with_reason(self, machine, admin):
        campaign = AdTestDataFactory.make_pending_campaign()
        result = machine.apply(
            campaign, LifecycleEvent.REJECT, admin, RejectRequest(reason="Misleading claim"), now=NOW
        )

        assert result.campaign.status == AdStatus.REJECTED
        assert result.campaign.rejection_reason == "Misleading claim"
        notification = next(e for e in result.outbox if isinstance(e, AdRejectedNotification))
        assert notification.reason == "Misleading claim"

    def test_reason_required(self, machine, admin):
        campaign = AdTestDataFactory.make_pending_campaign()
        with pytest.raises(CampaignValidationError):
            machine.apply(campaign, LifecycleEvent.REJECT, admin, now=NOW)

    def test_active_cannot_be_rejected(self, machine, admin):
        campaign = AdTestDataFactory.make_campaign(status=AdStatus.ACTIVE)
        with pytest.raises(InvalidStateError):
            machine.apply(campaign, LifecycleEvent.REJECT, admin, RejectRequest(reason="x"), now=NOW)


class TestPaymentSucceeded:

    def test_pending_goes_live_and_paid(self, machine):
        campaign = AdTestDataFactory.make_pending_campaign(is_paid=False)
        result = machine.apply(
            campaign, LifecycleEvent.PAYMENT_SUCCEEDED, AdTestDataFactory.make_system(), now=NOW
        )
        assert result.campaign.status == AdStatus.ACTIVE
        assert result.campaign.is_paid

    @pytest.mark.parametrize("status", [AdStatus.ACTIVE, AdStatus.PAUSED])
    def test_live_campaign_marked_paid_in_place(self, machine, status):
        campaign = AdTestDataFactory.make_campaign(status=status, is_paid=True)
        result = machine.apply(
            campaign, LifecycleEvent.PAYMENT_SUCCEEDED, AdTestDataFactory.make_system(), now=NOW
        )
        assert result.campaign.status == status
        assert not result.status_changed

    def test_rejected_campaign_not_revived(self, machine):
        campaign = AdTestDataFactory.make_campaign(status=AdStatus.REJECTED, is_paid=False)
        with pytest.raises(InvalidStateError):
            machine.apply(campaign, LifecycleEvent.PAYMENT_SUCCEEDED, AdTestDataFactory.make_system(), now=NOW)

    def test_owner_cannot_mark_paid(self, machine):
        campaign = AdTestDataFactory.make_pending_campaign()
        owner = AdTestDataFactory.make_advertiser(campaign.owner_id)
        with pytest.raises(UnauthorizedError):
            machine.apply(campaign, LifecycleEvent.PAYMENT_SUCCEEDED, owner, now=NOW)


class TestPauseResume:

    def test_owner_pauses_active(self, machine):
        campaign = AdTestDataFactory.make_campaign(status=AdStatus.ACTIVE)
        owner = AdTestDataFactory.make_advertiser(campaign.owner_id)
        result = machine.apply(campaign, LifecycleEvent.PAUSE, owner, now=NOW)
        assert result.campaign.status == AdStatus.PAUSED

    @pytest.mark.parametrize("status", [AdStatus.PENDING, AdStatus.PAUSED, AdStatus.EXPIRED, AdStatus.REJECTED])
    def test_pause_requires_active(self, machine, admin, status):
        campaign = AdTestDataFactory.make_campaign(status=status)
        with pytest.raises(InvalidStateError):
            machine.apply(campaign, LifecycleEvent.PAUSE, admin, now=NOW)

    def test_other_advertiser_cannot_pause(self, machine, owner):
        campaign = AdTestDataFactory.make_campaign(status=AdStatus.ACTIVE)
        with pytest.raises(UnauthorizedError):
            machine.apply(campaign, LifecycleEvent.PAUSE, owner, now=NOW)

    def test_editor_cannot_pause_even_as_owner(self, machine):
        campaign = AdTestDataFactory.make_campaign(status=AdStatus.ACTIVE)
        editor = AdTestDataFactory.make_editor().model_copy(update={"user_id": campaign.owner_id})
        with pytest.raises(UnauthorizedError):
            machine.apply(campaign, LifecycleEvent.PAUSE, editor, now=NOW)

    def test_resume_running_window(self, machine, admin):
        campaign = AdTestDataFactory.make_paused_campaign()
        result = machine.apply(campaign, LifecycleEvent.RESUME, admin, now=NOW)
        assert result.campaign.status == AdStatus.ACTIVE

    def test_resume_after_end_fails_and_stays_paused(self, machine, admin):
        campaign = AdTestDataFactory.make_paused_campaign(
            start_date=NOW - timedelta(days=10), end_date=NOW - timedelta(days=1)
        )
        with pytest.raises(CampaignExpiredError):
            machine.apply(campaign, LifecycleEvent.RESUME, admin, now=NOW)
        assert campaign.status == AdStatus.PAUSED

    def test_resume_before_start_paid(self, machine, admin):
        campaign = AdTestDataFactory.make_paused_campaign(start_date=NOW + timedelta(days=2))
        result = machine.apply(campaign, LifecycleEvent.RESUME, admin, now=NOW)
        assert result.campaign.status == AdStatus.ACTIVE

    def test_resume_before_start_unpaid_returns_to_pending(self, machine, admin):
        campaign = AdTestDataFactory.make_paused_campaign(
            is_paid=False, start_date=NOW + timedelta(days=2)
        )
        result = machine.apply(campaign, LifecycleEvent.RESUME, admin, now=NOW)
        assert result.campaign.status == AdStatus.PENDING

    def test_resume_requires_paused(self, machine, admin):
        campaign = AdTestDataFactory.make_campaign(status=AdStatus.ACTIVE)
        with pytest.raises(InvalidStateError):
            machine.apply(campaign, LifecycleEvent.RESUME, admin, now=NOW)


class TestEdit:

    @pytest.mark.parametrize("status", [AdStatus.PENDING, AdStatus.ACTIVE, AdStatus.PAUSED])
    def test_editable_statuses(self, machine, status):
        campaign = AdTestDataFactory.make_campaign(status=status)
        owner = AdTestDataFactory.make_advertiser(campaign.owner_id)
        result = machine.apply(
            campaign, LifecycleEvent.EDIT, owner, CampaignUpdateRequest(title="New title"), now=NOW
        )
        assert result.campaign.title == "New title"
        assert result.campaign.status == status
        assert result.changes == {"title": "New title"}

    @pytest.mark.parametrize("status", [AdStatus.EXPIRED, AdStatus.REJECTED])
    def test_terminal_campaigns_not_editable(self, machine, admin, status):
        campaign = AdTestDataFactory.make_campaign(status=status)
        with pytest.raises(InvalidStateError):
            machine.apply(campaign, LifecycleEvent.EDIT, admin, CampaignUpdateRequest(title="x"), now=NOW)

    def test_edit_rejects_inverted_dates(self, machine, admin):
        campaign = AdTestDataFactory.make_campaign()
        request = CampaignUpdateRequest(end_date=campaign.start_date - timedelta(hours=1))
        with pytest.raises(InvalidRangeError):
            machine.apply(campaign, LifecycleEvent.EDIT, admin, request, now=NOW)

    def test_edit_only_changes_set_fields(self, machine, admin):
        campaign = AdTestDataFactory.make_campaign(position="SIDEBAR")
        result = machine.apply(
            campaign, LifecycleEvent.EDIT, admin, CampaignUpdateRequest(target_link="https://new.example.com"), now=NOW
        )
        assert result.campaign.position == "SIDEBAR"
        assert result.campaign.target_link == "https://new.example.com"


class TestExpire:

    @pytest.mark.parametrize("status", [AdStatus.ACTIVE, AdStatus.PAUSED])
    def test_past_end_date_expires(self, machine, status):
        campaign = AdTestDataFactory.make_campaign(
            status=status, start_date=NOW - timedelta(days=10), end_date=NOW - timedelta(minutes=1)
        )
        result = machine.apply(campaign, LifecycleEvent.EXPIRE, AdTestDataFactory.make_system(), now=NOW)
        assert result.campaign.status == AdStatus.EXPIRED

    def test_running_campaign_not_expired(self, machine):
        campaign = AdTestDataFactory.make_campaign(status=AdStatus.ACTIVE)
        with pytest.raises(InvalidStateError):
            machine.apply(campaign, LifecycleEvent.EXPIRE, AdTestDataFactory.make_system(), now=NOW)

    def test_pending_not_expired(self, machine):
        campaign = AdTestDataFactory.make_pending_campaign(
            start_date=NOW - timedelta(days=10), end_date=NOW - timedelta(days=1)
        )
        with pytest.raises(InvalidStateError):
            machine.apply(campaign, LifecycleEvent.EXPIRE, AdTestDataFactory.make_system(), now=NOW)


class TestDelete:

    @pytest.mark.parametrize("status", list(AdStatus))
    def test_owner_may_delete_in_any_status(self, machine, status):
        campaign = AdTestDataFactory.make_campaign(status=status)
        owner = AdTestDataFactory.make_advertiser(campaign.owner_id)
        result = machine.apply(campaign, LifecycleEvent.DELETE, owner, now=NOW)
        assert result.campaign.status == status

    def test_stranger_cannot_delete(self, machine, owner):
        campaign = AdTestDataFactory.make_campaign()
        with pytest.raises(UnauthorizedError):
            machine.apply(campaign, LifecycleEvent.DELETE, owner, now=NOW)


class TestPurity:

    def test_input_campaign_not_mutated(self, machine, admin):
        campaign = AdTestDataFactory.make_pending_campaign(is_paid=True, rejection_reason="old")
        snapshot = campaign.model_dump()

        result = machine.apply(campaign, LifecycleEvent.APPROVE, admin, now=NOW)

        assert campaign.model_dump() == snapshot
        assert result.campaign is not campaign
        assert result.campaign.updated_at == NOW

    def test_every_table_entry_ends_with_unguarded_rule(self):
        for rules in TRANSITIONS.values():
            assert rules[-1].guard(AdTestDataFactory.make_campaign(), None)

    def test_can_apply(self, machine):
        assert machine.can_apply(AdStatus.ACTIVE, LifecycleEvent.PAUSE)
        assert not machine.can_apply(AdStatus.EXPIRED, LifecycleEvent.RESUME)
