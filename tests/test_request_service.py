"""
test_request_service.py — Tests for the request registry

Covers creation defaults and validation, fund attribution on create,
listing order and filters, live quotation counts, and closing.

Called by: pytest
Depends on: app/services/request_service.py, conftest.py
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.exceptions import AuthorizationError, NotFoundError, StateError, ValidationError
from app.models import MarketRequest
from app.services import request_service


# ── create_request ──────────────────────────────────────────────────


class TestCreateRequest:
    def test_new_request_starts_open(self, db_session, charity_user):
        req = request_service.create_request(db_session, charity_user.id, "Rice, 50kg", "For the pantry")
        assert req.status == "open"
        assert req.quotation_count == 0
        assert req.has_accepted_quotation is False
        assert req.fund_type == "general"
        assert req.campaign_id is None
        assert req.created_by == charity_user.id

    def test_default_deadline_is_thirty_days(self, db_session, charity_user):
        now = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
        req = request_service.create_request(db_session, charity_user.id, "Rice", now=now)
        assert req.deadline == now + timedelta(days=30)

    def test_past_deadline_rejected(self, db_session, charity_user):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        with pytest.raises(ValidationError):
            request_service.create_request(db_session, charity_user.id, "Rice", deadline=past)
        assert db_session.query(MarketRequest).count() == 0

    def test_blank_title_rejected(self, db_session, charity_user):
        with pytest.raises(ValidationError):
            request_service.create_request(db_session, charity_user.id, "   ")

    def test_campaign_funded_request(self, db_session, charity_user, test_campaign):
        req = request_service.create_request(
            db_session, charity_user.id, "Blankets", fund_type="campaign", campaign_id=test_campaign.id
        )
        assert req.fund_type == "campaign"
        assert req.campaign_id == test_campaign.id

    def test_campaign_fund_without_campaign_id(self, db_session, charity_user):
        with pytest.raises(ValidationError):
            request_service.create_request(db_session, charity_user.id, "Blankets", fund_type="campaign")

    def test_general_fund_with_campaign_id(self, db_session, charity_user, test_campaign):
        with pytest.raises(ValidationError):
            request_service.create_request(
                db_session, charity_user.id, "Blankets", fund_type="general", campaign_id=test_campaign.id
            )

    def test_other_charitys_campaign_rejected(self, db_session, other_charity, test_campaign):
        with pytest.raises(AuthorizationError):
            request_service.create_request(
                db_session, other_charity.id, "Blankets", fund_type="campaign", campaign_id=test_campaign.id
            )

    def test_unknown_campaign(self, db_session, charity_user):
        with pytest.raises(NotFoundError):
            request_service.create_request(
                db_session, charity_user.id, "Blankets", fund_type="campaign", campaign_id="missing"
            )


# ── reads ───────────────────────────────────────────────────────────


def test_get_request_not_found(db_session):
    with pytest.raises(NotFoundError) as exc:
        request_service.get_request(db_session, "no-such-id")
    assert exc.value.entity_type == "Request"


def test_list_for_charity_newest_first_any_status(db_session, make_request, charity_user, other_charity):
    now = datetime.now(timezone.utc)
    older = make_request(title="older", created_at=now - timedelta(days=2), status="closed")
    newer = make_request(title="newer", created_at=now - timedelta(days=1))
    make_request(title="not mine", created_by=other_charity.id)

    rows = request_service.list_requests_for_charity(db_session, charity_user.id)
    assert [r.id for r in rows] == [newer.id, older.id]


def test_list_open_includes_expired_unless_active_only(db_session, make_request):
    now = datetime.now(timezone.utc)
    live = make_request(title="live")
    expired = make_request(title="expired", deadline=now - timedelta(hours=2))
    make_request(title="closed", status="closed")

    all_open = {r.id for r in request_service.list_open_requests(db_session)}
    assert all_open == {live.id, expired.id}

    active = request_service.list_open_requests(db_session, active_only=True)
    assert [r.id for r in active] == [live.id]


def test_quotation_count_is_live(db_session, open_request, make_quotation, second_vendor):
    make_quotation(open_request)
    make_quotation(open_request, vendor=second_vendor, price="300.00")
    open_request.quotation_count = 99  # stale cache must not leak into the live count
    db_session.commit()
    assert request_service.get_quotation_count(db_session, open_request.id) == 2


# ── close_request ───────────────────────────────────────────────────


class TestCloseRequest:
    def test_owner_closes(self, db_session, open_request, charity_user):
        req = request_service.close_request(db_session, open_request.id, charity_user.id)
        assert req.status == "closed"
        assert req.has_accepted_quotation is False

    def test_non_owner_cannot_close(self, db_session, open_request, other_charity):
        with pytest.raises(AuthorizationError):
            request_service.close_request(db_session, open_request.id, other_charity.id)

    def test_closing_twice_is_state_error(self, db_session, open_request, charity_user):
        request_service.close_request(db_session, open_request.id, charity_user.id)
        with pytest.raises(StateError):
            request_service.close_request(db_session, open_request.id, charity_user.id)
