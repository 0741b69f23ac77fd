"""Request registry — charities post needs for vendors to bid on.

Business Rules:
- New requests start open, with zero quotations and no accepted quotation
- Deadline defaults to now + request_default_deadline_days; a supplied
  deadline must be in the future
- Status only moves open → closed, via acceptance or the owner closing it
- has_accepted_quotation never flips back to False
- No delete path

Called by: routers/requests.py, services/acceptance_service.py
Depends on: models, services/fund_service.py, services/lifecycle.py
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from ..config import settings
from ..constants import RequestStatus
from ..exceptions import AuthorizationError, NotFoundError, StateError, ValidationError
from ..models import MarketRequest, Quotation
from .fund_service import resolve_fund_attribution
from .lifecycle import is_in_future, is_open_and_active

log = logging.getLogger("openmarket.requests")


def create_request(
    db: Session,
    charity_id: str,
    title: str,
    description: str = "",
    deadline: datetime | None = None,
    fund_type: str = "general",
    campaign_id: str | None = None,
    now: datetime | None = None,
) -> MarketRequest:
    """Create an open request owned by `charity_id`."""
    now = now or datetime.now(timezone.utc)
    title = (title or "").strip()
    if not title:
        raise ValidationError("title must not be blank")

    if deadline is None:
        deadline = now + timedelta(days=settings.request_default_deadline_days)
    elif not is_in_future(deadline, now):
        raise ValidationError("deadline must be in the future")

    fund_type, campaign_id = resolve_fund_attribution(db, charity_id, fund_type, campaign_id)

    req = MarketRequest(
        title=title,
        description=(description or "").strip(),
        created_by=charity_id,
        status=RequestStatus.OPEN.value,
        created_at=now,
        deadline=deadline,
        quotation_count=0,
        has_accepted_quotation=False,
        fund_type=fund_type,
        campaign_id=campaign_id,
    )
    db.add(req)
    db.commit()
    db.refresh(req)
    log.info(
        f"Request {req.id} created by charity {charity_id} "
        f"(fund={fund_type}, campaign={campaign_id})"
    )
    return req


def get_request(db: Session, request_id: str) -> MarketRequest:
    req = db.get(MarketRequest, request_id)
    if not req:
        raise NotFoundError("Request", request_id)
    return req


def list_requests_for_charity(db: Session, charity_id: str) -> list[MarketRequest]:
    """Every request the charity created, any status, newest first."""
    return (
        db.query(MarketRequest)
        .filter(MarketRequest.created_by == charity_id)
        .order_by(MarketRequest.created_at.desc())
        .all()
    )


def list_open_requests(
    db: Session, active_only: bool = False, now: datetime | None = None
) -> list[MarketRequest]:
    """Requests with status open, newest first, creator preloaded.

    Expired-but-open rows are included unless active_only is set.
    """
    rows = (
        db.query(MarketRequest)
        .options(joinedload(MarketRequest.creator))
        .filter(MarketRequest.status == RequestStatus.OPEN.value)
        .order_by(MarketRequest.created_at.desc())
        .all()
    )
    if active_only:
        rows = [r for r in rows if is_open_and_active(r, now)]
    return rows


def get_quotation_count(db: Session, request_id: str) -> int:
    """Live count, independent of the cached quotation_count column."""
    get_request(db, request_id)
    return (
        db.query(func.count(Quotation.id))
        .filter(Quotation.request_id == request_id)
        .scalar()
        or 0
    )


def close_request(
    db: Session,
    request_id: str,
    charity_id: str,
    has_accepted_quotation: bool = False,
) -> MarketRequest:
    """Close an open request. Only the owning charity may close it."""
    req = get_request(db, request_id)
    if req.created_by != charity_id:
        raise AuthorizationError("You can only close your own requests")
    if req.status != RequestStatus.OPEN.value:
        raise StateError(f"Request is already {req.status}", req.status)

    result = db.execute(
        update(MarketRequest)
        .where(
            MarketRequest.id == request_id,
            MarketRequest.status == RequestStatus.OPEN.value,
        )
        .values(
            status=RequestStatus.CLOSED.value,
            has_accepted_quotation=req.has_accepted_quotation or has_accepted_quotation,
        )
    )
    if result.rowcount != 1:
        db.rollback()
        raise StateError("Request was closed by another action", RequestStatus.CLOSED.value)
    db.commit()
    db.refresh(req)
    log.info(f"Request {request_id} closed by charity {charity_id}")
    return req
