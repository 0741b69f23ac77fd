"""Quotation registry — vendors bid on open requests.

Business Rules:
- price must be > 0 and details non-blank
- Bids only land on requests that are open and not past their deadline
- quotation_count moves in the same DB transaction as the insert/delete
- Only the owning vendor may withdraw a quotation, and never once accepted
- A vendor may hold more than one quotation on the same request

Called by: routers/quotations.py, routers/requests.py
Depends on: models, services/lifecycle.py
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import delete, update
from sqlalchemy.orm import Session, joinedload

from ..constants import RequestStatus
from ..exceptions import (
    AuthorizationError,
    NotFoundError,
    StateError,
    ValidationError,
)
from ..models import MarketRequest, Quotation
from .lifecycle import is_open_and_active

log = logging.getLogger("openmarket.quotations")

SORT_ORDERS = {
    "newest": (Quotation.created_at.desc(),),
    "price_asc": (Quotation.price.asc(), Quotation.created_at.desc()),
    "price_desc": (Quotation.price.desc(), Quotation.created_at.desc()),
}

# Numeric(12, 2): ten whole digits
MAX_PRICE = Decimal(10) ** 10


def _parse_price(price) -> Decimal:
    """Parse and round to cents; the result must fit Numeric(12, 2) and stay > 0."""
    try:
        value = Decimal(str(price))
        if not value.is_finite():
            raise ValidationError("price must be a finite number")
        value = value.quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("price must be a number with at most 10 whole digits")
    if value <= 0:
        raise ValidationError("price must be at least 0.01")
    if value >= MAX_PRICE:
        raise ValidationError(f"price must be below {MAX_PRICE}")
    return value


def submit_quotation(
    db: Session,
    request_id: str,
    vendor_id: str,
    price,
    details: str,
    attachment_url: str | None = None,
    now: datetime | None = None,
) -> Quotation:
    """Submit a priced bid against an open, unexpired request."""
    value = _parse_price(price)
    details = (details or "").strip()
    if not details:
        raise ValidationError("details must not be blank")

    # Row lock keeps the open/deadline check and the insert together
    req = (
        db.query(MarketRequest)
        .filter(MarketRequest.id == request_id)
        .with_for_update()
        .first()
    )
    if not req:
        raise NotFoundError("Request", request_id)
    if not is_open_and_active(req, now):
        reason = "closed" if req.status != RequestStatus.OPEN.value else "past its deadline"
        log.warning(f"Quotation rejected: request {request_id} is {reason}")
        db.rollback()
        raise StateError(f"Request is {reason}", req.status)

    quotation = Quotation(
        request_id=request_id,
        vendor_id=vendor_id,
        price=value,
        details=details,
        attachment_url=(attachment_url or "").strip() or None,
        is_accepted=False,
        created_at=now or datetime.now(timezone.utc),
    )
    try:
        db.add(quotation)
        db.execute(
            update(MarketRequest)
            .where(MarketRequest.id == request_id)
            .values(quotation_count=MarketRequest.quotation_count + 1)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(quotation)
    log.info(f"Quotation {quotation.id} submitted by vendor {vendor_id} on request {request_id} at {value}")
    return quotation


def list_quotations_for_request(
    db: Session, request_id: str, sort: str = "newest"
) -> list[Quotation]:
    if sort not in SORT_ORDERS:
        raise ValidationError(f"sort must be one of: {', '.join(SORT_ORDERS)}")
    if not db.get(MarketRequest, request_id):
        raise NotFoundError("Request", request_id)
    return (
        db.query(Quotation)
        .options(joinedload(Quotation.vendor))
        .filter(Quotation.request_id == request_id)
        .order_by(*SORT_ORDERS[sort])
        .all()
    )


def list_quotations_for_vendor(db: Session, vendor_id: str) -> list[Quotation]:
    """The vendor's own quotations, newest first, with their requests preloaded."""
    return (
        db.query(Quotation)
        .options(joinedload(Quotation.request))
        .filter(Quotation.vendor_id == vendor_id)
        .order_by(Quotation.created_at.desc())
        .all()
    )


def delete_quotation(db: Session, quotation_id: str, vendor_id: str) -> None:
    """Withdraw a quotation that has not been accepted."""
    quotation = db.get(Quotation, quotation_id)
    if not quotation:
        raise NotFoundError("Quotation", quotation_id)
    if quotation.vendor_id != vendor_id:
        raise AuthorizationError("You can only delete your own quotations")
    if quotation.is_accepted:
        raise StateError("An accepted quotation cannot be deleted", "accepted")

    request_id = quotation.request_id
    try:
        # Guarded delete: loses to a concurrent acceptance instead of racing it
        result = db.execute(
            delete(Quotation).where(
                Quotation.id == quotation_id,
                Quotation.is_accepted.is_(False),
            )
        )
        if result.rowcount != 1:
            raise StateError("Quotation was accepted before it could be deleted", "accepted")
        db.execute(
            update(MarketRequest)
            .where(
                MarketRequest.id == request_id,
                MarketRequest.quotation_count > 0,
            )
            .values(quotation_count=MarketRequest.quotation_count - 1)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    log.info(f"Quotation {quotation_id} deleted by vendor {vendor_id}")
