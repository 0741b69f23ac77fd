"""Acceptance arbiter — the charity picks exactly one quotation per request.

All effects run inside a single DB transaction behind a compare-and-set
on the request row:

  1. UPDATE request SET closed/accepted WHERE open AND not yet accepted
     → 0 rows means someone else won: ConflictError, nothing written
  2. clear is_accepted on every sibling quotation
  3. set is_accepted on the chosen quotation (guarded: it must still exist)
  4. insert the pending Transaction (request_id is UNIQUE on the table)

The partial unique index on OpenMarketQuotation(request_id) WHERE
is_accepted also holds: a violating commit raises and rolls back.

Called by: routers/quotations.py
Depends on: models, services/lifecycle.py
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..constants import RequestStatus, TransactionStatus
from ..exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateError,
)
from ..models import MarketRequest, Quotation, Transaction, User
from .lifecycle import is_expired

log = logging.getLogger("openmarket.acceptance")


def accept_quotation(
    db: Session, quotation_id: str, charity_id: str, now: datetime | None = None
) -> Transaction:
    """Accept `quotation_id` on behalf of the owning charity.

    Returns the new pending Transaction. Raises ConflictError if the
    request is already closed or already has an accepted quotation.
    """
    now = now or datetime.now(timezone.utc)
    quotation = db.get(Quotation, quotation_id)
    if not quotation:
        raise NotFoundError("Quotation", quotation_id)
    req = db.get(MarketRequest, quotation.request_id)
    if not req:
        raise NotFoundError("Request", quotation.request_id)
    if req.created_by != charity_id:
        raise AuthorizationError("Only the charity that posted the request can accept quotations")
    if req.status != RequestStatus.OPEN.value or req.has_accepted_quotation:
        log.warning(f"Accept rejected: request {req.id} already {req.status}")
        raise ConflictError(f"Request {req.id} is already closed")
    if is_expired(req.deadline, now):
        raise StateError("Request is past its deadline", req.status)

    request_id = req.id

    try:
        closed = db.execute(
            update(MarketRequest)
            .where(
                MarketRequest.id == req.id,
                MarketRequest.status == RequestStatus.OPEN.value,
                MarketRequest.has_accepted_quotation.is_(False),
            )
            .values(status=RequestStatus.CLOSED.value, has_accepted_quotation=True)
        )
        if closed.rowcount != 1:
            raise ConflictError(f"Request {req.id} was closed by a concurrent acceptance")

        db.execute(
            update(Quotation)
            .where(Quotation.request_id == req.id, Quotation.id != quotation_id)
            .values(is_accepted=False)
        )
        accepted = db.execute(
            update(Quotation)
            .where(Quotation.id == quotation_id, Quotation.request_id == req.id)
            .values(is_accepted=True)
        )
        if accepted.rowcount != 1:
            raise ConflictError(f"Quotation {quotation_id} was withdrawn")

        vendor = db.get(User, quotation.vendor_id)
        tx = Transaction(
            campaign_id=req.campaign_id,
            fund_type=req.fund_type,
            vendor_id=quotation.vendor_id,
            vendor_name=vendor.name if vendor and vendor.name else "Unknown Vendor",
            charity_id=req.created_by,
            amount=quotation.price,
            status=TransactionStatus.PENDING.value,
            description=req.title,
            details={
                "items": [
                    {
                        "name": req.title,
                        "quantity": 1,
                        "unit_price": float(quotation.price),
                    }
                ],
                "quotation_details": quotation.details,
            },
            quotation_id=quotation.id,
            request_id=req.id,
            created_at=now,
            updated_at=now,
        )
        db.add(tx)
        db.commit()
    except IntegrityError:
        db.rollback()
        log.warning(f"Accept lost race on request {request_id}")
        raise ConflictError(f"Request {request_id} already has an accepted quotation")
    except Exception:
        db.rollback()
        raise

    # Reload server-side values (defaults, timestamps) callers will read
    db.refresh(req)
    db.refresh(quotation)
    db.refresh(tx)
    log.info(
        f"Quotation {quotation_id} accepted on request {req.id} by charity {charity_id}; "
        f"transaction {tx.id} pending for {tx.amount}"
    )
    return tx
