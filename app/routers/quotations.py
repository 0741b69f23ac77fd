"""
quotations.py — Vendor Quotations & Acceptance Router

Vendors see and withdraw their own bids; the owning charity accepts one,
which closes the request and opens a pending transaction.

Business Rules:
- A vendor may only delete its own, not-yet-accepted quotation
- Accepting is all-or-nothing; a lost race returns 409 CONFLICT

Called by: main.py (router mount)
Depends on: services/quotation_service.py, services/acceptance_service.py
"""

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_charity, require_vendor
from ..models import User
from ..schemas.market import QuotationListOut
from ..services import acceptance_service, quotation_service
from .requests import _iso, _quotation_to_dict
from .transactions import _transaction_to_dict

router = APIRouter(tags=["quotations"])


@router.get("/api/quotations/mine", response_model=QuotationListOut)
async def list_my_quotations(
    user: User = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    """The vendor's quotations with the title/status/deadline of each request."""
    out = []
    for q in quotation_service.list_quotations_for_vendor(db, user.id):
        d = _quotation_to_dict(q)
        req = q.request
        d["request_title"] = req.title if req else "Unknown Request"
        d["request_status"] = req.status if req else "unknown"
        d["request_deadline"] = _iso(req.deadline) if req else None
        out.append(d)
    return {"quotations": out, "total": len(out)}


@router.delete("/api/quotations/{quotation_id}")
async def delete_quotation(
    quotation_id: str,
    user: User = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    quotation_service.delete_quotation(db, quotation_id, user.id)
    return {"ok": True}


@router.post("/api/quotations/{quotation_id}/accept", status_code=201)
async def accept_quotation(
    quotation_id: str,
    user: User = Depends(require_charity),
    db: Session = Depends(get_db),
):
    tx = acceptance_service.accept_quotation(db, quotation_id, user.id)
    logger.info(f"{user.email} accepted quotation {quotation_id} → transaction {tx.id}")
    return _transaction_to_dict(tx)
