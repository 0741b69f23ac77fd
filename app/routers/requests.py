"""
requests.py — Open-Market Requests Router

Charities post requests for goods; vendors browse the open ones and bid.
Quotation listing and submission live here too, nested under the request.

Business Rules:
- Only charities create and close requests; only the owner may close
- Open list defaults to every status=open row; ?active_only=true also
  drops rows past their deadline
- Each request carries is_active, the shared "vendors may still bid" flag
- Quotations can be listed by any signed-in user, submitted by vendors

Called by: main.py (router mount)
Depends on: services/request_service.py, services/quotation_service.py
"""

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_charity, require_user, require_vendor
from ..models import MarketRequest, Quotation, User
from ..schemas.market import (
    QuotationCreate,
    QuotationListOut,
    QuotationOut,
    RequestCreate,
    RequestListOut,
    RequestOut,
)
from ..services import quotation_service, request_service
from ..services.lifecycle import is_open_and_active

router = APIRouter(tags=["requests"])


def _iso(value):
    return value.isoformat() if value else None


def _request_to_dict(req: MarketRequest) -> dict:
    return {
        "id": req.id,
        "title": req.title,
        "description": req.description or "",
        "created_by": req.created_by,
        "status": req.status,
        "created_at": _iso(req.created_at),
        "deadline": _iso(req.deadline),
        "quotation_count": req.quotation_count or 0,
        "has_accepted_quotation": bool(req.has_accepted_quotation),
        "fund_type": req.fund_type,
        "campaign_id": req.campaign_id,
        "is_active": is_open_and_active(req),
    }


def _quotation_to_dict(q: Quotation) -> dict:
    return {
        "id": q.id,
        "request_id": q.request_id,
        "vendor_id": q.vendor_id,
        "vendor_name": q.vendor.name if q.vendor and q.vendor.name else "Unknown Vendor",
        "price": float(q.price),
        "details": q.details,
        "attachment_url": q.attachment_url,
        "is_accepted": bool(q.is_accepted),
        "created_at": _iso(q.created_at),
    }


@router.post("/api/requests", status_code=201, response_model=RequestOut)
async def create_request(
    body: RequestCreate,
    user: User = Depends(require_charity),
    db: Session = Depends(get_db),
):
    req = request_service.create_request(
        db,
        charity_id=user.id,
        title=body.title,
        description=body.description,
        deadline=body.deadline,
        fund_type=body.fund_type,
        campaign_id=body.campaign_id,
    )
    logger.info(f"{user.email} posted request {req.id}")
    return _request_to_dict(req)


@router.get("/api/requests/mine", response_model=RequestListOut)
async def list_my_requests(
    user: User = Depends(require_charity),
    db: Session = Depends(get_db),
):
    """Every request the charity posted, any status, newest first."""
    rows = request_service.list_requests_for_charity(db, user.id)
    return {"requests": [_request_to_dict(r) for r in rows], "total": len(rows)}


@router.get("/api/requests/open", response_model=RequestListOut)
async def list_open_requests(
    active_only: bool = False,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    rows = request_service.list_open_requests(db, active_only=active_only)
    out = []
    for r in rows:
        d = _request_to_dict(r)
        d["charity_name"] = r.creator.name if r.creator and r.creator.name else "Unknown Charity"
        out.append(d)
    return {"requests": out, "total": len(out)}


@router.get("/api/requests/{request_id}", response_model=RequestOut)
async def get_request(
    request_id: str,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    req = request_service.get_request(db, request_id)
    d = _request_to_dict(req)
    d["live_quotation_count"] = request_service.get_quotation_count(db, request_id)
    return d


@router.put("/api/requests/{request_id}/close", response_model=RequestOut)
async def close_request(
    request_id: str,
    user: User = Depends(require_charity),
    db: Session = Depends(get_db),
):
    req = request_service.close_request(db, request_id, user.id)
    return _request_to_dict(req)


# ── Quotations on a request ──────────────────────────────────────────


@router.get("/api/requests/{request_id}/quotations", response_model=QuotationListOut)
async def list_request_quotations(
    request_id: str,
    sort: str = "newest",
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    rows = quotation_service.list_quotations_for_request(db, request_id, sort=sort)
    return {"quotations": [_quotation_to_dict(q) for q in rows], "total": len(rows)}


@router.post("/api/requests/{request_id}/quotations", status_code=201, response_model=QuotationOut)
async def submit_quotation(
    request_id: str,
    body: QuotationCreate,
    user: User = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    q = quotation_service.submit_quotation(
        db,
        request_id=request_id,
        vendor_id=user.id,
        price=body.price,
        details=body.details,
        attachment_url=body.attachment_url,
    )
    logger.info(f"{user.email} quoted {q.price} on request {request_id}")
    return _quotation_to_dict(q)
