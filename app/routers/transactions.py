"""
transactions.py — Purchase Transactions Router

Both sides of an accepted quotation drive the transaction forward:
the vendor ships and delivers, the charity releases payment or reports
an issue. Every response carries the progress step shown to both.

Business Rules:
- Charities list their transactions (filter by status, campaign);
  vendors list theirs (filter by status)
- A transaction is visible only to its charity and vendor
- Illegal transitions return 409 INVALID_STATE

Called by: main.py (router mount)
Depends on: services/transaction_service.py
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..constants import Role
from ..database import get_db
from ..dependencies import require_charity, require_user, require_vendor
from ..models import Transaction, User
from ..schemas.transactions import DeliveryConfirm, IssueReport
from ..services import transaction_service
from ..services.lifecycle import step_for

router = APIRouter(tags=["transactions"])


def _transaction_to_dict(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "campaign_id": tx.campaign_id,
        "fund_type": tx.fund_type,
        "vendor_id": tx.vendor_id,
        "vendor_name": tx.vendor_name or "Unknown Vendor",
        "charity_id": tx.charity_id,
        "amount": float(tx.amount),
        "status": tx.status,
        "step": step_for(tx.status),
        "description": tx.description,
        "details": tx.details or {},
        "quotation_id": tx.quotation_id,
        "request_id": tx.request_id,
        "created_at": tx.created_at.isoformat() if tx.created_at else None,
        "updated_at": tx.updated_at.isoformat() if tx.updated_at else None,
    }


@router.get("/api/transactions")
async def list_transactions(
    status: str | None = None,
    campaign_id: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if user.role == Role.CHARITY.value:
        rows = transaction_service.list_transactions_for_charity(
            db, user.id, status=status, campaign_id=campaign_id
        )
    elif user.role == Role.VENDOR.value:
        rows = transaction_service.list_transactions_for_vendor(db, user.id, status=status)
    else:
        raise HTTPException(403, "Charity or vendor role required")
    return {"transactions": [_transaction_to_dict(t) for t in rows], "total": len(rows)}


@router.get("/api/transactions/{tx_id}")
async def get_transaction(
    tx_id: str,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return _transaction_to_dict(transaction_service.get_transaction(db, tx_id, user.id))


@router.put("/api/transactions/{tx_id}/ship")
async def ship(
    tx_id: str,
    user: User = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    return _transaction_to_dict(transaction_service.mark_shipping(db, tx_id, user.id))


@router.put("/api/transactions/{tx_id}/deliver")
async def deliver(
    tx_id: str,
    body: DeliveryConfirm,
    user: User = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    tx = transaction_service.mark_delivered(db, tx_id, user.id, body.delivery_photo)
    return _transaction_to_dict(tx)


@router.put("/api/transactions/{tx_id}/release")
async def release(
    tx_id: str,
    user: User = Depends(require_charity),
    db: Session = Depends(get_db),
):
    return _transaction_to_dict(transaction_service.release_payment(db, tx_id, user.id))


@router.put("/api/transactions/{tx_id}/report-issue")
async def report_issue(
    tx_id: str,
    body: IssueReport,
    user: User = Depends(require_charity),
    db: Session = Depends(get_db),
):
    tx = transaction_service.report_issue(
        db, tx_id, user.id, body.details, issue_type=body.issue_type
    )
    return _transaction_to_dict(tx)
