"""Transaction state machine — purchase from acceptance to payment release.

    pending ──ship──▶ shipping ──deliver──▶ delivered ──release_payment──▶ completed
                                                   └──report_issue────▶ rejected

Business Rules:
- Vendor ships and delivers; charity releases payment or reports an issue
- Delivery requires a photo reference; an issue requires a description
- No transition is reversible; completed and rejected are terminal
- No timeout moves a stuck pending/shipping transaction (manual only)
- Each write is a compare-and-set on the current status, so two clicks
  cannot both apply

Called by: routers/transactions.py
Depends on: models, services/lifecycle.py, constants.py
"""

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..constants import IssueType, Role, TransactionAction, TransactionStatus
from ..exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..models import Transaction
from ..models.base import utcnow
from .lifecycle import next_transaction_status, role_for_action

log = logging.getLogger("openmarket.transactions")


def get_transaction(db: Session, tx_id: str, actor_id: str | None = None) -> Transaction:
    """Load a transaction; when actor_id is given it must be the charity or vendor."""
    tx = db.get(Transaction, tx_id)
    if not tx:
        raise NotFoundError("Transaction", tx_id)
    if actor_id is not None and actor_id not in (tx.charity_id, tx.vendor_id):
        raise AuthorizationError("You are not a party to this transaction")
    return tx


def _parse_status(status: str | None) -> str | None:
    if not status:
        return None
    try:
        return TransactionStatus(status).value
    except ValueError:
        raise ValidationError(
            f"status must be one of: {', '.join(s.value for s in TransactionStatus)}"
        )


def list_transactions_for_charity(
    db: Session,
    charity_id: str,
    status: str | None = None,
    campaign_id: str | None = None,
) -> list[Transaction]:
    q = db.query(Transaction).filter(Transaction.charity_id == charity_id)
    status = _parse_status(status)
    if status:
        q = q.filter(Transaction.status == status)
    if campaign_id:
        q = q.filter(Transaction.campaign_id == campaign_id)
    return q.order_by(Transaction.created_at.desc()).all()


def list_transactions_for_vendor(
    db: Session, vendor_id: str, status: str | None = None
) -> list[Transaction]:
    q = db.query(Transaction).filter(Transaction.vendor_id == vendor_id)
    status = _parse_status(status)
    if status:
        q = q.filter(Transaction.status == status)
    return q.order_by(Transaction.created_at.desc()).all()


def _apply(
    db: Session,
    tx_id: str,
    actor_id: str,
    action: TransactionAction,
    detail_updates: dict | None = None,
) -> Transaction:
    """Authorize, validate and persist one transition."""
    tx = get_transaction(db, tx_id)
    role = role_for_action(action)
    party = tx.vendor_id if role is Role.VENDOR else tx.charity_id
    if actor_id != party:
        raise AuthorizationError(f"Only the transaction's {role.value} can {action.value}")

    current = tx.status
    target = next_transaction_status(current, action)

    values = {"status": target.value, "updated_at": utcnow()}
    if detail_updates:
        values["details"] = {**(tx.details or {}), **detail_updates}

    try:
        result = db.execute(
            update(Transaction)
            .where(Transaction.id == tx_id, Transaction.status == current)
            .values(**values)
        )
        if result.rowcount != 1:
            raise ConflictError(f"Transaction {tx_id} changed while updating")
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(tx)
    log.info(f"Transaction {tx_id}: {current} → {target.value} ({action.value} by {actor_id})")
    return tx


def mark_shipping(db: Session, tx_id: str, vendor_id: str) -> Transaction:
    return _apply(db, tx_id, vendor_id, TransactionAction.SHIP)


def mark_delivered(
    db: Session, tx_id: str, vendor_id: str, delivery_photo_ref: str
) -> Transaction:
    photo = (delivery_photo_ref or "").strip()
    if not photo:
        raise ValidationError("A delivery photo is required to mark delivery")
    return _apply(
        db,
        tx_id,
        vendor_id,
        TransactionAction.DELIVER,
        {"delivery_photo": photo, "delivered_at": utcnow().isoformat()},
    )


def release_payment(db: Session, tx_id: str, charity_id: str) -> Transaction:
    """Confirm delivery and release payment to the vendor.

    The fund transfer itself belongs to the payments collaborator; this
    records the terminal success state it acts on.
    """
    tx = _apply(db, tx_id, charity_id, TransactionAction.RELEASE_PAYMENT)
    log.info(f"Payment released: transaction {tx.id}, {tx.amount} to vendor {tx.vendor_id}")
    return tx


def report_issue(
    db: Session,
    tx_id: str,
    charity_id: str,
    issue_details: str,
    issue_type: str = IssueType.OTHER.value,
) -> Transaction:
    issue_details = (issue_details or "").strip()
    if not issue_details:
        raise ValidationError("Issue details must not be blank")
    try:
        issue_type = IssueType(issue_type).value
    except ValueError:
        raise ValidationError(
            f"issue_type must be one of: {', '.join(i.value for i in IssueType)}"
        )
    return _apply(
        db,
        tx_id,
        charity_id,
        TransactionAction.REPORT_ISSUE,
        {
            "issue": f"Issue Type: {issue_type} - {issue_details}",
            "issue_type": issue_type,
            "reported_at": utcnow().isoformat(),
        },
    )
