"""Fund attribution — general pool vs. a specific campaign.

Attribution is not stored on its own; requests and transactions carry
(fund_type, campaign_id). This module validates that pair when a request
is created and rolls transaction amounts up per fund source.

Business Rules:
- fund_type "campaign" requires a campaign that exists and belongs to the charity
- fund_type "general" requires campaign_id to be empty
- on_hold = pending + shipping + delivered, used = completed

Called by: services/request_service.py, routers/funds.py
Depends on: models (Campaign, Transaction)
"""

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..constants import IN_FLIGHT_STATUSES, FundType, TransactionStatus
from ..exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models import Campaign, Transaction

log = logging.getLogger("openmarket.funds")


def parse_fund_type(fund_type: str) -> FundType:
    try:
        return FundType(fund_type)
    except ValueError:
        raise ValidationError(
            f"fund_type must be one of: {', '.join(f.value for f in FundType)}"
        )


def resolve_fund_attribution(
    db: Session, charity_id: str, fund_type: str, campaign_id: str | None
) -> tuple[str, str | None]:
    """Validate a (fund_type, campaign_id) pair and return the normalized pair."""
    ft = parse_fund_type(fund_type)
    campaign_id = (campaign_id or "").strip() or None

    if ft is FundType.GENERAL:
        if campaign_id:
            raise ValidationError("campaign_id must be empty for general-fund requests")
        return ft.value, None

    if not campaign_id:
        raise ValidationError("campaign_id is required for campaign-funded requests")
    campaign = db.get(Campaign, campaign_id)
    if not campaign:
        raise NotFoundError("Campaign", campaign_id)
    if campaign.charity_id != charity_id:
        raise AuthorizationError("Campaign belongs to another charity")
    return ft.value, campaign.id


def _empty_bucket(fund_type: str, campaign_id: str | None, title: str | None) -> dict:
    return {
        "fund_type": fund_type,
        "campaign_id": campaign_id,
        "campaign_title": title,
        "on_hold": 0.0,
        "used": 0.0,
        "rejected": 0.0,
        "transaction_count": 0,
    }


def fund_summary(db: Session, charity_id: str, campaign_id: str | None = None) -> dict:
    """Roll up a charity's transaction amounts per fund source.

    Returns {"funds": [...], "totals": {...}}, with the general pool first
    and one entry per campaign that has at least one transaction.
    """
    if campaign_id:
        campaign = db.get(Campaign, campaign_id)
        if not campaign:
            raise NotFoundError("Campaign", campaign_id)
        if campaign.charity_id != charity_id:
            raise AuthorizationError("Campaign belongs to another charity")

    q = (
        db.query(
            Transaction.campaign_id,
            Transaction.status,
            func.coalesce(func.sum(Transaction.amount), 0),
            func.count(Transaction.id),
        )
        .filter(Transaction.charity_id == charity_id)
        .group_by(Transaction.campaign_id, Transaction.status)
    )
    if campaign_id:
        q = q.filter(Transaction.campaign_id == campaign_id)
    rows = q.all()

    titles = {}
    campaign_ids = {r[0] for r in rows if r[0]}
    if campaign_ids:
        titles = {
            c.id: c.title
            for c in db.query(Campaign).filter(Campaign.id.in_(campaign_ids)).all()
        }

    buckets: dict[str | None, dict] = {}
    if not campaign_id:
        buckets[None] = _empty_bucket(FundType.GENERAL.value, None, None)

    for cid, status, total, count in rows:
        if cid not in buckets:
            buckets[cid] = _empty_bucket(FundType.CAMPAIGN.value, cid, titles.get(cid))
        bucket = buckets[cid]
        amount = float(Decimal(str(total)))
        if status in {s.value for s in IN_FLIGHT_STATUSES}:
            bucket["on_hold"] += amount
        elif status == TransactionStatus.COMPLETED.value:
            bucket["used"] += amount
        elif status == TransactionStatus.REJECTED.value:
            bucket["rejected"] += amount
        bucket["transaction_count"] += count

    funds = list(buckets.values())
    totals = {
        key: round(sum(f[key] for f in funds), 2)
        for key in ("on_hold", "used", "rejected")
    }
    totals["transaction_count"] = sum(f["transaction_count"] for f in funds)
    for f in funds:
        for key in ("on_hold", "used", "rejected"):
            f[key] = round(f[key], 2)
    return {"funds": funds, "totals": totals}
