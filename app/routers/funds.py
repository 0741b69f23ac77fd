"""
funds.py — Charity Fund Summary Router

Called by: main.py (router mount)
Depends on: services/fund_service.py
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_charity
from ..models import User
from ..services.fund_service import fund_summary

router = APIRouter(tags=["funds"])


@router.get("/api/funds/summary")
async def get_fund_summary(
    campaign_id: str | None = None,
    user: User = Depends(require_charity),
    db: Session = Depends(get_db),
):
    """On-hold / used / rejected totals for the general fund and each campaign."""
    return fund_summary(db, user.id, campaign_id=campaign_id)
