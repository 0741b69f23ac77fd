"""
donations.py — Donation Ledger Router

Records donations on the blockchain ledger and reads them back.
Service-to-service only: every route requires the x-api-key secret.

Business Rules:
- POST requires donorId, recipientId, amount, currency, donationType
  (400 "Missing required fields" otherwise)
- Ledger failures return 500 {"error": ...}; nothing is retried
- ?count defaults to 10 and is capped at DONATION_LATEST_MAX

Called by: main.py (router mount)
Depends on: services/ledger_service.py, rate_limit.py
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger

from ..config import settings
from ..dependencies import require_api_key
from ..exceptions import LedgerError
from ..rate_limit import limiter
from ..schemas.donations import DonationCreate, DonationRecorded
from ..services import ledger_service

router = APIRouter(tags=["donations"], dependencies=[Depends(require_api_key)])


@router.post("/donations", status_code=201, response_model=DonationRecorded)
@limiter.limit(settings.rate_limit_donations)
async def record_donation(request: Request, body: DonationCreate):
    missing = body.missing_fields()
    if missing:
        logger.warning(f"Donation rejected, missing: {', '.join(missing)}")
        return JSONResponse({"error": "Missing required fields"}, status_code=400)
    try:
        result = await ledger_service.record_donation(
            body.donorId,
            body.recipientId,
            body.amount,
            body.currency,
            body.donationType,
            body.metadata or {},
        )
    except LedgerError as e:
        logger.error(f"Error recording donation: {e.message}")
        return JSONResponse({"error": "Error recording donation"}, status_code=500)
    return DonationRecorded(donationId=result["donationId"], txHash=result["txHash"])


@router.get("/donations/{donation_id}")
async def get_donation(donation_id: int):
    try:
        return await ledger_service.get_donation(donation_id)
    except LedgerError as e:
        logger.error(f"Error getting donation {donation_id}: {e.message}")
        return JSONResponse({"error": "Error getting donation"}, status_code=500)


@router.get("/donations")
async def list_latest_donations(count: int | None = Query(None, ge=1)):
    count = min(count or settings.donation_latest_default, settings.donation_latest_max)
    try:
        return await ledger_service.get_latest_donations(count)
    except LedgerError as e:
        logger.error(f"Error getting donations: {e.message}")
        return JSONResponse({"error": "Error getting donations"}, status_code=500)
