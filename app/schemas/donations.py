"""
schemas/donations.py — Pydantic models for the donation ledger endpoints

Required fields are optional here so a missing one returns the
{"error": "Missing required fields"} 400 instead of a 422.

Called by: routers/donations.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class DonationCreate(BaseModel):
    donorId: str | None = None
    recipientId: str | None = None
    amount: float | str | None = None
    currency: str | None = None
    donationType: str | None = None
    metadata: dict[str, Any] | str | None = None

    def missing_fields(self) -> list[str]:
        required = ("donorId", "recipientId", "amount", "currency", "donationType")
        return [name for name in required if not getattr(self, name)]


class DonationRecorded(BaseModel):
    message: str = "Donation recorded on blockchain"
    donationId: int
    txHash: str
