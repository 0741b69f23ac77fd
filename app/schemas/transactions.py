"""
schemas/transactions.py — Pydantic models for transaction actions

Called by: routers/transactions.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class DeliveryConfirm(BaseModel):
    """Vendor marks delivery; the photo reference is stored on the transaction."""
    delivery_photo: str = ""


class IssueReport(BaseModel):
    """Charity reports a problem with a delivered purchase."""
    issue_type: Literal["damaged", "incomplete", "wrong", "quality", "other"] = "other"
    details: str = ""
