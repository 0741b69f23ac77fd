"""
schemas/market.py — Pydantic models for open-market endpoints

Validates request creation and quotation submission payloads. Value
rules (positive price, future deadline, fund attribution) are enforced
by the services so API and internal callers share them.

Business Rules:
- fund_type must be general or campaign
- sort on quotation lists is one of newest / price_asc / price_desc

Called by: routers/requests.py, routers/quotations.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class RequestCreate(BaseModel):
    """A charity's need, posted for vendors to bid on."""
    title: str
    description: str = ""
    deadline: datetime | None = None
    fund_type: Literal["general", "campaign"] = "general"
    campaign_id: str | None = None


class QuotationCreate(BaseModel):
    """A vendor's priced bid."""
    price: Decimal | str
    details: str = ""
    attachment_url: str | None = Field(default=None, max_length=2048)


class RequestOut(BaseModel, extra="allow"):
    """Request as returned by the API; list views add charity_name, detail adds live_quotation_count."""
    id: str
    title: str
    description: str = ""
    created_by: str
    status: str
    created_at: str | None = None
    deadline: str | None = None
    quotation_count: int = 0
    has_accepted_quotation: bool = False
    fund_type: str = "general"
    campaign_id: str | None = None
    is_active: bool = False


class QuotationOut(BaseModel, extra="allow"):
    """Quotation as returned by the API; the vendor list adds request_title/status/deadline."""
    id: str
    request_id: str
    vendor_id: str
    vendor_name: str = "Unknown Vendor"
    price: float
    details: str
    attachment_url: str | None = None
    is_accepted: bool = False
    created_at: str | None = None


class RequestListOut(BaseModel):
    requests: list[RequestOut]
    total: int


class QuotationListOut(BaseModel):
    quotations: list[QuotationOut]
    total: int
