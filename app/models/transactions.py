"""Purchase transaction model (campaign/charity expense record)."""

from sqlalchemy import JSON, Column, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base, new_id, utcnow


class Transaction(Base):
    """Purchase created when a quotation is accepted.

    pending → shipping → delivered → completed, or delivered → rejected.
    """

    __tablename__ = "campaign_expenses"
    id = Column(String(36), primary_key=True, default=new_id)
    campaign_id = Column(String(36), ForeignKey("campaigns.id"))  # NULL = general fund
    fund_type = Column(String(20), nullable=False, default="general")

    vendor_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    vendor_name = Column(String(255))
    charity_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    description = Column(Text)
    details = Column(JSON, nullable=False, default=dict)  # items, delivery_photo, issue

    quotation_id = Column(
        String(36), ForeignKey("OpenMarketQuotation.id"), nullable=False, unique=True
    )
    request_id = Column(
        String(36), ForeignKey("OpenMarketRequest.id"), nullable=False, unique=True
    )

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    vendor = relationship("User", foreign_keys=[vendor_id])
    charity = relationship("User", foreign_keys=[charity_id])
    quotation = relationship("Quotation", foreign_keys=[quotation_id])
    request = relationship("MarketRequest", foreign_keys=[request_id])

    __table_args__ = (
        Index("ix_expenses_charity_created", "charity_id", "created_at"),
        Index("ix_expenses_vendor_created", "vendor_id", "created_at"),
        Index("ix_expenses_campaign", "campaign_id"),
        Index("ix_expenses_status", "status"),
    )
