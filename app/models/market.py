"""Open market models — charity requests and vendor quotations.

Table and column names match the hosted store so existing rows load
unchanged.
"""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base, new_id, utcnow


class MarketRequest(Base):
    """A charity's call for goods or services, open for vendor bidding."""

    __tablename__ = "OpenMarketRequest"
    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)

    status = Column(String(20), nullable=False, default="open")  # open | closed
    created_at = Column(UTCDateTime, default=utcnow)
    deadline = Column(UTCDateTime)

    quotation_count = Column(Integer, nullable=False, default=0)
    has_accepted_quotation = Column(Boolean, nullable=False, default=False)

    fund_type = Column(String(20), nullable=False, default="general")  # general | campaign
    campaign_id = Column(String(36), ForeignKey("campaigns.id"))

    creator = relationship("User", foreign_keys=[created_by])
    campaign = relationship("Campaign", foreign_keys=[campaign_id])
    quotations = relationship(
        "Quotation", back_populates="request", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_omr_created_by", "created_by"),
        Index("ix_omr_status_created", "status", "created_at"),
    )


class Quotation(Base):
    """A vendor's priced bid against a request."""

    __tablename__ = "OpenMarketQuotation"
    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(
        String(36),
        ForeignKey("OpenMarketRequest.id", ondelete="CASCADE"),
        nullable=False,
    )
    vendor_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    price = Column(Numeric(12, 2), nullable=False)
    details = Column(Text, nullable=False)
    attachment_url = Column(String(1000))
    is_accepted = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=utcnow)

    request = relationship("MarketRequest", back_populates="quotations")
    vendor = relationship("User", foreign_keys=[vendor_id])

    __table_args__ = (
        Index("ix_omq_request_created", "request_id", "created_at"),
        Index("ix_omq_vendor", "vendor_id"),
        # At most one accepted quotation per request, enforced by the store
        Index(
            "uq_omq_one_accepted",
            "request_id",
            unique=True,
            postgresql_where=text("is_accepted"),
            sqlite_where=text("is_accepted"),
        ),
    )
