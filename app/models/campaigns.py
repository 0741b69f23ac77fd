"""Fundraising campaign model — only what fund attribution needs."""

from sqlalchemy import Column, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base, new_id, utcnow


class Campaign(Base):
    __tablename__ = "campaigns"
    id = Column(String(36), primary_key=True, default=new_id)
    charity_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(20), default="active")  # active | completed | cancelled
    target_amount = Column(Numeric(12, 2))
    current_amount = Column(Numeric(12, 2), default=0)
    deadline = Column(UTCDateTime)
    created_at = Column(UTCDateTime, default=utcnow)

    charity = relationship("User", foreign_keys=[charity_id])

    __table_args__ = (Index("ix_campaigns_charity", "charity_id"),)
