"""Auth & user models."""

from sqlalchemy import Boolean, Column, String

from ..database import UTCDateTime
from .base import Base, new_id, utcnow


class User(Base):
    """Identity row mirrored from the auth provider; role gates every action."""

    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255))
    role = Column(String(20), nullable=False, default="donor")  # donor | charity | vendor | admin
    is_active = Column(Boolean, default=True)
    created_at = Column(UTCDateTime, default=utcnow)
