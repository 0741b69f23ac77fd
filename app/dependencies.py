"""
dependencies.py — Shared FastAPI Dependencies

Reusable dependency functions for authentication and role checks.
All routers import from here instead of defining their own auth logic.

Business Rules:
- get_user returns None if not logged in (non-throwing)
- A service caller may act as a user by sending x-actor-id together with
  an x-agent-key matching AGENT_API_KEY
- require_user raises 401 if not logged in, 403 if deactivated
- require_charity / require_vendor raise 403 on any other role (admin passes)
- require_api_key guards the donation endpoints with the x-api-key secret

Called by: all routers
Depends on: models, database, config
"""

import hmac
import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .config import settings
from .constants import Role
from .database import get_db
from .models import User

log = logging.getLogger(__name__)


def _key_matches(supplied: str | None, expected: str) -> bool:
    return bool(supplied and expected) and hmac.compare_digest(supplied.encode(), expected.encode())


# ── Authentication ────────────────────────────────────────────────────


def get_user(request: Request, db: Session) -> User | None:
    """Return current user from session or agent headers, or None."""
    uid = request.session.get("user_id")
    if not uid and _key_matches(request.headers.get("x-agent-key"), settings.agent_api_key):
        uid = request.headers.get("x-actor-id")
    if not uid:
        return None
    return db.get(User, uid)


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: raises 401 if no authenticated user, 403 if deactivated."""
    user = get_user(request, db)
    if not user:
        raise HTTPException(401, "Not authenticated")
    if not user.is_active:
        request.session.clear()
        raise HTTPException(403, "Account deactivated — contact admin")
    return user


def require_charity(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: requires the charity role for request/acceptance actions."""
    user = require_user(request, db)
    if user.role not in (Role.CHARITY.value, Role.ADMIN.value):
        raise HTTPException(403, "Charity role required for this action")
    return user


def require_vendor(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: requires the vendor role for quotation/fulfilment actions."""
    user = require_user(request, db)
    if user.role not in (Role.VENDOR.value, Role.ADMIN.value):
        raise HTTPException(403, "Vendor role required for this action")
    return user


def require_api_key(request: Request) -> None:
    """Dependency: the x-api-key header must match BLOCKCHAIN_API_KEY."""
    if not _key_matches(request.headers.get("x-api-key"), settings.blockchain_api_key):
        log.warning(f"Rejected donation call from {request.client.host if request.client else '-'}")
        raise HTTPException(401, "Unauthorized")
