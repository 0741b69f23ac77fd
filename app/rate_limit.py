"""Shared rate limiter, in-memory storage.

Limits are per worker process. Disabled when TESTING is set or
RATE_LIMIT_ENABLED=false.
"""

import os

from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings


def _enabled() -> bool:
    if os.environ.get("TESTING"):
        return False
    if not settings.rate_limit_enabled:
        logger.info("Rate limiting disabled by configuration")
        return False
    return True


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=_enabled(),
)
