"""Shared HTTP client — connection pooling for the ledger gateway.

One module-level singleton httpx.AsyncClient, bound to the blockchain
ledger gateway (base_url = settings.ledger_gateway_url) with an explicit
request timeout, so a hung gateway fails the donation call instead of
blocking it.

Per-request timeout overrides via ledger.post(path, timeout=5).

Usage:
    from app.http_client import ledger
    resp = await ledger.post("/call", json=payload)
"""

import httpx

from .config import settings

_LIMITS = httpx.Limits(
    max_connections=50,
    max_keepalive_connections=20,
    keepalive_expiry=30,
)

ledger = httpx.AsyncClient(
    base_url=settings.ledger_gateway_url,
    timeout=settings.ledger_timeout_seconds,
    limits=_LIMITS,
    follow_redirects=False,
)


async def close_clients():
    """Shut down the shared client. Call from app lifespan shutdown."""
    try:
        await ledger.aclose()
    except RuntimeError:
        pass
