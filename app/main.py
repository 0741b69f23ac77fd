"""
Open Market — charity procurement and donation ledger API

Charities post requests, vendors quote, the charity accepts one quotation
and both sides walk the resulting transaction to payment release.
Donations are recorded on the blockchain ledger through /donations.

Business Rules:
- Every response carries X-Request-ID, X-API-Version and security headers
- /api/v1/... is served by the same routes as /api/...
- Domain errors map to {error, code, status_code, request_id}

Called by: uvicorn (app.main:app)
Depends on: routers/*, logging_config.py, startup.py, http_client.py
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .config import settings
from .exceptions import MarketError
from .logging_config import setup_logging
from .rate_limit import limiter
from .schemas.errors import ErrorResponse

setup_logging()

API_VERSION = "v1"

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    from .http_client import close_clients
    from .startup import run_startup_migrations

    run_startup_migrations()
    logger.info("Open Market API ready")
    yield
    await close_clients()


app = FastAPI(title="Open Market", version="0.4.0", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Request id, /api/v1 rewrite, version and security headers."""
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id

    path = request.scope["path"]
    prefix = f"/api/{API_VERSION}/"
    if path.startswith(prefix):
        request.scope["path"] = "/api/" + path[len(prefix):]

    with logger.contextualize(request_id=request_id):
        response = await call_next(request)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-API-Version"] = API_VERSION
    for name, value in _SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


# Outermost, so request.session exists inside request_context
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


# ── Error handlers ───────────────────────────────────────────────────


@app.exception_handler(MarketError)
async def market_error_handler(request: Request, exc: MarketError):
    level = "WARNING" if exc.status_code < 500 else "ERROR"
    logger.log(level, f"{request.method} {request.url.path} → {exc.code}: {exc.message}")
    body = ErrorResponse(
        error=exc.message,
        code=exc.code,
        status_code=exc.status_code,
        request_id=_request_id(request),
    )
    return JSONResponse(body.model_dump(exclude_none=True), status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = ErrorResponse(
        error=str(exc.detail),
        status_code=exc.status_code,
        request_id=_request_id(request),
    )
    return JSONResponse(
        body.model_dump(exclude_none=True),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    body = ErrorResponse(
        error="Validation error",
        status_code=422,
        request_id=_request_id(request),
        detail=[
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ],
    )
    return JSONResponse(body.model_dump(exclude_none=True), status_code=422)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        {
            "error": "Internal server error",
            "type": type(exc).__name__,
            "status_code": 500,
            "request_id": _request_id(request),
        },
        status_code=500,
    )


# ── Routers ──────────────────────────────────────────────────────────

from .routers.donations import router as donations_router  # noqa: E402
from .routers.funds import router as funds_router  # noqa: E402
from .routers.quotations import router as quotations_router  # noqa: E402
from .routers.requests import router as requests_router  # noqa: E402
from .routers.transactions import router as transactions_router  # noqa: E402

app.include_router(requests_router)
app.include_router(quotations_router)
app.include_router(transactions_router)
app.include_router(funds_router)
app.include_router(donations_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
