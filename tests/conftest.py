"""
conftest.py — Shared Test Fixtures for the Open Market API

Provides an in-memory SQLite database, a FastAPI TestClient wired to it,
and factory fixtures for core models (User, Campaign, MarketRequest,
Quotation, Transaction).

Business Rules:
- All tests run against isolated in-memory DB (no prod data risk)
- Actors authenticate through the agent headers (x-agent-key + x-actor-id),
  so the real role dependencies run in every router test
- Each test function gets a fresh schema (create_all / drop_all)

Called by: all test files via pytest autodiscovery
Depends on: app.models (Base), app.database (get_db), app.dependencies
"""

import os

os.environ["TESTING"] = "1"  # Must be set before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AGENT_API_KEY", "test-agent-key")
os.environ.setdefault("BLOCKCHAIN_API_KEY", "test-blockchain-key")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Campaign, MarketRequest, Quotation, Transaction, User

AGENT_KEY = os.environ["AGENT_API_KEY"]
BLOCKCHAIN_KEY = os.environ["BLOCKCHAIN_API_KEY"]

# ── In-memory SQLite engine ──────────────────────────────────────────

TEST_DB_URL = "sqlite://"  # in-memory, fresh per session

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db: Session, email: str, name: str | None, role: str) -> User:
    user = User(
        email=email,
        name=name,
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def charity_user(db_session: Session) -> User:
    return _make_user(db_session, "food@helping-hands.org", "Helping Hands", "charity")


@pytest.fixture()
def other_charity(db_session: Session) -> User:
    return _make_user(db_session, "office@shelter-now.org", "Shelter Now", "charity")


@pytest.fixture()
def vendor_user(db_session: Session) -> User:
    return _make_user(db_session, "sales@acme-supply.com", "Acme Supply", "vendor")


@pytest.fixture()
def second_vendor(db_session: Session) -> User:
    return _make_user(db_session, "bids@budget-goods.com", "Budget Goods", "vendor")


@pytest.fixture()
def donor_user(db_session: Session) -> User:
    return _make_user(db_session, "jordan@example.com", "Jordan", "donor")


@pytest.fixture()
def test_campaign(db_session: Session, charity_user: User) -> Campaign:
    campaign = Campaign(
        charity_id=charity_user.id,
        title="Winter Blankets 2026",
        description="Blankets for the night shelter",
        status="active",
        target_amount=Decimal("5000.00"),
        current_amount=Decimal("1200.00"),
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(campaign)
    db_session.commit()
    db_session.refresh(campaign)
    return campaign


@pytest.fixture()
def make_request(db_session: Session, charity_user: User):
    """Factory: insert a MarketRequest directly (bypasses service validation)."""

    def _make(**overrides) -> MarketRequest:
        now = datetime.now(timezone.utc)
        values = {
            "title": "200 wool blankets",
            "description": "Single size, delivered to the main shelter",
            "created_by": charity_user.id,
            "status": "open",
            "created_at": now,
            "deadline": now + timedelta(days=7),
            "quotation_count": 0,
            "has_accepted_quotation": False,
            "fund_type": "general",
            "campaign_id": None,
        }
        values.update(overrides)
        req = MarketRequest(**values)
        db_session.add(req)
        db_session.commit()
        db_session.refresh(req)
        return req

    return _make


@pytest.fixture()
def open_request(make_request) -> MarketRequest:
    return make_request()


@pytest.fixture()
def make_quotation(db_session: Session, vendor_user: User):
    """Factory: insert a Quotation and bump the request's quotation_count."""

    def _make(req: MarketRequest, vendor: User | None = None, price="450.00", **overrides) -> Quotation:
        values = {
            "request_id": req.id,
            "vendor_id": (vendor or vendor_user).id,
            "price": Decimal(price),
            "details": "Delivery in 5 days",
            "is_accepted": False,
            "created_at": datetime.now(timezone.utc),
        }
        values.update(overrides)
        q = Quotation(**values)
        db_session.add(q)
        req.quotation_count = (req.quotation_count or 0) + 1
        db_session.commit()
        db_session.refresh(q)
        return q

    return _make


@pytest.fixture()
def test_quotation(open_request: MarketRequest, make_quotation) -> Quotation:
    return make_quotation(open_request)


@pytest.fixture()
def make_transaction(db_session: Session, charity_user: User, vendor_user: User, make_request):
    """Factory: a transaction in any status, backed by its own closed request."""

    def _make(status: str = "pending", amount="450.00", campaign=None, **overrides) -> Transaction:
        req = make_request(
            status="closed",
            has_accepted_quotation=True,
            fund_type="campaign" if campaign else "general",
            campaign_id=campaign.id if campaign else None,
        )
        q = Quotation(
            request_id=req.id,
            vendor_id=vendor_user.id,
            price=Decimal(amount),
            details="Accepted bid",
            is_accepted=True,
            created_at=datetime.now(timezone.utc),
        )
        db_session.add(q)
        db_session.flush()
        values = {
            "campaign_id": req.campaign_id,
            "fund_type": req.fund_type,
            "vendor_id": vendor_user.id,
            "vendor_name": vendor_user.name,
            "charity_id": charity_user.id,
            "amount": Decimal(amount),
            "status": status,
            "description": req.title,
            "details": {"items": [{"name": req.title, "quantity": 1, "unit_price": float(amount)}]},
            "quotation_id": q.id,
            "request_id": req.id,
        }
        values.update(overrides)
        tx = Transaction(**values)
        db_session.add(tx)
        db_session.commit()
        db_session.refresh(tx)
        return tx

    return _make


# ── HTTP client ──────────────────────────────────────────────────────


@pytest.fixture()
def client(db_session: Session) -> TestClient:
    """FastAPI TestClient bound to the test session.

    Only get_db is overridden; actors authenticate with as_actor(user) headers.
    """
    from app.database import get_db
    from app.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def as_actor():
    """Factory: headers that authenticate a request as `user` via the agent key."""

    def _headers(user: User) -> dict:
        return {"x-agent-key": AGENT_KEY, "x-actor-id": user.id}

    return _headers


@pytest.fixture()
def api_key_headers() -> dict:
    return {"x-api-key": BLOCKCHAIN_KEY}
