"""
startup.py — Database Startup Migrations (Idempotent)

Tables, columns, and indexes are defined in the ORM models and created via
Base.metadata.create_all(checkfirst=True). This file only handles
PostgreSQL-specific operations that can't be expressed in the ORM:
CHECK constraints on price, amount and status columns.

Called by: main.py lifespan
Depends on: database.py (engine), models (Base)
"""

import logging
import os

from sqlalchemy import text as sqltext

from .config import settings
from .database import engine

log = logging.getLogger(__name__)


def run_startup_migrations() -> None:
    """Execute all idempotent startup operations. Safe to call on every app boot."""
    if os.environ.get("TESTING"):
        log.info("TESTING mode — skipping startup migrations")
        return

    from .models import Base

    Base.metadata.create_all(bind=engine, checkfirst=True)
    log.info("ORM schema sync complete (create_all checkfirst=True)")

    if settings.is_postgres:
        with engine.connect() as conn:
            _add_check_constraints(conn)
    log.info("Startup migrations complete")


def _exec(conn, stmt: str) -> None:
    """Execute a single DDL statement with rollback on failure."""
    try:
        conn.execute(sqltext(stmt))
        conn.commit()
    except Exception as e:
        log.warning("DDL failed: %s", e)
        conn.rollback()


# ── CHECK constraints (PostgreSQL NOT VALID) ─────────────────────────


def _add_check_constraints(conn) -> None:
    """Add CHECK constraints (NOT VALID) — only new inserts/updates are checked."""
    constraints = [
        # ── OpenMarketRequest ──
        ("OpenMarketRequest", "chk_omr_status", "status IN ('open','closed')"),
        ("OpenMarketRequest", "chk_omr_fund_type", "fund_type IN ('general','campaign')"),
        ("OpenMarketRequest", "chk_omr_quotation_count", "quotation_count >= 0"),
        (
            "OpenMarketRequest",
            "chk_omr_fund_campaign",
            "(fund_type = 'campaign') = (campaign_id IS NOT NULL)",
        ),
        # ── OpenMarketQuotation ──
        ("OpenMarketQuotation", "chk_omq_price", "price > 0"),
        # ── campaign_expenses ──
        ("campaign_expenses", "chk_exp_amount", "amount > 0"),
        (
            "campaign_expenses",
            "chk_exp_status",
            "status IN ('pending','shipping','delivered','completed','rejected')",
        ),
    ]
    for table, name, check in constraints:
        _exec(conn, f"""
            DO $$ BEGIN
                IF NOT EXISTS (
                    SELECT 1 FROM pg_constraint WHERE conname = '{name}'
                ) THEN
                    ALTER TABLE "{table}" ADD CONSTRAINT {name} CHECK ({check}) NOT VALID;
                END IF;
            END $$;
        """)
