"""initial schema - users, campaigns, open market and transactions

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

For databases created by the hosted store: run `alembic stamp 001_initial`
(tables already exist, just mark as current).
For NEW databases: run `alembic upgrade head`.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ts(name: str, **kw) -> sa.Column:
    return sa.Column(name, sa.DateTime(), **kw)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255)),
        sa.Column("role", sa.String(20), nullable=False, server_default="donor"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        _ts("created_at"),
    )

    op.create_table(
        "campaigns",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("charity_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("status", sa.String(20), server_default="active"),
        sa.Column("target_amount", sa.Numeric(12, 2)),
        sa.Column("current_amount", sa.Numeric(12, 2), server_default="0"),
        _ts("deadline"),
        _ts("created_at"),
    )
    op.create_index("ix_campaigns_charity", "campaigns", ["charity_id"])

    op.create_table(
        "OpenMarketRequest",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        _ts("created_at"),
        _ts("deadline"),
        sa.Column("quotation_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("has_accepted_quotation", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fund_type", sa.String(20), nullable=False, server_default="general"),
        sa.Column("campaign_id", sa.String(36), sa.ForeignKey("campaigns.id")),
    )
    op.create_index("ix_omr_created_by", "OpenMarketRequest", ["created_by"])
    op.create_index("ix_omr_status_created", "OpenMarketRequest", ["status", "created_at"])

    op.create_table(
        "OpenMarketQuotation",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "request_id",
            sa.String(36),
            sa.ForeignKey("OpenMarketRequest.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("vendor_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("attachment_url", sa.String(1000)),
        sa.Column("is_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("created_at"),
    )
    op.create_index("ix_omq_request_created", "OpenMarketQuotation", ["request_id", "created_at"])
    op.create_index("ix_omq_vendor", "OpenMarketQuotation", ["vendor_id"])
    op.create_index(
        "uq_omq_one_accepted",
        "OpenMarketQuotation",
        ["request_id"],
        unique=True,
        postgresql_where=sa.text("is_accepted"),
        sqlite_where=sa.text("is_accepted"),
    )

    op.create_table(
        "campaign_expenses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("campaign_id", sa.String(36), sa.ForeignKey("campaigns.id")),
        sa.Column("fund_type", sa.String(20), nullable=False, server_default="general"),
        sa.Column("vendor_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("vendor_name", sa.String(255)),
        sa.Column("charity_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("description", sa.Text()),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column(
            "quotation_id",
            sa.String(36),
            sa.ForeignKey("OpenMarketQuotation.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "request_id",
            sa.String(36),
            sa.ForeignKey("OpenMarketRequest.id"),
            nullable=False,
            unique=True,
        ),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_expenses_charity_created", "campaign_expenses", ["charity_id", "created_at"])
    op.create_index("ix_expenses_vendor_created", "campaign_expenses", ["vendor_id", "created_at"])
    op.create_index("ix_expenses_campaign", "campaign_expenses", ["campaign_id"])
    op.create_index("ix_expenses_status", "campaign_expenses", ["status"])


def downgrade() -> None:
    """Drop all tables. DESTRUCTIVE — only for dev/test environments."""
    for table in ("campaign_expenses", "OpenMarketQuotation", "OpenMarketRequest", "campaigns", "users"):
        op.drop_table(table)
