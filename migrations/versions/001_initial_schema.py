"""Initial schema — scans, watchlists.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ─── Scan History ────────────────────────────────────────
    op.create_table(
        "scans",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("total_articles", sa.Integer, nullable=False),
        sa.Column("sentiment_score", sa.Float, nullable=False),
        sa.Column("americas_sentiment", sa.Float, nullable=False, server_default="50"),
        sa.Column("europe_sentiment", sa.Float, nullable=False, server_default="50"),
        sa.Column("asia_sentiment", sa.Float, nullable=False, server_default="50"),
        sa.Column("middle_east_sentiment", sa.Float, nullable=False, server_default="50"),
        sa.Column("africa_sentiment", sa.Float, nullable=False, server_default="50"),
        sa.Column("fallback_articles", sa.Integer, nullable=False, server_default="0"),
        sa.Column("summary_report", sa.Text, nullable=True),
    )
    op.create_index("ix_scans_created", "scans", ["created_at"])

    # ─── Watchlist ───────────────────────────────────────────
    op.create_table(
        "watchlists",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(100), nullable=False, server_default="anonymous"),
        sa.Column("tickers", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", name="uq_watchlist_user"),
    )


def downgrade() -> None:
    op.drop_table("watchlists")
    op.drop_index("ix_scans_created", table_name="scans")
    op.drop_table("scans")
