"""SQLModel 테이블 정의 — DB 스키마의 Single Source of Truth.

스캔 결과 히스토리(append-only)와 사용자별 워치리스트(upsert)만 저장.
기사 단위 분류 결과는 저장하지 않음.
"""

from datetime import UTC, datetime

from sqlalchemy import JSON, Column, Index, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


# ─── Scan History ────────────────────────────────────────────────


class ScanRecordDB(SQLModel, table=True):
    __tablename__ = "scans"

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow)
    total_articles: int
    sentiment_score: float
    americas_sentiment: float = 50.0
    europe_sentiment: float = 50.0
    asia_sentiment: float = 50.0
    middle_east_sentiment: float = 50.0
    africa_sentiment: float = 50.0
    fallback_articles: int = 0
    summary_report: str | None = Field(default=None, sa_column=Column(Text, nullable=True))

    __table_args__ = (Index("ix_scans_created", "created_at"),)


# ─── Watchlist ───────────────────────────────────────────────────


class WatchlistDB(SQLModel, table=True):
    __tablename__ = "watchlists"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(default="anonymous", max_length=100)
    tickers: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (UniqueConstraint("user_id", name="uq_watchlist_user"),)
