"""공유 DB 쿼리 — 서비스 레이어가 사용하는 Repository 패턴.

모든 쿼리는 SQLModel Session을 받아 순수 함수로 동작.
도메인 모델 변환은 호출자 책임 (Repository는 DB 모델만 반환).
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import desc
from sqlmodel import Session, select

from .models import ScanRecordDB, WatchlistDB

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"


# ─── Scan History ────────────────────────────────────────────────


class ScanRepository:
    """스캔 1회당 1건 append, 최근 기록 조회."""

    @staticmethod
    def save_scan(session: Session, record: ScanRecordDB) -> ScanRecordDB:
        session.add(record)
        session.commit()
        session.refresh(record)
        return record

    @staticmethod
    def get_recent_scans(session: Session, limit: int = 20) -> list[ScanRecordDB]:
        stmt = select(ScanRecordDB).order_by(desc(ScanRecordDB.created_at), desc(ScanRecordDB.id)).limit(limit)
        return list(session.exec(stmt).all())

    @staticmethod
    def update_scan_summary(session: Session, scan_id: int, summary_report: str) -> bool:
        record = session.get(ScanRecordDB, scan_id)
        if record is None:
            logger.warning("Scan %s not found for summary update", scan_id)
            return False
        record.summary_report = summary_report
        session.add(record)
        session.commit()
        return True


# ─── Watchlist ───────────────────────────────────────────────────


class WatchlistRepository:
    """사용자별 티커 워치리스트 (user_id 기준 upsert)."""

    @staticmethod
    def get_watchlist(session: Session, user_id: str | None = None) -> list[str]:
        stmt = select(WatchlistDB).where(WatchlistDB.user_id == (user_id or ANONYMOUS_USER))
        row = session.exec(stmt).first()
        return list(row.tickers) if row else []

    @staticmethod
    def save_watchlist(session: Session, tickers: list[str], user_id: str | None = None) -> WatchlistDB:
        uid = user_id or ANONYMOUS_USER
        normalized = list(dict.fromkeys(t.strip().upper() for t in tickers if t.strip()))

        row = session.exec(select(WatchlistDB).where(WatchlistDB.user_id == uid)).first()
        if row is None:
            row = WatchlistDB(user_id=uid, tickers=normalized)
        else:
            row.tickers = normalized
            row.updated_at = datetime.now(UTC).replace(tzinfo=None)

        session.add(row)
        session.commit()
        session.refresh(row)
        return row
