"""스캔 기록 — 완료된 스캔 1회의 지역별 감성 요약을 scans 테이블에 append.

complete 이벤트 직전에만 호출. 취소/실패한 스캔은 기록하지 않음.
"""

import logging
from collections.abc import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from impact_scanner.domain.enums import Region, ResultSource
from impact_scanner.domain.news import AnalyzedArticle
from impact_scanner.domain.scan import region_scores, sentiment_score
from impact_scanner.infra.database.models import ScanRecordDB
from impact_scanner.infra.database.repositories import ScanRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def build_scan_record(articles: Sequence[AnalyzedArticle]) -> ScanRecordDB:
    scores = region_scores(articles)
    return ScanRecordDB(
        total_articles=len(articles),
        sentiment_score=sentiment_score(articles),
        americas_sentiment=scores[Region.AMERICAS],
        europe_sentiment=scores[Region.EUROPE],
        asia_sentiment=scores[Region.ASIA],
        middle_east_sentiment=scores[Region.MIDDLE_EAST],
        africa_sentiment=scores[Region.AFRICA],
        fallback_articles=sum(1 for a in articles if a.origin == ResultSource.FALLBACK),
    )


def record_scan(session_factory: SessionFactory, articles: Sequence[AnalyzedArticle]) -> int | None:
    """스캔 기록 저장. 저장된 scan id, DB 실패 시 None (스트림은 계속 진행)."""
    record = build_scan_record(articles)
    try:
        with session_factory() as session:
            saved = ScanRepository.save_scan(session, record)
    except SQLAlchemyError as e:
        logger.warning("Save scan record failed: %s", e)
        return None

    logger.info(
        "Scan recorded: id=%s articles=%d sentiment=%.1f fallback=%d",
        saved.id,
        saved.total_articles,
        saved.sentiment_score,
        saved.fallback_articles,
    )
    return saved.id
