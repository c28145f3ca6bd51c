"""History API — 스캔 기록 조회, 워치리스트, LLM 사용량."""

import redis
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from impact_scanner.infra.database.repositories import ScanRepository, WatchlistRepository
from impact_scanner.infra.observability.metrics import get_llm_stats
from impact_scanner.services.deps import get_db_session, get_redis_client

router = APIRouter(tags=["history"])


class WatchlistBody(BaseModel):
    tickers: list[str] = Field(default_factory=list, max_length=50)


@router.get("/scans")
def list_scans(
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_db_session),
) -> list[dict]:
    """최근 스캔 기록 (최신순)."""
    return [
        {
            "id": s.id,
            "created_at": s.created_at.isoformat(),
            "total_articles": s.total_articles,
            "sentiment_score": s.sentiment_score,
            "regions": {
                "Americas": s.americas_sentiment,
                "Europe": s.europe_sentiment,
                "Asia": s.asia_sentiment,
                "Middle East": s.middle_east_sentiment,
                "Africa": s.africa_sentiment,
            },
            "fallback_articles": s.fallback_articles,
            "summary_report": s.summary_report,
        }
        for s in ScanRepository.get_recent_scans(session, limit=limit)
    ]


@router.get("/watchlist")
def get_watchlist(user_id: str | None = None, session: Session = Depends(get_db_session)) -> dict:
    return {"tickers": WatchlistRepository.get_watchlist(session, user_id)}


@router.put("/watchlist")
def put_watchlist(
    body: WatchlistBody,
    user_id: str | None = None,
    session: Session = Depends(get_db_session),
) -> dict:
    """워치리스트 전체 교체 (대문자화, 중복 제거)."""
    row = WatchlistRepository.save_watchlist(session, body.tickers, user_id)
    return {"tickers": list(row.tickers)}


@router.get("/llm/stats")
def llm_stats(r: redis.Redis = Depends(get_redis_client)) -> dict:
    """오늘의 LLM 사용량 (서비스별)."""
    return get_llm_stats(r)
