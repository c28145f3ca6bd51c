"""Scan API — 뉴스 시장 영향 스캔 SSE 스트림 + 요약/히스토리 REST.

Endpoints:
    GET  /api/scan/stream   SSE (status → articles → analyzed × N → complete | error)
    GET  /api/news          비스트리밍 수집 + 중복 제거
    POST /api/analyze       기사 목록 일괄 분류 (비스트리밍)
    POST /api/summary       분석 결과 → 4단락 브리핑
    GET  /api/scans, GET/PUT /api/watchlist, GET /api/llm/stats
"""

import asyncio
import contextlib
import logging
import uuid
from collections.abc import AsyncIterator, Sequence

from fastapi import Depends, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlmodel import Session

from impact_scanner.domain.config import AppConfig, get_config
from impact_scanner.domain.errors import FatalConfigError
from impact_scanner.domain.news import AnalyzedArticle, Article
from impact_scanner.infra.database.repositories import ScanRepository
from impact_scanner.infra.llm.base import BaseLLMProvider
from impact_scanner.infra.observability.logging import bind_scan_id, setup_logging
from impact_scanner.services.base import create_app
from impact_scanner.services.deps import (
    get_app_config,
    get_classify_llm,
    get_db_session,
    get_session_factory,
    get_summary_llm,
)

from . import history
from .analyze import AnalyzeRequest, AnalyzeResponse, analyze_articles
from .context import ScanContext
from .dedup import rank_articles
from .emitter import CompletionHook, encode_sse, open_aggregator, open_pipeline, scan_events
from .recorder import SessionFactory, record_scan
from .summary import SummaryRequest, SummaryResponse, generate_summary

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# ─── Rate Limiter ────────────────────────────────────────────────

# 스캔 스트림은 클라이언트 IP 기준 제한 (SCAN_STREAM_RATE_LIMIT)
_limiter = Limiter(key_func=get_remote_address)


@contextlib.asynccontextmanager
async def lifespan(app):
    """Startup: 로깅 설정."""
    config = get_config()
    setup_logging("scan-api", log_level=config.log_level, json_output=config.log_json)
    yield


app = create_app("scan-api", version="1.0.0", lifespan=lifespan, dependencies=["redis", "db"])
app.state.limiter = _limiter
# 테스트에서 교체
app.state.pipeline_factory = open_pipeline
app.state.aggregator_factory = open_aggregator

app.include_router(history.router, prefix="/api")


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"error": "Rate limit exceeded", "detail": str(exc)})


class NewsResponse(BaseModel):
    articles: list[Article]
    meta: dict


def _completion_hook(config: AppConfig, session_factory: SessionFactory) -> CompletionHook | None:
    if not config.record_scans:
        return None

    async def on_complete(articles: Sequence[AnalyzedArticle]) -> int | None:
        return await asyncio.to_thread(record_scan, session_factory, articles)

    return on_complete


@app.get("/api/scan/stream")
@_limiter.limit(lambda: get_config().scan.stream_rate_limit)
async def scan_stream(
    request: Request,
    config: AppConfig = Depends(get_app_config),
    session_factory: SessionFactory = Depends(get_session_factory),
) -> StreamingResponse:
    """스캔 1회 SSE 스트림. 클라이언트 연결 종료 시 남은 배치를 취소."""
    ctx = ScanContext.from_config(config.scan)
    on_complete = _completion_hook(config, session_factory)
    scan_id = uuid.uuid4().hex[:12]

    async def body() -> AsyncIterator[str]:
        bind_scan_id(scan_id)
        request.app.state.active_scans += 1
        logger.info("Scan stream opened")
        events = scan_events(
            config,
            ctx,
            pipeline_factory=request.app.state.pipeline_factory,
            on_complete=on_complete,
        )
        try:
            async with contextlib.aclosing(events) as stream:
                async for event in stream:
                    if await request.is_disconnected():
                        logger.info("Client disconnected, cancelling scan")
                        ctx.cancel()
                        break
                    yield encode_sse(event)
        finally:
            ctx.cancel()
            request.app.state.active_scans -= 1

    return StreamingResponse(body(), media_type="text/event-stream", headers=SSE_HEADERS)


@app.get("/api/news")
async def list_news(request: Request, config: AppConfig = Depends(get_app_config)) -> NewsResponse:
    """분류 없이 수집 + 중복 제거 + 최신순 truncate."""
    if not config.secrets.news_api_key:
        raise FatalConfigError("NEWS_API_KEY not configured")

    ctx = ScanContext.from_config(config.scan)
    async with request.app.state.aggregator_factory(config) as aggregator:
        raw = await aggregator.fetch_all(ctx)
    articles = rank_articles(raw, config.scan.max_articles, config.scan.category_weights or None)
    return NewsResponse(articles=articles, meta={"total": len(articles)})


@app.post("/api/summary")
async def create_summary(
    body: SummaryRequest,
    config: AppConfig = Depends(get_app_config),
    llm: BaseLLMProvider = Depends(get_summary_llm),
    session: Session = Depends(get_db_session),
) -> SummaryResponse:
    """분석된 기사 → 내러티브 요약. scan_id가 있으면 스캔 기록에 저장."""
    try:
        summary = await generate_summary(
            llm,
            body.articles,
            body.watchlist,
            temperature=config.llm.summary_temperature,
            max_tokens=config.llm.summary_max_tokens,
        )
    except Exception as e:
        logger.exception("Summary generation failed")
        raise HTTPException(status_code=500, detail="Failed to generate summary") from e

    if body.scan_id is not None:
        ScanRepository.update_scan_summary(session, body.scan_id, summary)
    return SummaryResponse(summary=summary)


@app.post("/api/analyze")
@_limiter.limit(lambda: get_config().scan.stream_rate_limit)
async def analyze(
    request: Request,
    body: AnalyzeRequest,
    config: AppConfig = Depends(get_app_config),
    llm: BaseLLMProvider = Depends(get_classify_llm),
) -> AnalyzeResponse:
    """기사 목록 일괄 분류. 배치 실패는 fallback으로 대체되므로 항상 전체 결과 반환."""
    return await analyze_articles(llm, body.articles, config)
