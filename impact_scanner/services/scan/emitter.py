"""Event Emitter — 스캔 파이프라인을 순서가 보장된 이벤트 스트림으로 노출.

이벤트 순서:
    status(fetching) → articles → status(analyzing) → analyzed × total → complete
    (자격증명 누락 / 예외 → error 단독 종료)

Usage:
    ctx = ScanContext.from_config(config.scan)
    async for event in scan_events(config, ctx):
        chunk = encode_sse(event)
"""

import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol

from impact_scanner.domain.config import AppConfig
from impact_scanner.domain.enums import ScanPhase
from impact_scanner.domain.errors import FatalConfigError
from impact_scanner.domain.events import (
    AnalyzedEvent,
    ArticlesEvent,
    CompleteEvent,
    ErrorEvent,
    Progress,
    ScanEvent,
    StatusEvent,
)
from impact_scanner.domain.news import AnalyzedArticle, Article, SearchQuery
from impact_scanner.infra.llm import LLMFactory
from impact_scanner.infra.newsapi.client import NewsApiClient
from impact_scanner.infra.redis.cache import TypedCache
from impact_scanner.infra.redis.client import get_redis

from .aggregator import ArticleBatch, CacheFactory, SourceAggregator, query_cache_key
from .classifier import RemoteClassifier
from .context import ScanContext
from .dedup import rank_articles
from .orchestrator import BatchOrchestrator

logger = logging.getLogger(__name__)

# 완료 직전 호출, 저장된 scan id 반환
CompletionHook = Callable[[list[AnalyzedArticle]], Awaitable[int | None]]


def encode_sse(event: ScanEvent) -> str:
    """``event: <name>\\ndata: <json>\\n\\n`` 프레임."""
    return f"event: {event.event_type.value}\ndata: {event.payload()}\n\n"


class ArticleSource(Protocol):
    async def fetch_all(self, ctx: ScanContext) -> list[Article]: ...


class ScanPipeline:
    """fetch → dedup/rank → 배치 분류를 이벤트로 변환.

    Args:
        aggregator: 기사 수집기
        orchestrator: 배치 분류기
        max_articles: 분석 대상 기사 상한
        category_weights: 카테고리 가중 재배분 (None이면 최신순만)
        on_complete: complete 이벤트 직전 1회 호출 (스캔 기록 저장 등)
    """

    def __init__(
        self,
        aggregator: ArticleSource,
        orchestrator: BatchOrchestrator,
        *,
        max_articles: int = 100,
        category_weights: dict[str, float] | None = None,
        on_complete: CompletionHook | None = None,
    ):
        self._aggregator = aggregator
        self._orchestrator = orchestrator
        self._max_articles = max_articles
        self._category_weights = category_weights
        self._on_complete = on_complete

    async def fetch_articles(self, ctx: ScanContext) -> list[Article]:
        raw = await self._aggregator.fetch_all(ctx)
        return rank_articles(raw, self._max_articles, self._category_weights)

    async def events(self, ctx: ScanContext) -> AsyncIterator[ScanEvent]:
        yield StatusEvent(phase=ScanPhase.FETCHING, message="Fetching news articles...")

        articles = await self.fetch_articles(ctx)
        if ctx.cancelled:
            return
        total = len(articles)
        yield ArticlesEvent(articles=articles, total=total)
        yield StatusEvent(phase=ScanPhase.ANALYZING, message="Analyzing articles...", total=total)

        analyzed: list[AnalyzedArticle] = []
        async with contextlib.aclosing(self._orchestrator.run(articles, ctx)) as outcomes:
            async for outcome in outcomes:
                for item in outcome.articles:
                    analyzed.append(item)
                    yield AnalyzedEvent(article=item, progress=Progress(current=len(analyzed), total=total))

        if ctx.cancelled or len(analyzed) != total:
            logger.info("Scan stopped at %d/%d articles", len(analyzed), total)
            return

        scan_id = await self._on_complete(analyzed) if self._on_complete is not None else None
        logger.info("Scan complete: %d articles", total)
        yield CompleteEvent(total=total, scan_id=scan_id)


PipelineFactory = Callable[
    [AppConfig, CompletionHook | None], contextlib.AbstractAsyncContextManager[ScanPipeline]
]


def _cache_factory(config: AppConfig) -> CacheFactory:
    client = get_redis()
    language = config.scan.language
    ttl = config.newsapi.cache_ttl

    def factory(query: SearchQuery) -> TypedCache[ArticleBatch]:
        return TypedCache(client, query_cache_key(query, language), ArticleBatch, ttl=ttl)

    return factory


@contextlib.asynccontextmanager
async def open_aggregator(config: AppConfig) -> AsyncIterator[SourceAggregator]:
    """NewsAPI 클라이언트 수명을 소유하는 수집기 생성."""
    async with NewsApiClient(
        config.secrets.news_api_key,
        base_url=config.newsapi.base_url,
        timeout=config.scan.fetch_timeout,
        sort_by=config.newsapi.sort_by,
    ) as client:
        yield SourceAggregator(
            client,
            config.newsapi.queries,
            language=config.scan.language,
            cache_factory=_cache_factory(config) if config.newsapi.cache_ttl > 0 else None,
            cache_timeout=config.newsapi.cache_timeout,
        )


@contextlib.asynccontextmanager
async def open_pipeline(
    config: AppConfig, on_complete: CompletionHook | None = None
) -> AsyncIterator[ScanPipeline]:
    """수집기 + 원격 분류기 + 배치 오케스트레이터 조립."""
    async with open_aggregator(config) as aggregator:
        classifier = RemoteClassifier(
            LLMFactory.get_provider("fast"),
            temperature=config.llm.classify_temperature,
            max_tokens=config.llm.classify_max_tokens,
            category_regions=config.scan.category_regions,
            default_region=config.scan.default_region,
        )
        yield ScanPipeline(
            aggregator,
            BatchOrchestrator.from_config(classifier, config.scan),
            max_articles=config.scan.max_articles,
            category_weights=config.scan.category_weights or None,
            on_complete=on_complete,
        )


async def scan_events(
    config: AppConfig,
    ctx: ScanContext,
    *,
    pipeline_factory: PipelineFactory = open_pipeline,
    on_complete: CompletionHook | None = None,
) -> AsyncIterator[ScanEvent]:
    """스캔 1회 이벤트 스트림. 항상 complete 또는 error로 끝남 (취소 시 조기 종료)."""
    try:
        config.require_credentials()
    except FatalConfigError as e:
        logger.error("Scan refused: %s", e)
        yield ErrorEvent(message=str(e))
        return

    try:
        async with pipeline_factory(config, on_complete) as pipeline:
            async with contextlib.aclosing(pipeline.events(ctx)) as events:
                async for event in events:
                    yield event
    except Exception as e:
        logger.exception("Scan failed")
        yield ErrorEvent(message=str(e) or "Scan failed")

