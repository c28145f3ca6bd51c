"""Source Aggregator — N개 검색 쿼리 병렬 실행 → 카테고리 태그된 기사 목록.

Usage:
    async with NewsApiClient(api_key) as client:
        aggregator = SourceAggregator(client, config.newsapi.queries)
        raw_articles = await aggregator.fetch_all(ctx)

쿼리 단위 실패(SourceFetchError, timeout)는 빈 결과로 강등 — 전체 fetch는 중단되지 않음.
출력은 쿼리 목록 순서대로 이어 붙임 (쿼리 내부는 업스트림 순서 유지).
캐시 읽기/쓰기는 cache_timeout으로 따로 제한 — Redis가 멈춰도 검색 deadline에 영향 없음.
"""

import asyncio
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from impact_scanner.domain.errors import SourceFetchError
from impact_scanner.domain.news import Article, SearchQuery
from impact_scanner.infra.newsapi.client import NewsApiClient
from impact_scanner.infra.redis.cache import TypedCache

from .context import ScanContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ArticleBatch(BaseModel):
    """쿼리 1건의 결과 (캐시 단위)."""

    articles: list[Article]


CacheFactory = Callable[[SearchQuery], TypedCache[ArticleBatch]]


def query_cache_key(query: SearchQuery, language: str) -> str:
    digest = hashlib.md5(f"{query.query}|{query.category}".encode()).hexdigest()[:12]
    return f"newsapi:{language}:{digest}:{query.page_size}"


def to_articles(raw_articles: list[dict[str, Any]], category: str) -> list[Article]:
    """NewsAPI 원본 → Article. URL/타임스탬프가 없거나 깨진 항목은 건너뜀."""
    articles: list[Article] = []
    for raw in raw_articles:
        if not isinstance(raw, dict) or not raw.get("url"):
            continue
        source = raw.get("source") or {}
        try:
            articles.append(
                Article.model_validate(
                    {
                        "title": raw.get("title") or "",
                        "source": (source.get("name") if isinstance(source, dict) else None) or "Unknown",
                        "url": raw["url"],
                        "publishedAt": raw.get("publishedAt"),
                        "description": raw.get("description") or "",
                        "category": category,
                    }
                )
            )
        except (ValidationError, ValueError):
            logger.debug("[%s] Skipping malformed article: %s", category, raw.get("url"))
    return articles


class SourceAggregator:
    """멀티 쿼리 병렬 수집기.

    Args:
        client: NewsAPI 클라이언트
        queries: (query, page_size, category) 목록
        language: 검색 언어
        cache_factory: 쿼리별 TypedCache 생성 함수 (None이면 캐시 미사용)
        cache_timeout: 캐시 읽기/쓰기 1회 대기 상한 (초). 초과 시 miss로 취급
    """

    def __init__(
        self,
        client: NewsApiClient,
        queries: list[SearchQuery],
        *,
        language: str = "en",
        cache_factory: CacheFactory | None = None,
        cache_timeout: float = 0.5,
    ):
        self._client = client
        self._queries = list(queries)
        self._language = language
        self._cache_factory = cache_factory
        self._cache_timeout = cache_timeout

    async def fetch_all(self, ctx: ScanContext) -> list[Article]:
        """모든 쿼리 동시 실행. 동시성 상한 없음 (쿼리 목록 크기로 제한)."""
        results = await asyncio.gather(*(self._fetch_one(q, ctx) for q in self._queries))

        merged = [article for batch in results for article in batch]
        logger.info(
            "Fetched %d articles from %d queries (%d empty)",
            len(merged),
            len(self._queries),
            sum(1 for batch in results if not batch),
        )
        return merged

    async def _cache_call(self, query: SearchQuery, fn: Callable[..., T], *args: Any) -> T | None:
        """동기 Redis 호출을 워커 스레드에서 cache_timeout 이내로 실행."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self._cache_timeout)
        except TimeoutError:
            logger.warning("[%s] Cache call timed out after %.1fs", query.category, self._cache_timeout)
            return None

    async def _fetch_one(self, query: SearchQuery, ctx: ScanContext) -> list[Article]:
        cache = self._cache_factory(query) if self._cache_factory else None
        if cache is not None:
            cached = await self._cache_call(query, cache.get)
            if cached is not None:
                logger.debug("[%s] Cache hit (%d articles)", query.category, len(cached.articles))
                return cached.articles

        try:
            raw = await asyncio.wait_for(
                self._client.search(query.query, page_size=query.page_size, language=self._language),
                timeout=ctx.fetch_timeout,
            )
        except SourceFetchError as e:
            logger.warning("[%s] %s", query.category, e)
            return []
        except TimeoutError:
            logger.warning("[%s] Search timed out after %.1fs", query.category, ctx.fetch_timeout)
            return []

        articles = to_articles(raw, query.category)
        if cache is not None and articles:
            await self._cache_call(query, cache.set, ArticleBatch(articles=articles))
        return articles
