"""NewsAPI HTTP Client — ``/everything`` 검색.

모든 실패(비정상 status, 전송 오류, timeout, JSON 아님, status=error)는
SourceFetchError로 통일. 쿼리 단위 복구는 호출자(aggregator) 책임.
"""

import logging
from typing import Any

import httpx

from impact_scanner.domain.config import get_config
from impact_scanner.domain.errors import SourceFetchError

logger = logging.getLogger(__name__)


class NewsApiClient:
    """NewsAPI 비동기 클라이언트.

    Usage:
        async with NewsApiClient(api_key) as client:
            raw = await client.search("Federal Reserve", page_size=40)
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        sort_by: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        config = get_config()
        self._api_key = api_key
        self._sort_by = sort_by or config.newsapi.sort_by
        self._client = httpx.AsyncClient(
            base_url=(base_url or config.newsapi.base_url).rstrip("/"),
            timeout=timeout if timeout is not None else config.scan.fetch_timeout,
            headers={"X-Api-Key": api_key},
            transport=transport,
        )

    async def __aenter__(self) -> "NewsApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search(self, query: str, page_size: int = 40, language: str = "en") -> list[dict[str, Any]]:
        """키워드 검색 → 원본 기사 dict 목록 (NewsAPI 응답 순서 유지)."""
        params = {
            "q": query,
            "pageSize": page_size,
            "language": language,
            "sortBy": self._sort_by,
        }
        try:
            resp = await self._client.get("/everything", params=params)
        except httpx.TimeoutException as e:
            raise SourceFetchError(query, "timeout") from e
        except httpx.HTTPError as e:
            raise SourceFetchError(query, f"transport error: {e}") from e

        if resp.status_code != 200:
            raise SourceFetchError(query, f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise SourceFetchError(query, "response is not JSON") from e

        if not isinstance(data, dict) or data.get("status", "ok") != "ok":
            message = data.get("message", "unknown") if isinstance(data, dict) else "unexpected body"
            raise SourceFetchError(query, f"API error: {message}")

        articles = data.get("articles") or []
        if not isinstance(articles, list):
            raise SourceFetchError(query, "articles is not a list")
        return articles
