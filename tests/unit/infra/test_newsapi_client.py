"""NewsAPI 클라이언트 테스트 — httpx.MockTransport 기반."""

import httpx
import pytest

from impact_scanner.domain.errors import SourceFetchError
from impact_scanner.infra.newsapi import NewsApiClient

RAW_ARTICLE = {
    "source": {"id": None, "name": "Reuters"},
    "title": "Fed holds rates",
    "description": "The Federal Reserve held rates steady.",
    "url": "https://www.reuters.com/markets/fed-holds",
    "publishedAt": "2026-03-02T10:00:00Z",
}


def _client(handler) -> NewsApiClient:
    return NewsApiClient(
        "test-key",
        base_url="https://newsapi.test/v2/",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_search_sends_query_params():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "ok", "totalResults": 1, "articles": [RAW_ARTICLE]})

    async with _client(handler) as client:
        articles = await client.search("Federal Reserve", page_size=40)

    assert articles == [RAW_ARTICLE]
    request = seen[0]
    assert request.url.path == "/v2/everything"
    assert request.url.params["q"] == "Federal Reserve"
    assert request.url.params["pageSize"] == "40"
    assert request.url.params["language"] == "en"
    assert request.url.params["sortBy"] == "publishedAt"
    assert request.headers["X-Api-Key"] == "test-key"


@pytest.mark.asyncio
async def test_missing_articles_is_empty():
    async with _client(lambda r: httpx.Response(200, json={"status": "ok"})) as client:
        assert await client.search("q") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response, reason",
    [
        (httpx.Response(429, json={"status": "error"}), "HTTP 429"),
        (httpx.Response(200, text="<html>oops</html>"), "not JSON"),
        (httpx.Response(200, json={"status": "error", "message": "apiKeyInvalid"}), "apiKeyInvalid"),
        (httpx.Response(200, json={"status": "ok", "articles": {"a": 1}}), "not a list"),
    ],
)
async def test_bad_responses_raise(response, reason):
    async with _client(lambda r: response) as client:
        with pytest.raises(SourceFetchError, match=reason) as exc_info:
            await client.search("tariffs")
    assert exc_info.value.query == "tariffs"


@pytest.mark.asyncio
async def test_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(SourceFetchError, match="transport error"):
            await client.search("q")


@pytest.mark.asyncio
async def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    async with _client(handler) as client:
        with pytest.raises(SourceFetchError, match="timeout"):
            await client.search("q")
