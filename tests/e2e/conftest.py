"""E2E 테스트 공용 Fixtures.

Mock NewsAPI (httpx.MockTransport) + 스크립트 LLM + SQLite in-memory DB로
Scan API 전체 경로(수집 → 중복 제거 → 배치 분류 → SSE → 클라이언트 reducer → 요약)를
외부 의존 없이 구동.
"""

from __future__ import annotations

import contextlib
import os
import re
from typing import Any
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from impact_scanner.client import ScanClient
from impact_scanner.domain.config import get_config
from impact_scanner.infra.llm.base import BaseLLMProvider, LLMResponse
from impact_scanner.infra.newsapi.client import NewsApiClient
from impact_scanner.services.deps import get_db_session, get_session_factory, get_summary_llm
from impact_scanner.services.scan.aggregator import SourceAggregator
from impact_scanner.services.scan.app import app
from impact_scanner.services.scan.classifier import RemoteClassifier
from impact_scanner.services.scan.emitter import ScanPipeline
from impact_scanner.services.scan.orchestrator import BatchOrchestrator

# ---------------------------------------------------------------------------
# Config patching
# ---------------------------------------------------------------------------

_TEST_ENV = {
    "APP_ENV": "test",
    "NEWS_API_KEY": "test-news-key",
    "GEMINI_API_KEY": "test-gemini-key",
    "SCAN_RETRY_DELAY": "0",
    "SCAN_BATCH_DELAY": "0",
    "NEWSAPI_CACHE_TTL": "0",
}


@pytest.fixture(autouse=True)
def _patch_config():
    """모든 E2E 테스트에서 config 캐시를 클리어하고 테스트 환경 변수 주입."""
    get_config.cache_clear()
    with patch.dict(os.environ, _TEST_ENV, clear=False):
        yield
    get_config.cache_clear()


# ---------------------------------------------------------------------------
# Mock NewsAPI
# ---------------------------------------------------------------------------

# 쿼리 카테고리별 기사 (Markets 첫 기사는 Economy 첫 기사와 같은 URL)
_FEED = {
    "Economy": [1, 2, 3],
    "Markets": [1, 4, 5],
    "Policy": [6, 7, 8],
    "Politics": [9, 10, 11, 12],
}


def _raw(n: int, category: str) -> dict[str, Any]:
    return {
        "source": {"id": None, "name": "Wire"},
        "title": f"{category} update {n}",
        "description": "",
        "url": f"https://wire.example.com/story/{n}",
        "publishedAt": f"2026-03-02T{n:02d}:00:00Z",
    }


@pytest.fixture
def newsapi_transport() -> httpx.MockTransport:
    queries = {q.query: q.category for q in get_config().newsapi.queries}

    def handler(request: httpx.Request) -> httpx.Response:
        category = queries.get(request.url.params["q"])
        if category is None:
            return httpx.Response(400, json={"status": "error", "message": "unknown query"})
        return httpx.Response(
            200,
            json={"status": "ok", "articles": [_raw(n, category) for n in _FEED[category]]},
        )

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Scripted LLM
# ---------------------------------------------------------------------------


class ScriptedLLM(BaseLLMProvider):
    """generate_json 호출 번호(1부터)가 fail_calls에 있으면 전송 오류.

    정상 응답은 articleNum 역순으로 반환 (번호 기준 정렬 검증).
    """

    def __init__(self, fail_calls: set[int] | None = None):
        self.fail_calls = fail_calls or set()
        self.json_calls = 0
        self.prompts: list[str] = []

    @property
    def provider_name(self) -> str:
        return "scripted"

    async def generate(self, prompt, **kwargs) -> LLMResponse:
        self.prompts.append(prompt)
        return LLMResponse(content="**TOP STORIES**\nMarkets digest the data.", model="scripted")

    async def generate_json(self, prompt, schema, **kwargs) -> dict[str, Any]:
        self.json_calls += 1
        if self.json_calls in self.fail_calls:
            raise ConnectionError("upstream reset")
        n = int(re.search(r"Analyze these (\d+) news headlines", prompt).group(1))
        return {
            "analyses": [
                {
                    "articleNum": i,
                    "summary": f"Impact {i}",
                    "overallSentiment": "Bullish",
                    "sectors": [{"sector": "Financials", "impact": "Bullish"}],
                }
                for i in range(n, 0, -1)
            ]
        }


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


# ---------------------------------------------------------------------------
# App wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def scan_app(engine, llm, newsapi_transport, monkeypatch):
    """실제 수집기/분류기/오케스트레이터 + mock 업스트림으로 구성된 앱."""

    @contextlib.asynccontextmanager
    async def pipeline_factory(config, on_complete):
        async with NewsApiClient(config.secrets.news_api_key, transport=newsapi_transport) as news:
            aggregator = SourceAggregator(news, config.newsapi.queries, language=config.scan.language)
            classifier = RemoteClassifier(llm, category_regions=config.scan.category_regions)
            yield ScanPipeline(
                aggregator,
                BatchOrchestrator.from_config(classifier, config.scan),
                max_articles=config.scan.max_articles,
                on_complete=on_complete,
            )

    def session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db_session] = session_override
    app.dependency_overrides[get_session_factory] = lambda: (lambda: Session(engine))
    app.dependency_overrides[get_summary_llm] = lambda: llm
    monkeypatch.setattr(app.state, "pipeline_factory", pipeline_factory)
    monkeypatch.setattr(app.state.limiter, "enabled", False)
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def scan_client(scan_app):
    async with ScanClient("http://scanner.test", transport=httpx.ASGITransport(app=scan_app)) as client:
        yield client
