"""LLM Provider 단위 테스트 — mock 기반 (실제 API 호출 없음)."""

import asyncio
import json
import socket
import time
from unittest.mock import AsyncMock, MagicMock, patch

import fakeredis
import pytest
import redis

from factories import make_article, make_result

from impact_scanner.infra.llm.base import USAGE_RECORD_TIMEOUT, BaseLLMProvider, LLMResponse
from impact_scanner.infra.llm.factory import _PROVIDER_REGISTRY, LLMFactory, register_provider
from impact_scanner.infra.observability.metrics import get_llm_stats
from impact_scanner.services.scan.context import ScanContext
from impact_scanner.services.scan.orchestrator import BatchOrchestrator


@pytest.fixture(autouse=True)
def _clear_caches():
    LLMFactory.get_provider.cache_clear()
    yield
    LLMFactory.get_provider.cache_clear()


class MockProvider(BaseLLMProvider):
    async def generate(self, prompt, **kwargs):
        return LLMResponse(content="mock", model="m", provider="mock")

    async def generate_json(self, prompt, schema, **kwargs):
        return {"result": "mock"}

    @property
    def provider_name(self):
        return "mock"


# ─── Base & Factory ──────────────────────────────────────────


class TestBaseLLMProvider:
    def test_abstract_methods(self):
        """추상 클래스는 직접 인스턴스화 불가."""
        with pytest.raises(TypeError):
            BaseLLMProvider()

    def test_llm_response_model(self):
        resp = LLMResponse(content="hello", model="test", tokens_in=10, tokens_out=5, provider="test")
        assert resp.content == "hello"
        assert resp.tokens_in == 10

    @pytest.mark.asyncio
    async def test_record_usage_skips_zero_tokens(self):
        with patch("impact_scanner.infra.observability.metrics.record_llm_usage") as mock_record:
            await MockProvider()._record_usage(LLMResponse(content="", model="m"), "scan_classify")
        mock_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_record_usage_failure_is_swallowed(self):
        with patch("impact_scanner.infra.redis.client.get_redis", side_effect=RuntimeError("down")):
            await MockProvider()._record_usage(LLMResponse(content="x", model="m", tokens_in=3), "scan_classify")

    @pytest.mark.asyncio
    async def test_record_usage_writes_stats(self):
        r = fakeredis.FakeRedis(decode_responses=True)
        with patch("impact_scanner.infra.redis.client.get_redis", return_value=r):
            await MockProvider()._record_usage(
                LLMResponse(content="x", model="m", tokens_in=3, tokens_out=2), "scan_classify"
            )
        assert get_llm_stats(r, service="scan_classify") == {"calls": 1, "tokens_in": 3, "tokens_out": 2}


# ─── Usage recording against an unresponsive Redis ───────────


@pytest.fixture
def silent_redis():
    """연결은 받지만 응답하지 않는 Redis 서버 자리."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    host, port = server.getsockname()
    client = redis.Redis(host=host, port=port, socket_connect_timeout=1, socket_timeout=3)
    try:
        with patch("impact_scanner.infra.redis.client.get_redis", return_value=client):
            yield client
    finally:
        server.close()


class UsageRecordingProvider(MockProvider):
    """generate_json 응답 후 사용량 기록 (Gemini와 같은 경로)."""

    async def generate_json(self, prompt, schema, **kwargs):
        usage = LLMResponse(content="{}", model="m", tokens_in=5, tokens_out=5)
        await self._record_usage(usage, kwargs.get("service"))
        return {"analyses": []}


class TestUnresponsiveRedis:
    @pytest.mark.asyncio
    async def test_usage_recording_is_bounded(self, silent_redis):
        start = time.monotonic()
        await UsageRecordingProvider().generate_json("p", {}, service="scan_classify")
        assert time.monotonic() - start < USAGE_RECORD_TIMEOUT + 1.0

    @pytest.mark.asyncio
    async def test_event_loop_keeps_running(self, silent_redis):
        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.02)
                ticks += 1

        task = asyncio.create_task(ticker())
        try:
            await UsageRecordingProvider().generate_json("p", {}, service="scan_classify")
        finally:
            task.cancel()
        assert ticks >= 5

    @pytest.mark.asyncio
    async def test_classify_timeout_honoured(self, silent_redis):
        class RecordingClassifier:
            def __init__(self):
                self.llm = UsageRecordingProvider()

            async def classify(self, batch):
                await self.llm.generate_json("p", {}, service="scan_classify")
                return [make_result() for _ in batch]

        orchestrator = BatchOrchestrator(RecordingClassifier(), max_attempts=1, retry_delay=0, batch_delay=0)
        ctx = ScanContext(classify_timeout=0.1)
        start = time.monotonic()
        [outcome] = [o async for o in orchestrator.run([make_article(1)], ctx)]

        assert outcome.used_fallback
        assert time.monotonic() - start < 1.0


class TestLLMFactory:
    def test_unknown_tier_raises(self):
        with pytest.raises(ValueError, match="Unknown LLM tier"):
            LLMFactory.get_provider("nonexistent")

    def test_unregistered_provider_raises(self, monkeypatch):
        monkeypatch.setenv("LLM_TIER_FAST_PROVIDER", "nowhere")
        with pytest.raises(ValueError, match="not registered"):
            LLMFactory.get_provider("fast")

    def test_register_and_get(self, monkeypatch):
        """커스텀 provider 등록 후 tier로 조회."""
        register_provider("test_mock", MockProvider)
        monkeypatch.setenv("LLM_TIER_REASONING_PROVIDER", "test_mock")
        try:
            provider = LLMFactory.get_provider("reasoning")
            assert provider.provider_name == "mock"
            assert LLMFactory.get_provider("reasoning") is provider
        finally:
            del _PROVIDER_REGISTRY["test_mock"]


# ─── Gemini Provider ─────────────────────────────────────────


def _gemini_response(text: str, tokens_in: int = 12, tokens_out: int = 7) -> MagicMock:
    resp = MagicMock()
    resp.text = text
    resp.usage_metadata.prompt_token_count = tokens_in
    resp.usage_metadata.candidates_token_count = tokens_out
    return resp


@pytest.fixture
def gemini():
    from impact_scanner.infra.llm.providers.gemini import GeminiLLMProvider

    with (
        patch("google.genai.Client"),
        patch.object(GeminiLLMProvider, "_record_usage") as mock_record,
    ):
        provider = GeminiLLMProvider()
        provider.mock_record = mock_record
        yield provider


class TestGeminiProvider:
    def test_registered(self):
        from impact_scanner.infra.llm.providers.gemini import GeminiLLMProvider

        assert _PROVIDER_REGISTRY["gemini"] is GeminiLLMProvider

    @pytest.mark.asyncio
    async def test_generate(self, gemini):
        gemini._client.aio.models.generate_content = AsyncMock(return_value=_gemini_response("Markets rallied."))

        resp = await gemini.generate("Summarize", system="You are an analyst", service="scan_summary")

        assert resp.content == "Markets rallied."
        assert resp.tokens_in == 12
        assert resp.tokens_out == 7
        assert resp.provider == "gemini"
        kwargs = gemini._client.aio.models.generate_content.call_args.kwargs
        assert kwargs["contents"] == "Summarize"
        assert kwargs["config"].system_instruction == "You are an analyst"
        gemini.mock_record.assert_awaited_once_with(resp, "scan_summary")

    @pytest.mark.asyncio
    async def test_generate_json(self, gemini):
        body = {"analyses": [{"articleNum": 1}]}
        gemini._client.aio.models.generate_content = AsyncMock(return_value=_gemini_response(json.dumps(body)))

        result = await gemini.generate_json("Classify", {"type": "object"}, service="scan_classify")

        assert result == body
        config = gemini._client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.response_json_schema == {"type": "object"}

    @pytest.mark.asyncio
    async def test_classifier_schema_reaches_request(self, gemini):
        from impact_scanner.services.scan.classifier import CLASSIFY_SCHEMA, RemoteClassifier

        body = {"analyses": [{"articleNum": 1, "summary": "s", "overallSentiment": "Neutral"}]}
        gemini._client.aio.models.generate_content = AsyncMock(return_value=_gemini_response(json.dumps(body)))

        [result] = await RemoteClassifier(gemini).classify([make_article(1)])

        config = gemini._client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.response_json_schema == CLASSIFY_SCHEMA
        assert result.analysis.summary == "s"

    @pytest.mark.asyncio
    async def test_generate_json_invalid_body(self, gemini):
        gemini._client.aio.models.generate_content = AsyncMock(return_value=_gemini_response("not json"))

        with pytest.raises(json.JSONDecodeError):
            await gemini.generate_json("Classify", {"type": "object"})

    @pytest.mark.asyncio
    async def test_missing_usage_metadata(self, gemini):
        resp = _gemini_response("ok")
        resp.usage_metadata = None
        gemini._client.aio.models.generate_content = AsyncMock(return_value=resp)

        result = await gemini.generate("p")
        assert (result.tokens_in, result.tokens_out) == (0, 0)
