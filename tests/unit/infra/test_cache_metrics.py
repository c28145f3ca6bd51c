"""Redis 캐시 / LLM 사용량 메트릭 테스트 — fakeredis 기반."""

from datetime import date
from unittest.mock import MagicMock

import fakeredis
import pytest
import redis
from pydantic import BaseModel

from impact_scanner.infra.observability.metrics import get_llm_stats, record_llm_usage
from impact_scanner.infra.redis import TypedCache


class Payload(BaseModel):
    name: str
    values: list[int] = []


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


class TestTypedCache:
    def test_miss(self, fake_redis):
        assert TypedCache(fake_redis, "k", Payload).get() is None

    def test_set_get(self, fake_redis):
        cache = TypedCache(fake_redis, "k", Payload)
        cache.set(Payload(name="a", values=[1, 2]))
        assert cache.get() == Payload(name="a", values=[1, 2])

    def test_ttl_applied(self, fake_redis):
        TypedCache(fake_redis, "k", Payload, ttl=60).set(Payload(name="a"))
        assert 0 < fake_redis.ttl("k") <= 60

    def test_corrupt_value_is_miss(self, fake_redis):
        fake_redis.set("k", "{not json")
        assert TypedCache(fake_redis, "k", Payload).get() is None

    def test_redis_down_is_miss(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        client.set.side_effect = redis.ConnectionError("down")
        cache = TypedCache(client, "k", Payload)
        assert cache.get() is None
        cache.set(Payload(name="a"))


class TestLLMStats:
    def test_record_and_read(self, fake_redis):
        record_llm_usage(fake_redis, service="scan_classify", tokens_in=100, tokens_out=40)
        record_llm_usage(fake_redis, service="scan_classify", tokens_in=50, tokens_out=10)
        record_llm_usage(fake_redis, service="scan_summary", tokens_in=500, tokens_out=200)

        stats = get_llm_stats(fake_redis)
        assert stats["scan_classify"] == {"calls": 2, "tokens_in": 150, "tokens_out": 50}
        assert stats["scan_summary"]["calls"] == 1
        assert "unknown" not in stats

    def test_single_service(self, fake_redis):
        record_llm_usage(fake_redis, service="scan_summary", tokens_in=5, tokens_out=5)
        assert get_llm_stats(fake_redis, service="scan_summary")["tokens_in"] == 5
        assert get_llm_stats(fake_redis, service="scan_classify") == {}

    def test_other_day_empty(self, fake_redis):
        record_llm_usage(fake_redis, service="scan_summary", tokens_in=5, tokens_out=5)
        assert get_llm_stats(fake_redis, target_date=date(2000, 1, 1)) == {}

    def test_expiry_set(self, fake_redis):
        record_llm_usage(fake_redis, service="scan_classify", tokens_in=1, tokens_out=1)
        key = f"llm:stats:{date.today().isoformat()}:scan_classify"
        assert fake_redis.ttl(key) > 86400 * 6

    def test_record_failure_swallowed(self):
        client = MagicMock()
        client.pipeline.side_effect = redis.ConnectionError("down")
        record_llm_usage(client, service="scan_classify", tokens_in=1, tokens_out=1)
