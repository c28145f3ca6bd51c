"""Redis client factory."""

from functools import lru_cache

import redis

from impact_scanner.domain.config import get_config


@lru_cache
def get_redis() -> redis.Redis:
    """프로세스 전역 Redis 클라이언트 (싱글턴).

    검색 결과 캐시와 LLM 사용량 집계에만 사용 — 스캔 자체는 Redis 없이도 동작.
    테스트에서는 get_redis.cache_clear() 후 재생성.
    """
    config = get_config()
    return redis.Redis.from_url(
        config.redis.url,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=5,
        retry_on_timeout=False,
    )
