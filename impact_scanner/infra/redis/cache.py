"""TypedCache — Pydantic 모델 기반 Redis 캐시.

Usage:
    cache = TypedCache(redis_client, "newsapi:q:Economy", ArticleBatch, ttl=300)
    cache.set(batch)
    cached = cache.get()  # -> Optional[ArticleBatch]
"""

import logging
from typing import Generic, TypeVar

import redis
from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class TypedCache(Generic[T]):
    """Pydantic 모델 직렬화/역직렬화를 보장하는 Redis 캐시.

    Redis 장애는 캐시 miss로 취급 (get → None, set → 무시).
    """

    def __init__(
        self,
        client: redis.Redis,
        key: str,
        model_class: type[T],
        ttl: int | None = None,
    ):
        self._client = client
        self._key = key
        self._model_class = model_class
        self._ttl = ttl

    @property
    def key(self) -> str:
        return self._key

    def get(self) -> T | None:
        """캐시에서 읽기. 없거나 파싱/연결 실패 시 None."""
        try:
            raw = self._client.get(self._key)
        except redis.RedisError:
            logger.debug("Cache read failed for key=%s", self._key)
            return None
        if raw is None:
            return None
        try:
            return self._model_class.model_validate_json(raw)
        except Exception:
            logger.warning("Cache parse failed for key=%s", self._key)
            return None

    def set(self, value: T) -> None:
        """캐시에 저장."""
        data = value.model_dump_json(by_alias=True)
        try:
            if self._ttl:
                self._client.setex(self._key, self._ttl, data)
            else:
                self._client.set(self._key, data)
        except redis.RedisError:
            logger.debug("Cache write failed for key=%s", self._key)
