"""LLM Provider 인터페이스 — 모든 provider가 구현해야 하는 계약."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

_logger = logging.getLogger(__name__)

# 사용량 기록 대기 상한 (초). Redis가 응답하지 않아도 LLM 호출은 지연되지 않음
USAGE_RECORD_TIMEOUT = 0.5


class LLMResponse(BaseModel):
    """LLM 응답 표준 형식."""

    content: str
    model: str
    tokens_in: int = 0
    tokens_out: int = 0
    provider: str = ""


def _write_usage(response: LLMResponse, service: str) -> None:
    from impact_scanner.infra.observability.metrics import record_llm_usage
    from impact_scanner.infra.redis.client import get_redis

    record_llm_usage(
        get_redis(),
        service=service,
        tokens_in=response.tokens_in,
        tokens_out=response.tokens_out,
        model=response.model,
    )


class BaseLLMProvider(ABC):
    """LLM Provider 추상 클래스.

    분류기(classify)와 요약(summary)이 이 인터페이스만 의존.
    """

    async def _record_usage(self, response: LLMResponse, service: Optional[str]) -> None:
        """LLM 사용량을 Redis에 기록 (모든 provider 공통).

        동기 Redis 호출은 워커 스레드에서 실행, USAGE_RECORD_TIMEOUT 초과 시 포기.
        """
        if response.tokens_in == 0 and response.tokens_out == 0:
            return
        try:
            await asyncio.wait_for(
                asyncio.to_thread(_write_usage, response, service or "unknown"),
                timeout=USAGE_RECORD_TIMEOUT,
            )
        except TimeoutError:
            _logger.warning("LLM usage recording timed out after %.1fs", USAGE_RECORD_TIMEOUT)
        except Exception:
            _logger.debug("LLM usage recording failed", exc_info=True)

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        service: Optional[str] = None,
    ) -> LLMResponse:
        """텍스트 생성."""
        ...

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        *,
        system: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        service: Optional[str] = None,
    ) -> dict[str, Any]:
        """JSON 구조화 출력 생성.

        Args:
            schema: JSON Schema (Pydantic model.model_json_schema() 또는 수동 스키마)

        Returns:
            파싱된 JSON dict. 본문이 JSON이 아니면 ValueError (json.JSONDecodeError).
        """
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider 식별자 (로깅/통계용)."""
        ...
