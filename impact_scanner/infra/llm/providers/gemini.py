"""Gemini Provider — Google Gemini API (google-genai SDK)."""

import json
import logging
from typing import Any

from impact_scanner.infra.llm.base import BaseLLMProvider, LLMResponse
from impact_scanner.infra.llm.factory import register_provider

logger = logging.getLogger(__name__)


class GeminiLLMProvider(BaseLLMProvider):
    """Google Gemini API Provider."""

    def __init__(self) -> None:
        from google import genai

        from impact_scanner.domain.config import get_config

        config = get_config()
        self._client = genai.Client(api_key=config.secrets.gemini_api_key)
        self._default_model = config.llm.gemini_model

    @property
    def provider_name(self) -> str:
        return "gemini"

    async def _generate(self, prompt: str, config: Any, service: str | None) -> LLMResponse:
        response = await self._client.aio.models.generate_content(
            model=self._default_model,
            contents=prompt,
            config=config,
        )

        usage = response.usage_metadata
        resp = LLMResponse(
            content=response.text or "",
            model=self._default_model,
            tokens_in=(usage.prompt_token_count or 0) if usage else 0,
            tokens_out=(usage.candidates_token_count or 0) if usage else 0,
            provider=self.provider_name,
        )
        await self._record_usage(resp, service)
        return resp

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        service: str | None = None,
    ) -> LLMResponse:
        from google.genai import types

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        if system:
            config.system_instruction = system

        return await self._generate(prompt, config, service)

    async def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        *,
        system: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        service: str | None = None,
    ) -> dict[str, Any]:
        from google.genai import types

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json",
            response_json_schema=schema or None,
        )
        if system:
            config.system_instruction = system

        resp = await self._generate(prompt, config, service)
        # JSON 모드 + 스키마 제약이므로 markdown 블록 추출 없이 그대로 파싱
        return json.loads(resp.content)


# 팩토리 자동 등록
register_provider("gemini", GeminiLLMProvider)
