"""Remote Classifier — 기사 배치 → LLM 시장 영향 분류.

응답은 ClassifierResponse 스키마로 엄격하게 검증. 부분 복구는 하지 않음:
JSON 아님 / 필수 필드 누락 / 결과 수·번호 불일치 → ProtocolError (배치 전체 실패).
"""

import json
import logging
from collections.abc import Sequence
from typing import Protocol

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from impact_scanner.domain.enums import CommodityImpact, Region, Sentiment
from impact_scanner.domain.errors import ClassifierError, ProtocolError
from impact_scanner.domain.news import (
    Article,
    ClassificationResult,
    Implications,
    MarketAnalysis,
    SectorImpact,
)
from impact_scanner.infra.llm.base import BaseLLMProvider

from .fallback import infer_region

logger = logging.getLogger(__name__)


class BatchClassifier(Protocol):
    """배치 분류기 계약. 입력 순서대로 결과를 반환하거나 ClassifierError.

    오케스트레이터는 그 밖의 예외도 실패한 시도로 취급 (재시도 후 fallback).
    """

    async def classify(self, batch: Sequence[Article]) -> list[ClassificationResult]: ...


# ─── Response Schema ────────────────────────────────────


class RemoteAnalysis(BaseModel):
    """분류기 응답 항목 1건."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    article_num: int | None = Field(default=None, validation_alias=AliasChoices("articleNum", "index", "article_num"))
    region: Region | None = None
    summary: str = Field(min_length=1)
    overall_sentiment: Sentiment = Field(validation_alias=AliasChoices("overallSentiment", "overall_sentiment"))
    key_insight: str = Field(default="", validation_alias=AliasChoices("keyInsight", "key_insight"))
    sectors: list[SectorImpact] = Field(default_factory=list)
    gold: CommodityImpact = CommodityImpact.NEUTRAL
    silver: CommodityImpact = CommodityImpact.NEUTRAL
    rare_minerals: CommodityImpact = Field(
        default=CommodityImpact.NEUTRAL, validation_alias=AliasChoices("rareMinerals", "rare_minerals")
    )
    stock_markets: CommodityImpact = Field(
        default=CommodityImpact.NEUTRAL, validation_alias=AliasChoices("stockMarkets", "stock_markets")
    )


class ClassifierResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    analyses: list[RemoteAnalysis] = Field(validation_alias=AliasChoices("analyses", "results"))


_ENUM_REGION = [r.value for r in Region]
_ENUM_IMPACT = [c.value for c in CommodityImpact]

CLASSIFY_SCHEMA = {
    "type": "object",
    "required": ["analyses"],
    "properties": {
        "analyses": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["articleNum", "summary", "overallSentiment"],
                "properties": {
                    "articleNum": {"type": "integer", "minimum": 1},
                    "region": {"type": "string", "enum": _ENUM_REGION},
                    "summary": {"type": "string"},
                    "overallSentiment": {"type": "string", "enum": [s.value for s in Sentiment]},
                    "keyInsight": {"type": "string"},
                    "sectors": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["sector", "impact"],
                            "properties": {
                                "sector": {"type": "string"},
                                "impact": {"type": "string", "enum": ["Bullish", "Bearish", "Neutral", "Uncertain"]},
                                "reasoning": {"type": "string"},
                                "tickers": {"type": "array", "items": {"type": "string"}},
                                "timeframe": {"type": "string", "enum": ["Short-term", "Medium-term", "Long-term"]},
                                "confidence": {"type": "string", "enum": ["High", "Medium", "Low"]},
                            },
                        },
                    },
                    "gold": {"type": "string", "enum": _ENUM_IMPACT},
                    "silver": {"type": "string", "enum": _ENUM_IMPACT},
                    "rareMinerals": {"type": "string", "enum": _ENUM_IMPACT},
                    "stockMarkets": {"type": "string", "enum": _ENUM_IMPACT},
                },
            },
        },
    },
}

SYSTEM_PROMPT = "You are a senior financial analyst. Respond with ONLY valid JSON (no markdown)."


def build_classify_prompt(batch: Sequence[Article]) -> str:
    lines = "\n".join(f'{i}. "{a.title}" - {a.source} [{a.category}]' for i, a in enumerate(batch, start=1))
    n = len(batch)
    return (
        f"Analyze these {n} news headlines for market impact.\n\n"
        f"Articles:\n{lines}\n\n"
        f"IMPORTANT: You MUST provide analysis for ALL {n} articles. "
        f"Return exactly {n} analyses, each with its 1-based articleNum.\n\n"
        'Return {"analyses": [...]} where each analysis has: articleNum, '
        "region (Americas|Europe|Asia|Middle East|Africa), summary (1 sentence market impact), "
        "overallSentiment (Bullish|Bearish|Mixed|Neutral), keyInsight, "
        "sectors [{sector, impact (Bullish|Bearish|Neutral|Uncertain), reasoning, tickers, "
        "timeframe (Short-term|Medium-term|Long-term), confidence (High|Medium|Low)}], "
        "gold, silver, rareMinerals, stockMarkets (Bullish|Bearish|Neutral|Mixed|Uncertain)."
    )


def align_results(analyses: Sequence[RemoteAnalysis], expected: int) -> list[RemoteAnalysis]:
    """응답 항목을 배치 순서로 정렬.

    모든 항목에 articleNum이 있으면 1..N 순열이어야 하고 번호 기준으로 정렬.
    모든 항목에 없으면 위치 기준. 일부만 있으면 ProtocolError.
    """
    if len(analyses) != expected:
        raise ProtocolError(f"Expected {expected} analyses, got {len(analyses)}")

    numbers = [a.article_num for a in analyses]
    if all(n is None for n in numbers):
        return list(analyses)
    if any(n is None for n in numbers):
        raise ProtocolError("Some analyses are missing articleNum")
    if sorted(numbers) != list(range(1, expected + 1)):
        raise ProtocolError(f"articleNum values {numbers} do not cover 1..{expected}")

    by_number = {a.article_num: a for a in analyses}
    return [by_number[i] for i in range(1, expected + 1)]


def parse_response(
    data: object,
    batch: Sequence[Article],
    *,
    category_regions: dict[str, Region] | None = None,
    default_region: Region = Region.AMERICAS,
) -> list[ClassificationResult]:
    """검증된 응답 → 배치 순서의 ClassificationResult. region 누락 시 카테고리 테이블로 추정."""
    try:
        response = ClassifierResponse.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Invalid classifier response: {e.error_count()} validation errors") from e

    aligned = align_results(response.analyses, len(batch))
    return [
        ClassificationResult(
            region=item.region or infer_region(article.category, category_regions, default_region),
            analysis=MarketAnalysis(
                summary=item.summary,
                sectors=item.sectors,
                overall_sentiment=item.overall_sentiment,
                key_insight=item.key_insight,
            ),
            implications=Implications(
                gold=item.gold,
                silver=item.silver,
                rare_minerals=item.rare_minerals,
                stock_markets=item.stock_markets,
            ),
        )
        for article, item in zip(batch, aligned, strict=True)
    ]


class RemoteClassifier:
    """LLM 기반 배치 분류기.

    Args:
        llm: LLM provider (FAST tier)
        temperature: 분류 온도
        max_tokens: 응답 토큰 상한
        category_regions: region 누락 시 사용할 카테고리 → 지역 테이블
        default_region: 테이블에 없는 카테고리의 지역
    """

    def __init__(
        self,
        llm: BaseLLMProvider,
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        category_regions: dict[str, Region] | None = None,
        default_region: Region = Region.AMERICAS,
    ):
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._category_regions = category_regions
        self._default_region = default_region

    async def classify(self, batch: Sequence[Article]) -> list[ClassificationResult]:
        if not batch:
            return []

        try:
            data = await self._llm.generate_json(
                build_classify_prompt(batch),
                CLASSIFY_SCHEMA,
                system=SYSTEM_PROMPT,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                service="scan_classify",
            )
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Classifier returned non-JSON body: {e.msg}") from e
        except ClassifierError:
            raise
        except Exception as e:
            raise ClassifierError(f"{self._llm.provider_name} call failed: {e}") from e

        return parse_response(
            data,
            batch,
            category_regions=self._category_regions,
            default_region=self._default_region,
        )
