"""뉴스 기사 및 시장 영향 분류 모델.

와이어 포맷은 camelCase (publishedAt, overallSentiment, rareMinerals ...).
파이썬 쪽은 snake_case 필드명 사용, 직렬화 시 ``by_alias=True``.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .enums import (
    CommodityImpact,
    Confidence,
    Region,
    ResultSource,
    SectorDirection,
    Sentiment,
    Timeframe,
)
from .types import ArticleKey, PageSize, article_key

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SearchQuery(BaseModel):
    """업스트림 검색 쿼리 1건 (카테고리 태그 포함)."""

    model_config = _WIRE_CONFIG

    query: str
    page_size: PageSize = 40
    category: str


class Article(BaseModel):
    """수집된 뉴스 기사 — 중복 제거 이후 불변."""

    model_config = _WIRE_CONFIG

    id: ArticleKey
    title: str
    source: str = "Unknown"
    url: str
    published_at: datetime
    description: str = ""
    category: str = ""

    @model_validator(mode="before")
    @classmethod
    def _derive_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id") and data.get("url"):
            data = {**data, "id": article_key(data["url"])}
        return data

    @field_validator("published_at")
    @classmethod
    def _ensure_tz(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=UTC)

    @property
    def key(self) -> ArticleKey:
        return self.id


class SectorImpact(BaseModel):
    """섹터 단위 영향 평가."""

    model_config = _WIRE_CONFIG

    sector: str
    impact: SectorDirection
    reasoning: str = ""
    tickers: list[str] = Field(default_factory=list)
    timeframe: Timeframe = Timeframe.SHORT_TERM
    confidence: Confidence = Confidence.MEDIUM


class MarketAnalysis(BaseModel):
    model_config = _WIRE_CONFIG

    summary: str
    sectors: list[SectorImpact] = Field(default_factory=list)
    overall_sentiment: Sentiment
    key_insight: str = ""


class Implications(BaseModel):
    """레거시 4필드 원자재/지수 영향."""

    model_config = _WIRE_CONFIG

    gold: CommodityImpact = CommodityImpact.NEUTRAL
    silver: CommodityImpact = CommodityImpact.NEUTRAL
    rare_minerals: CommodityImpact = CommodityImpact.NEUTRAL
    stock_markets: CommodityImpact = CommodityImpact.NEUTRAL


class ClassificationResult(BaseModel):
    """기사 1건의 분류 결과 (원격 분류기 또는 fallback)."""

    model_config = _WIRE_CONFIG

    region: Region
    analysis: MarketAnalysis
    implications: Implications = Field(default_factory=Implications)
    origin: ResultSource = ResultSource.REMOTE


class AnalyzedArticle(Article):
    """기사 + 분류 결과 — ``analyzed`` 이벤트 페이로드."""

    region: Region
    analysis: MarketAnalysis
    implications: Implications = Field(default_factory=Implications)
    origin: ResultSource = ResultSource.REMOTE

    @classmethod
    def combine(cls, article: Article, result: ClassificationResult) -> "AnalyzedArticle":
        return cls(**article.model_dump(), **result.model_dump())

    @property
    def article(self) -> Article:
        return Article(**self.model_dump(include=set(Article.model_fields)))

    @property
    def result(self) -> ClassificationResult:
        return ClassificationResult(**self.model_dump(include=set(ClassificationResult.model_fields)))

    @property
    def sentiment(self) -> Sentiment:
        return self.analysis.overall_sentiment
