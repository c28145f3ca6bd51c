"""Fallback Classifier — 원격 분류 실패 시 키워드 규칙 기반 분류.

순수 함수: 같은 입력이면 항상 같은 결과. 네트워크/상태 의존 없음.
"""

from impact_scanner.domain.enums import (
    CommodityImpact,
    Confidence,
    Region,
    ResultSource,
    SectorDirection,
    Sentiment,
    Timeframe,
)
from impact_scanner.domain.news import (
    Article,
    ClassificationResult,
    Implications,
    MarketAnalysis,
    SectorImpact,
)

UNAVAILABLE_REASON = "AI analysis unavailable"

BULLISH_CUES = (
    "surge", "soar", "rally", "gain", "rise", "jump", "boost",
    "growth", "profit", "beat", "record high", "bullish", "optimis",
)  # fmt: skip

BEARISH_CUES = (
    "fall", "drop", "crash", "plunge", "decline", "loss", "cut",
    "recession", "crisis", "fear", "concern", "warn", "bearish", "pessimis",
)  # fmt: skip

# 섹터 → 키워드 (부분 문자열 매칭, 정의 순서대로 결과에 포함)
SECTOR_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Technology": ("tech", "ai", "software", "chip", "semiconductor", "apple", "google", "microsoft", "nvidia", "meta"),
    "Financials": ("bank", "fed", "interest rate", "loan", "credit", "jpmorgan", "goldman", "finance"),
    "Energy": ("oil", "gas", "energy", "opec", "crude", "exxon", "chevron", "renewable", "solar"),
    "Healthcare": ("health", "drug", "pharma", "fda", "medical", "vaccine", "pfizer", "hospital"),
    "Defense": ("defense", "military", "pentagon", "weapon", "nato", "lockheed", "raytheon", "war"),
    "Consumer": ("retail", "consumer", "walmart", "amazon", "spending", "sales"),
    "Industrials": ("manufacturing", "industrial", "factory", "boeing", "caterpillar"),
    "Commodities": ("gold", "silver", "copper", "metal", "commodity", "mining"),
}

# 키워드 매칭 섹터가 없을 때 카테고리 기본 섹터
CATEGORY_SECTORS: dict[str, str] = {
    "Economy": "Financials",
    "Markets": "Financials",
    "Policy": "Industrials",
    "Politics": "Defense",
}
DEFAULT_SECTOR = "Financials"


def infer_sentiment(text: str) -> Sentiment:
    bullish = any(cue in text for cue in BULLISH_CUES)
    bearish = any(cue in text for cue in BEARISH_CUES)
    if bullish and bearish:
        return Sentiment.MIXED
    if bullish:
        return Sentiment.BULLISH
    if bearish:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


def infer_region(
    category: str,
    category_regions: dict[str, Region] | None = None,
    default_region: Region = Region.AMERICAS,
) -> Region:
    return (category_regions or {}).get(category, default_region)


def _low_confidence(sector: str, impact: SectorDirection, reason: str) -> SectorImpact:
    return SectorImpact(
        sector=sector,
        impact=impact,
        reasoning=reason,
        tickers=[],
        timeframe=Timeframe.SHORT_TERM,
        confidence=Confidence.LOW,
    )


def classify_fallback(
    article: Article,
    reason: str = UNAVAILABLE_REASON,
    *,
    category_regions: dict[str, Region] | None = None,
    default_region: Region = Region.AMERICAS,
) -> ClassificationResult:
    """제목 + 설명 키워드로 감성/섹터 추정.

    Args:
        article: 분류 대상 기사
        reason: summary/reasoning에 들어갈 사유 문자열
        category_regions: 카테고리 → 지역 테이블 (없으면 전부 default_region)
        default_region: 테이블에 없는 카테고리의 지역
    """
    text = f"{article.title} {article.description}".lower()
    sentiment = infer_sentiment(text)

    if sentiment in (Sentiment.BULLISH, Sentiment.BEARISH):
        direction = SectorDirection(sentiment.value)
    else:
        direction = SectorDirection.UNCERTAIN

    sectors = [
        _low_confidence(sector, direction, reason)
        for sector, keywords in SECTOR_KEYWORDS.items()
        if any(k in text for k in keywords)
    ]
    if not sectors:
        fallback_sector = CATEGORY_SECTORS.get(article.category, DEFAULT_SECTOR)
        sectors = [_low_confidence(fallback_sector, SectorDirection.UNCERTAIN, reason)]

    return ClassificationResult(
        region=infer_region(article.category, category_regions, default_region),
        analysis=MarketAnalysis(
            summary=reason,
            sectors=sectors,
            overall_sentiment=sentiment,
            key_insight="",
        ),
        implications=Implications(stock_markets=CommodityImpact(sentiment.value)),
        origin=ResultSource.FALLBACK,
    )
