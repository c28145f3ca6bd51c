"""키워드 fallback 분류기 테스트."""

import pytest

from factories import make_article

from impact_scanner.domain.enums import (
    CommodityImpact,
    Confidence,
    Region,
    ResultSource,
    SectorDirection,
    Sentiment,
    Timeframe,
)
from impact_scanner.services.scan.fallback import (
    UNAVAILABLE_REASON,
    classify_fallback,
    infer_region,
    infer_sentiment,
)


class TestInferSentiment:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("stocks rally on strong earnings", Sentiment.BULLISH),
            ("markets plunge amid recession fear", Sentiment.BEARISH),
            ("gains fade as oil prices drop", Sentiment.MIXED),
            ("central bank meets on thursday", Sentiment.NEUTRAL),
        ],
    )
    def test_cues(self, text, expected):
        assert infer_sentiment(text) == expected


class TestInferRegion:
    def test_table_lookup(self):
        table = {"Politics": Region.EUROPE}
        assert infer_region("Politics", table) == Region.EUROPE
        assert infer_region("Markets", table) == Region.AMERICAS
        assert infer_region("Markets", table, Region.ASIA) == Region.ASIA

    def test_no_table(self):
        assert infer_region("Politics") == Region.AMERICAS


class TestClassifyFallback:
    def test_rate_hike_headline(self):
        article = make_article(title="Fed raises rates", description="Rate hike surges bank stocks")
        result = classify_fallback(article)

        assert result.origin == ResultSource.FALLBACK
        assert result.analysis.overall_sentiment == Sentiment.BULLISH
        assert result.analysis.summary == UNAVAILABLE_REASON
        assert result.implications.stock_markets == CommodityImpact.BULLISH
        sectors = {s.sector: s for s in result.analysis.sectors}
        assert "Financials" in sectors
        for impact in sectors.values():
            assert impact.impact == SectorDirection.BULLISH
            assert impact.confidence == Confidence.LOW
            assert impact.timeframe == Timeframe.SHORT_TERM
            assert impact.tickers == []

    def test_mixed_sentiment_sectors_uncertain(self):
        article = make_article(title="Oil rally fades as crude prices drop")
        result = classify_fallback(article)
        assert result.analysis.overall_sentiment == Sentiment.MIXED
        assert result.implications.stock_markets == CommodityImpact.MIXED
        assert [s.sector for s in result.analysis.sectors] == ["Energy"]
        assert result.analysis.sectors[0].impact == SectorDirection.UNCERTAIN

    def test_no_keyword_uses_category_sector(self):
        article = make_article(title="Lawmakers meet on Thursday", category="Politics")
        result = classify_fallback(article, category_regions={"Politics": Region.EUROPE})
        assert result.region == Region.EUROPE
        assert result.analysis.overall_sentiment == Sentiment.NEUTRAL
        [sector] = result.analysis.sectors
        assert sector.sector == "Defense"
        assert sector.impact == SectorDirection.UNCERTAIN

    def test_unknown_category_default_sector(self):
        result = classify_fallback(make_article(title="Quiet day", category="Weather"))
        assert [s.sector for s in result.analysis.sectors] == ["Financials"]
        assert result.region == Region.AMERICAS

    def test_custom_reason(self):
        result = classify_fallback(make_article(title="Stocks rally"), "Remote classifier timed out")
        assert result.analysis.summary == "Remote classifier timed out"
        assert result.analysis.sectors[0].reasoning == "Remote classifier timed out"

    def test_deterministic(self):
        article = make_article(title="Chip stocks plunge on export curbs", category="Markets")
        assert classify_fallback(article) == classify_fallback(article)
