"""내러티브 요약 — 분석된 기사 전체 → 4단락 시장 브리핑.

클라이언트가 complete 수신 후 1회 요청. 워치리스트가 있으면 마지막 단락을
WATCHLIST INSIGHTS로, 없으면 OUTLOOK으로 작성.
"""

import logging
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from impact_scanner.domain.enums import Sentiment
from impact_scanner.domain.news import AnalyzedArticle
from impact_scanner.domain.scan import sector_breakdown, sentiment_counts
from impact_scanner.infra.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)

MAX_HEADLINES = 20


class SummaryRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    articles: list[AnalyzedArticle] = Field(min_length=1)
    watchlist: list[str] = Field(default_factory=list)
    scan_id: int | None = None


class SummaryResponse(BaseModel):
    summary: str


def _headline(i: int, a: AnalyzedArticle) -> str:
    line = f'{i}. "{a.title}" ({a.source}, {a.region.value}) - {a.sentiment.value}'
    if a.analysis.sectors:
        line += " - Sectors: " + ", ".join(f"{s.sector}:{s.impact.value}" for s in a.analysis.sectors)
    return line


def build_summary_prompt(articles: Sequence[AnalyzedArticle], watchlist: Sequence[str] = ()) -> str:
    counts = sentiment_counts(articles)
    sectors = sector_breakdown(articles)
    directional = [a for a in articles if a.sentiment in (Sentiment.BULLISH, Sentiment.BEARISH)][:MAX_HEADLINES]

    sector_summary = "; ".join(f"{name}: {t.bullish} bullish, {t.bearish} bearish" for name, t in sectors.items())
    headlines = "\n".join(_headline(i, a) for i, a in enumerate(directional, start=1))
    tickers = ", ".join(watchlist)

    if watchlist:
        closing = (
            "**WATCHLIST INSIGHTS**\n"
            f"[Paragraph 4: Provide specific insights for the user's watchlist tickers ({tickers}). "
            "How might today's news affect these positions?]"
        )
    else:
        closing = (
            "**OUTLOOK**\n"
            "[Paragraph 4: Brief forward-looking statement about near-term market direction "
            "based on today's analysis.]"
        )

    return (
        "You are a senior financial analyst writing a daily market briefing. Based on today's political "
        "and economic news analysis, write a professional executive summary.\n\n"
        "DATA:\n"
        f"- Total articles analyzed: {len(articles)}\n"
        f"- Bullish signals: {counts[Sentiment.BULLISH]}\n"
        f"- Bearish signals: {counts[Sentiment.BEARISH]}\n"
        f"- Mixed/Uncertain signals: {counts[Sentiment.MIXED]}\n"
        f"- Sector breakdown: {sector_summary}\n"
        + (f"\nUser's Watchlist Tickers: {tickers}\n" if watchlist else "")
        + "\nTOP MARKET-MOVING HEADLINES:\n"
        f"{headlines}\n\n"
        "Write a 4-paragraph executive summary in this EXACT format:\n\n"
        "**TOP STORIES**\n"
        "[Paragraph 1: Highlight the 3 most significant market-moving stories and their immediate "
        "implications. Be specific about sectors and potential price impacts.]\n\n"
        "**MARKET SENTIMENT**\n"
        "[Paragraph 2: Analyze the overall market sentiment. Which sectors show the strongest signals? "
        "What's driving bullish vs bearish sentiment today?]\n\n"
        "**RISKS & OPPORTUNITIES**\n"
        "[Paragraph 3: Identify key risks to monitor and potential opportunities. Include specific "
        "sectors or asset classes to watch.]\n\n"
        f"{closing}\n\n"
        "Keep paragraphs concise (2-3 sentences each). Use professional financial language."
    )


async def generate_summary(
    llm: BaseLLMProvider,
    articles: Sequence[AnalyzedArticle],
    watchlist: Sequence[str] = (),
    *,
    temperature: float = 0.4,
    max_tokens: int = 1024,
) -> str:
    """LLM 호출 → 요약 본문. 실패는 호출자에게 전파."""
    response = await llm.generate(
        build_summary_prompt(articles, watchlist),
        temperature=temperature,
        max_tokens=max_tokens,
        service="scan_summary",
    )
    logger.info("Summary generated: %d chars (%d articles)", len(response.content), len(articles))
    return response.content
