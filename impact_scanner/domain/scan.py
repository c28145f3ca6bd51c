"""스캔 상태 모델 + 파생 뷰 (지역별 그룹, 감성 점수, 섹터 집계).

ScanState는 불변 객체로 다루고, 변경은 client.reconciler.reduce()가 새 인스턴스를 반환.
파생 뷰 함수는 서버(스캔 기록)와 클라이언트(리포트)가 공유.
"""

from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from .enums import FROZEN_PHASES, Region, ScanPhase, SectorDirection, Sentiment
from .news import AnalyzedArticle, Article
from .types import ArticleKey

NEUTRAL_SCORE = 50.0


class ArticleSlot(BaseModel):
    """기사 1건의 슬롯 — 결과 도착 전까지 pending."""

    model_config = ConfigDict(frozen=True)

    article: Article
    result: AnalyzedArticle | None = None

    @property
    def pending(self) -> bool:
        return self.result is None


class ScanState(BaseModel):
    """클라이언트가 누적하는 스캔 1회의 상태."""

    model_config = ConfigDict(frozen=True)

    phase: ScanPhase = ScanPhase.IDLE
    message: str = ""
    slots: dict[ArticleKey, ArticleSlot] = Field(default_factory=dict)
    total: int | None = None
    analyzed_count: int = 0
    last_progress: int = 0
    error: str | None = None
    scan_id: int | None = None

    @property
    def frozen(self) -> bool:
        return self.phase in FROZEN_PHASES

    @property
    def analyzed(self) -> list[AnalyzedArticle]:
        """결과가 도착한 기사 (최초 기사 목록 순서)."""
        return [s.result for s in self.slots.values() if s.result is not None]

    @property
    def pending_keys(self) -> list[ArticleKey]:
        return [k for k, s in self.slots.items() if s.pending]

    @property
    def progress_pct(self) -> float:
        if not self.total:
            return 0.0
        return round(self.analyzed_count / self.total * 100, 1)


class SectorTally(BaseModel):
    bullish: int = 0
    bearish: int = 0


# ─── Derived Views ──────────────────────────────────────


def group_by_region(articles: Iterable[AnalyzedArticle]) -> dict[Region, list[AnalyzedArticle]]:
    """지역별 그룹 (Region 정의 순서, 빈 지역 제외)."""
    grouped: dict[Region, list[AnalyzedArticle]] = {r: [] for r in Region}
    for a in articles:
        grouped[a.region].append(a)
    return {r: items for r, items in grouped.items() if items}


def sentiment_counts(articles: Iterable[AnalyzedArticle]) -> Counter[Sentiment]:
    return Counter(a.sentiment for a in articles)


def sentiment_score(articles: Iterable[AnalyzedArticle]) -> float:
    """0~100 감성 점수. 50 + 50 × (Bullish − Bearish) / 전체. 기사 없으면 50."""
    items = list(articles)
    if not items:
        return NEUTRAL_SCORE
    counts = sentiment_counts(items)
    net = counts[Sentiment.BULLISH] - counts[Sentiment.BEARISH]
    return round(NEUTRAL_SCORE + NEUTRAL_SCORE * net / len(items), 1)


def region_scores(articles: Iterable[AnalyzedArticle]) -> dict[Region, float]:
    """모든 지역의 감성 점수 (기사 없는 지역은 50)."""
    grouped = group_by_region(articles)
    return {r: sentiment_score(grouped.get(r, [])) for r in Region}


def sector_breakdown(articles: Iterable[AnalyzedArticle]) -> dict[str, SectorTally]:
    """섹터별 Bullish/Bearish 건수 (첫 등장 순서)."""
    tallies: dict[str, SectorTally] = {}
    for a in articles:
        for s in a.analysis.sectors:
            tally = tallies.setdefault(s.sector, SectorTally())
            if s.impact == SectorDirection.BULLISH:
                tally.bullish += 1
            elif s.impact == SectorDirection.BEARISH:
                tally.bearish += 1
    return tallies
