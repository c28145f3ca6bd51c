"""impact-scanner 도메인 모델 — 서버/클라이언트 간 데이터 계약의 Single Source of Truth.

Usage:
    from impact_scanner.domain import Article, AnalyzedArticle, ScanState
    from impact_scanner.domain.config import AppConfig
"""

# --- Types ---
from .types import ArticleKey, PageSize, SentimentScore, article_key

# --- Enums ---
from .enums import (
    FROZEN_PHASES,
    TERMINAL_EVENTS,
    CommodityImpact,
    Confidence,
    EventType,
    Region,
    ResultSource,
    ScanPhase,
    SectorDirection,
    Sentiment,
    Timeframe,
)

# --- Errors ---
from .errors import (
    ClassifierError,
    FatalConfigError,
    ProtocolError,
    ScannerError,
    SourceFetchError,
    TransportError,
)

# --- News ---
from .news import (
    AnalyzedArticle,
    Article,
    ClassificationResult,
    Implications,
    MarketAnalysis,
    SearchQuery,
    SectorImpact,
)

# --- Events ---
from .events import (
    AnalyzedEvent,
    ArticlesEvent,
    CompleteEvent,
    ErrorEvent,
    Progress,
    ScanEvent,
    StatusEvent,
    parse_event,
)

# --- Scan State ---
from .scan import (
    ArticleSlot,
    ScanState,
    SectorTally,
    group_by_region,
    region_scores,
    sector_breakdown,
    sentiment_counts,
    sentiment_score,
)

# --- Health ---
from .health import DependencyHealth, HealthStatus

__all__ = [
    # Types
    "ArticleKey",
    "PageSize",
    "SentimentScore",
    "article_key",
    # Enums
    "Region",
    "Sentiment",
    "SectorDirection",
    "CommodityImpact",
    "Timeframe",
    "Confidence",
    "ResultSource",
    "ScanPhase",
    "EventType",
    "TERMINAL_EVENTS",
    "FROZEN_PHASES",
    # Errors
    "ScannerError",
    "SourceFetchError",
    "ClassifierError",
    "ProtocolError",
    "FatalConfigError",
    "TransportError",
    # News
    "SearchQuery",
    "Article",
    "SectorImpact",
    "MarketAnalysis",
    "Implications",
    "ClassificationResult",
    "AnalyzedArticle",
    # Events
    "StatusEvent",
    "ArticlesEvent",
    "Progress",
    "AnalyzedEvent",
    "CompleteEvent",
    "ErrorEvent",
    "ScanEvent",
    "parse_event",
    # Scan State
    "ArticleSlot",
    "ScanState",
    "SectorTally",
    "group_by_region",
    "region_scores",
    "sector_breakdown",
    "sentiment_counts",
    "sentiment_score",
    # Health
    "DependencyHealth",
    "HealthStatus",
]
