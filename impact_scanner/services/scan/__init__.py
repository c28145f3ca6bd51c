"""뉴스 시장 영향 스캔 서비스."""

from .aggregator import SourceAggregator
from .classifier import BatchClassifier, RemoteClassifier
from .context import ScanContext
from .dedup import rank_articles
from .emitter import ScanPipeline, encode_sse, scan_events
from .fallback import classify_fallback
from .orchestrator import BatchOrchestrator, BatchOutcome

__all__ = [
    "SourceAggregator",
    "BatchClassifier",
    "RemoteClassifier",
    "ScanContext",
    "rank_articles",
    "ScanPipeline",
    "encode_sse",
    "scan_events",
    "classify_fallback",
    "BatchOrchestrator",
    "BatchOutcome",
]
