"""Observability infrastructure — logging, LLM usage metrics."""

from .logging import bind_scan_id, setup_logging
from .metrics import get_llm_stats, record_llm_usage

__all__ = ["setup_logging", "bind_scan_id", "record_llm_usage", "get_llm_stats"]
