"""Scan 클라이언트 — SSE 소비, 순수 reducer 기반 상태 누적."""

from .reconciler import cancel, fail, reduce
from .sse import SSEMessage, decode_events, iter_sse, parse_sse_text
from .stream import ScanClient

__all__ = [
    "ScanClient",
    "reduce",
    "fail",
    "cancel",
    "SSEMessage",
    "iter_sse",
    "decode_events",
    "parse_sse_text",
]
