"""Client Reconciler — 이벤트를 누적해 ScanState를 만드는 순수 reducer.

Usage:
    state = ScanState()
    for event in events:
        state = reduce(state, event)

규칙:
  - complete / error / cancel 이후 상태는 변하지 않음
  - articles는 최초 1회만 반영 (total은 한 번만 설정)
  - analyzed는 키 기준 idempotent upsert, 모르는 키는 무시
  - error는 pending 슬롯을 버림
"""

from impact_scanner.domain.enums import ScanPhase
from impact_scanner.domain.events import (
    AnalyzedEvent,
    ArticlesEvent,
    CompleteEvent,
    ErrorEvent,
    ScanEvent,
    StatusEvent,
)
from impact_scanner.domain.scan import ArticleSlot, ScanState
from impact_scanner.domain.types import ArticleKey


def reduce(state: ScanState, event: ScanEvent) -> ScanState:
    if state.frozen:
        return state

    if isinstance(event, StatusEvent):
        return state.model_copy(update={"phase": event.phase, "message": event.message})

    if isinstance(event, ArticlesEvent):
        if state.total is not None:
            return state
        slots: dict[ArticleKey, ArticleSlot] = {}
        for article in event.articles:
            slots.setdefault(article.key, ArticleSlot(article=article))
        return state.model_copy(update={"slots": slots, "total": event.total, "analyzed_count": 0})

    if isinstance(event, AnalyzedEvent):
        key = event.article.key
        slot = state.slots.get(key)
        if slot is None:
            return state
        slots = {**state.slots, key: slot.model_copy(update={"result": event.article})}
        return state.model_copy(
            update={
                "slots": slots,
                "analyzed_count": sum(1 for s in slots.values() if not s.pending),
                "last_progress": max(state.last_progress, event.progress.current),
            }
        )

    if isinstance(event, CompleteEvent):
        return state.model_copy(
            update={"phase": ScanPhase.COMPLETE, "message": event.message, "scan_id": event.scan_id}
        )

    if isinstance(event, ErrorEvent):
        resolved = {k: s for k, s in state.slots.items() if not s.pending}
        return state.model_copy(
            update={"phase": ScanPhase.ERROR, "message": event.message, "error": event.message, "slots": resolved}
        )

    return state


def fail(state: ScanState, message: str) -> ScanState:
    """전송 실패 (complete/error 없이 연결 종료) — error 이벤트와 동일 처리."""
    return reduce(state, ErrorEvent(message=message))


def cancel(state: ScanState) -> ScanState:
    """사용자 취소. 이미 종료된 상태면 그대로."""
    if state.frozen:
        return state
    return state.model_copy(update={"phase": ScanPhase.CANCELLED, "message": "Scan cancelled"})
