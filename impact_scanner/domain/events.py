"""스캔 이벤트 모델 — 서버(emitter)와 클라이언트(reconciler) 간 와이어 계약.

프레이밍: ``event: <name>\\ndata: <json>\\n\\n``
"""

import json
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from .enums import EventType, ScanPhase
from .news import AnalyzedArticle, Article


class _Event(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event_type: ClassVar[EventType]

    @property
    def is_terminal(self) -> bool:
        return self.event_type in (EventType.COMPLETE, EventType.ERROR)

    def payload(self) -> str:
        """``data:`` 라인에 들어갈 JSON (kind 필드 제외)."""
        return self.model_dump_json(by_alias=True, exclude={"kind"}, exclude_none=True)


class StatusEvent(_Event):
    event_type: ClassVar[EventType] = EventType.STATUS
    kind: Literal["status"] = "status"

    phase: ScanPhase
    message: str
    total: int | None = None


class ArticlesEvent(_Event):
    event_type: ClassVar[EventType] = EventType.ARTICLES
    kind: Literal["articles"] = "articles"

    articles: list[Article]
    total: int
    status: Literal["pending"] = "pending"

    @model_validator(mode="after")
    def _total_matches(self) -> "ArticlesEvent":
        if self.total != len(self.articles):
            raise ValueError(f"total={self.total} but {len(self.articles)} articles")
        return self


class Progress(BaseModel):
    model_config = ConfigDict(frozen=True)

    current: int = Field(ge=1)
    total: int = Field(ge=0)

    @model_validator(mode="after")
    def _bounded(self) -> "Progress":
        if self.current > self.total:
            raise ValueError(f"progress {self.current} exceeds total {self.total}")
        return self


class AnalyzedEvent(_Event):
    event_type: ClassVar[EventType] = EventType.ANALYZED
    kind: Literal["analyzed"] = "analyzed"

    article: AnalyzedArticle
    progress: Progress


class CompleteEvent(_Event):
    event_type: ClassVar[EventType] = EventType.COMPLETE
    kind: Literal["complete"] = "complete"

    message: str = "Scan complete"
    total: int
    # 저장된 스캔 기록 id (기록 비활성/실패 시 생략)
    scan_id: int | None = None


class ErrorEvent(_Event):
    event_type: ClassVar[EventType] = EventType.ERROR
    kind: Literal["error"] = "error"

    message: str


ScanEvent = Annotated[
    StatusEvent | ArticlesEvent | AnalyzedEvent | CompleteEvent | ErrorEvent,
    Field(discriminator="kind"),
]

_EVENT_ADAPTER: TypeAdapter[ScanEvent] = TypeAdapter(ScanEvent)


def parse_event(name: str, data: str) -> ScanEvent:
    """SSE ``event``/``data`` 쌍 → 이벤트 모델. 알 수 없는 이벤트면 ValueError."""
    try:
        event_type = EventType(name)
    except ValueError as e:
        raise ValueError(f"Unknown event type: {name!r}") from e
    body = json.loads(data)
    if not isinstance(body, dict):
        raise ValueError("Event data is not a JSON object")
    return _EVENT_ADAPTER.validate_python({**body, "kind": event_type.value})
