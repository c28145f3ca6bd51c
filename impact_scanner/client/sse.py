"""SSE 프레임 파서 — ``event:``/``data:`` 라인 → 스캔 이벤트.

빈 줄이 프레임 경계. 빈 줄 없이 끝난 마지막 프레임은 불완전한 것으로 보고 버림.
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from dataclasses import dataclass

from impact_scanner.domain.enums import EventType
from impact_scanner.domain.errors import TransportError
from impact_scanner.domain.events import ScanEvent, parse_event

logger = logging.getLogger(__name__)

_KNOWN_EVENTS = frozenset(e.value for e in EventType)


@dataclass(frozen=True)
class SSEMessage:
    event: str
    data: str


class _FrameBuilder:
    def __init__(self) -> None:
        self._event = "message"
        self._data: list[str] = []

    def feed(self, line: str) -> SSEMessage | None:
        line = line.rstrip("\r\n")
        if not line:
            message = SSEMessage(self._event, "\n".join(self._data)) if self._data else None
            self._event, self._data = "message", []
            return message
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None


def parse_sse_lines(lines: Iterable[str]) -> Iterator[SSEMessage]:
    builder = _FrameBuilder()
    for line in lines:
        message = builder.feed(line)
        if message is not None:
            yield message


def parse_sse_text(text: str) -> list[SSEMessage]:
    """스트림 본문 전체 → 메시지 목록 (테스트/디버깅용)."""
    return list(parse_sse_lines(text.split("\n")))


async def iter_sse(lines: AsyncIterable[str]) -> AsyncIterator[SSEMessage]:
    """``httpx.Response.aiter_lines()`` → SSEMessage."""
    builder = _FrameBuilder()
    async for line in lines:
        message = builder.feed(line)
        if message is not None:
            yield message


def decode_message(message: SSEMessage) -> ScanEvent | None:
    """알 수 없는 이벤트 이름이면 None. 알려진 이벤트의 본문이 깨졌으면 TransportError."""
    if message.event not in _KNOWN_EVENTS:
        logger.debug("Ignoring unknown SSE event: %s", message.event)
        return None
    try:
        return parse_event(message.event, message.data)
    except ValueError as e:
        raise TransportError(f"Malformed {message.event!r} event: {e}") from e


async def decode_events(messages: AsyncIterable[SSEMessage]) -> AsyncIterator[ScanEvent]:
    async for message in messages:
        event = decode_message(message)
        if event is not None:
            yield event
