"""Scan Client — SSE 스트림 소비 + ScanState 누적 + 취소.

Usage:
    async with ScanClient("http://localhost:8000") as client:
        state = await client.run(on_update=render)
        if state.phase == ScanPhase.COMPLETE:
            text = await client.request_summary(state, watchlist=["AAPL"])

다른 task에서 ``client.cancel()`` 호출 시 진행 중인 요청을 중단하고 CANCELLED로 동결.
complete 수신 시 on_complete 콜백 1회 호출.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Sequence

import httpx

from impact_scanner.domain.enums import ScanPhase
from impact_scanner.domain.errors import TransportError
from impact_scanner.domain.scan import ScanState

from .reconciler import cancel, fail, reduce
from .sse import decode_events, iter_sse

logger = logging.getLogger(__name__)

STREAM_PATH = "/api/scan/stream"
SUMMARY_PATH = "/api/summary"

UpdateCallback = Callable[[ScanState], None]
CompleteCallback = Callable[[ScanState], Awaitable[None]]


class ScanClient:
    """스캔 API 비동기 클라이언트.

    Args:
        base_url: 스캔 API 주소
        transport: httpx transport (테스트 시 MockTransport / ASGITransport)
        timeout: 연결/요청 timeout (스트림 read는 무제한)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            transport=transport,
            timeout=httpx.Timeout(timeout, read=None),
        )
        self._cancel_event = asyncio.Event()
        self.state = ScanState()

    async def __aenter__(self) -> "ScanClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def cancel(self) -> None:
        self._cancel_event.set()

    async def run(
        self,
        on_update: UpdateCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ) -> ScanState:
        """스캔 1회 실행. 종료 상태(COMPLETE/ERROR/CANCELLED)의 ScanState 반환."""
        self._cancel_event.clear()
        self.state = ScanState()

        consumer = asyncio.create_task(self._consume(on_update))
        cancelled = asyncio.create_task(self._cancel_event.wait())
        try:
            await asyncio.wait({consumer, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()

        if consumer.done():
            consumer.result()
        else:
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
            logger.info("Scan cancelled by user at %d/%s", self.state.analyzed_count, self.state.total)
            self._apply(cancel(self.state), on_update)

        if self.state.phase == ScanPhase.COMPLETE and on_complete is not None:
            await on_complete(self.state)
        return self.state

    async def request_summary(self, state: ScanState, watchlist: Sequence[str] = ()) -> str:
        """완료된 스캔 → 내러티브 요약 요청."""
        payload = {
            "articles": [a.model_dump(mode="json", by_alias=True) for a in state.analyzed],
            "watchlist": list(watchlist),
            "scanId": state.scan_id,
        }
        resp = await self._client.post(SUMMARY_PATH, json=payload)
        resp.raise_for_status()
        return resp.json()["summary"]

    def _apply(self, state: ScanState, on_update: UpdateCallback | None) -> None:
        if state is self.state:
            return
        self.state = state
        if on_update is not None:
            on_update(state)

    async def _consume(self, on_update: UpdateCallback | None) -> None:
        try:
            await self._stream(on_update)
        except TransportError as e:
            logger.warning("Scan stream failed: %s", e)
            self._apply(fail(self.state, str(e)), on_update)

    async def _stream(self, on_update: UpdateCallback | None) -> None:
        try:
            async with self._client.stream("GET", STREAM_PATH, headers={"Accept": "text/event-stream"}) as resp:
                if resp.status_code != 200:
                    await resp.aread()
                    raise TransportError(f"Scan stream returned HTTP {resp.status_code}")
                async for event in decode_events(iter_sse(resp.aiter_lines())):
                    self._apply(reduce(self.state, event), on_update)
                    if event.is_terminal:
                        return
        except httpx.HTTPError as e:
            raise TransportError(f"Scan stream connection error: {e}") from e

        raise TransportError("Scan stream closed before completion")
