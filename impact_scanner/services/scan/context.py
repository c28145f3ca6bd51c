"""ScanContext — 스캔 1회의 취소 신호와 원격 호출 deadline.

aggregator/orchestrator에 명시적으로 전달. 전역 타이머나 모듈 상태에 의존하지 않음.
"""

import asyncio
from dataclasses import dataclass, field

from impact_scanner.domain.config import ScanConfig


@dataclass
class ScanContext:
    fetch_timeout: float = 10.0
    classify_timeout: float = 30.0
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @classmethod
    def from_config(cls, config: ScanConfig) -> "ScanContext":
        return cls(fetch_timeout=config.fetch_timeout, classify_timeout=config.classify_timeout)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    async def sleep(self, seconds: float) -> bool:
        """최대 ``seconds`` 대기, 취소 시 즉시 복귀. 취소됐으면 True."""
        if seconds > 0 and not self.cancelled:
            try:
                await asyncio.wait_for(self.cancel_event.wait(), timeout=seconds)
            except TimeoutError:
                pass
        return self.cancelled
