"""Batch Orchestrator — 기사 목록을 고정 크기 배치로 순차 분류.

배치 단위 정책:
  1. 원격 분류 최대 max_attempts회 (실패 사이 retry_delay 대기)
  2. 모두 실패 → 배치 전체를 fallback 분류 (remote/fallback 혼합 없음)
  3. 배치 완료 후 항목별 AnalyzedArticle 방출, batch_delay 대기 (마지막 배치 제외)

배치 실패는 전체 실행을 중단시키지 않음 (분류기의 예상 밖 예외도 실패한 시도로 처리).
취소는 배치 시작 전과 대기 중에 확인.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from impact_scanner.domain.config import ScanConfig
from impact_scanner.domain.enums import Region, ResultSource
from impact_scanner.domain.errors import ClassifierError
from impact_scanner.domain.news import AnalyzedArticle, Article, ClassificationResult

from .classifier import BatchClassifier
from .context import ScanContext
from .fallback import UNAVAILABLE_REASON, classify_fallback

logger = logging.getLogger(__name__)


@dataclass
class BatchOutcome:
    """배치 1개의 분류 결과 (입력 순서)."""

    index: int
    articles: list[AnalyzedArticle] = field(default_factory=list)
    attempts: int = 0

    @property
    def source(self) -> ResultSource:
        return self.articles[0].origin if self.articles else ResultSource.REMOTE

    @property
    def used_fallback(self) -> bool:
        return self.source == ResultSource.FALLBACK


def partition(articles: Sequence[Article], batch_size: int) -> list[list[Article]]:
    """연속 구간 분할. 마지막 배치만 batch_size보다 작을 수 있음."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [list(articles[i : i + batch_size]) for i in range(0, len(articles), batch_size)]


class BatchOrchestrator:
    """순차 배치 분류기.

    Args:
        classifier: 원격 배치 분류기
        batch_size: 배치 크기
        max_attempts: 배치당 원격 시도 횟수
        retry_delay: 실패 후 재시도 대기 (초)
        batch_delay: 배치 간 대기 (초)
        fallback_reason: fallback 결과의 summary/reasoning 문자열
        category_regions: fallback 지역 추정 테이블
        default_region: 테이블에 없는 카테고리의 지역
    """

    def __init__(
        self,
        classifier: BatchClassifier,
        *,
        batch_size: int = 5,
        max_attempts: int = 2,
        retry_delay: float = 0.5,
        batch_delay: float = 0.15,
        fallback_reason: str = UNAVAILABLE_REASON,
        category_regions: dict[str, Region] | None = None,
        default_region: Region = Region.AMERICAS,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._classifier = classifier
        self._batch_size = batch_size
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay
        self._batch_delay = batch_delay
        self._fallback_reason = fallback_reason
        self._category_regions = category_regions
        self._default_region = default_region

    @classmethod
    def from_config(cls, classifier: BatchClassifier, config: ScanConfig) -> "BatchOrchestrator":
        return cls(
            classifier,
            batch_size=config.batch_size,
            max_attempts=config.max_attempts,
            retry_delay=config.retry_delay,
            batch_delay=config.batch_delay,
            category_regions=config.category_regions,
            default_region=config.default_region,
        )

    async def run(self, articles: Sequence[Article], ctx: ScanContext) -> AsyncIterator[BatchOutcome]:
        """배치별 결과를 순서대로 yield. 취소되면 다음 배치를 시작하지 않고 종료."""
        batches = partition(articles, self._batch_size)
        fallback_total = 0

        for index, batch in enumerate(batches):
            if ctx.cancelled:
                logger.info("Scan cancelled before batch %d/%d", index + 1, len(batches))
                return

            outcome = await self._resolve(index, batch, ctx)
            if ctx.cancelled:
                logger.info("Scan cancelled during batch %d/%d", index + 1, len(batches))
                return
            if outcome.used_fallback:
                fallback_total += len(outcome.articles)
            yield outcome

            is_last = index == len(batches) - 1
            if not is_last and await ctx.sleep(self._batch_delay):
                logger.info("Scan cancelled after batch %d/%d", index + 1, len(batches))
                return

        if fallback_total:
            logger.warning("%d/%d articles used fallback classification", fallback_total, len(articles))

    async def _resolve(self, index: int, batch: list[Article], ctx: ScanContext) -> BatchOutcome:
        attempts = 0
        while attempts < self._max_attempts:
            attempts += 1
            try:
                results = await asyncio.wait_for(self._classifier.classify(batch), timeout=ctx.classify_timeout)
                if len(results) != len(batch):
                    raise ClassifierError(f"classifier returned {len(results)} results for {len(batch)} articles")
                return BatchOutcome(index=index, articles=self._combine(batch, results), attempts=attempts)
            except TimeoutError:
                logger.warning(
                    "Batch %d attempt %d/%d timed out after %.1fs",
                    index + 1,
                    attempts,
                    self._max_attempts,
                    ctx.classify_timeout,
                )
            except ClassifierError as e:
                logger.warning("Batch %d attempt %d/%d failed: %s", index + 1, attempts, self._max_attempts, e)
            except Exception:
                logger.warning(
                    "Batch %d attempt %d/%d raised unexpectedly",
                    index + 1,
                    attempts,
                    self._max_attempts,
                    exc_info=True,
                )

            if attempts < self._max_attempts and await ctx.sleep(self._retry_delay):
                break

        logger.warning("Batch %d falling back to keyword classification (%d articles)", index + 1, len(batch))
        fallback = [
            classify_fallback(
                article,
                self._fallback_reason,
                category_regions=self._category_regions,
                default_region=self._default_region,
            )
            for article in batch
        ]
        return BatchOutcome(index=index, articles=self._combine(batch, fallback), attempts=attempts)

    @staticmethod
    def _combine(batch: list[Article], results: list[ClassificationResult]) -> list[AnalyzedArticle]:
        return [AnalyzedArticle.combine(a, r) for a, r in zip(batch, results, strict=True)]
