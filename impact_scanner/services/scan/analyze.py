"""비스트리밍 분류 — 클라이언트가 보낸 기사 목록 → 배치 분류 (원격 + fallback).

스트림과 같은 BatchOrchestrator를 사용하므로 배치 실패 시 해당 배치는 fallback 결과.
"""

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from impact_scanner.domain.config import AppConfig
from impact_scanner.domain.enums import Region, ResultSource
from impact_scanner.domain.news import AnalyzedArticle, Article
from impact_scanner.domain.scan import group_by_region
from impact_scanner.infra.llm.base import BaseLLMProvider

from .classifier import RemoteClassifier
from .context import ScanContext
from .orchestrator import BatchOrchestrator

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    articles: list[Article] = Field(min_length=1)


class AnalyzeResponse(BaseModel):
    articles: list[AnalyzedArticle]
    grouped: dict[Region, list[AnalyzedArticle]]
    total: int
    fallback: int


async def analyze_articles(
    llm: BaseLLMProvider,
    articles: Sequence[Article],
    config: AppConfig,
    ctx: ScanContext | None = None,
) -> AnalyzeResponse:
    classifier = RemoteClassifier(
        llm,
        temperature=config.llm.classify_temperature,
        max_tokens=config.llm.classify_max_tokens,
        category_regions=config.scan.category_regions,
        default_region=config.scan.default_region,
    )
    orchestrator = BatchOrchestrator.from_config(classifier, config.scan)
    ctx = ctx or ScanContext.from_config(config.scan)

    analyzed = [a async for outcome in orchestrator.run(articles, ctx) for a in outcome.articles]
    fallback = sum(1 for a in analyzed if a.origin == ResultSource.FALLBACK)
    logger.info("Analyzed %d articles (%d fallback)", len(analyzed), fallback)
    return AnalyzeResponse(
        articles=analyzed,
        grouped=group_by_region(analyzed),
        total=len(analyzed),
        fallback=fallback,
    )
