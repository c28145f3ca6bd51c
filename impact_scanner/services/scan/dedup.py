"""기사 중복 제거 + 정렬/예산 truncate + 카테고리 가중 재배분.

Usage:
    articles = rank_articles(raw, max_articles=100)
    articles = rank_articles(raw, max_articles=100, category_weights={"Economy": 2, "Politics": 1})

첫 등장 우선 — aggregator의 쿼리 순서가 동일 URL의 우선순위를 결정.
"""

import logging
import math
from collections.abc import Iterable

from impact_scanner.domain.news import Article
from impact_scanner.domain.types import ArticleKey

logger = logging.getLogger(__name__)

# NewsAPI가 삭제된 기사에 붙이는 제목
REMOVED_TITLE = "[Removed]"


def is_usable(article: Article) -> bool:
    title = article.title.strip()
    return bool(title) and title != REMOVED_TITLE


def dedupe(articles: Iterable[Article]) -> list[Article]:
    """단일 패스 중복 제거 (순서 유지, 첫 등장 우선)."""
    seen: set[ArticleKey] = set()
    unique: list[Article] = []
    for article in articles:
        if not is_usable(article) or article.key in seen:
            continue
        seen.add(article.key)
        unique.append(article)
    return unique


def rebalance(ordered: list[Article], weights: dict[str, float], budget: int) -> list[Article]:
    """카테고리 가중치 비율로 quota 배정 → 비례 interleave → 남은 예산은 최신순으로 채움.

    quota = floor(budget × w / Σw). 가중치 없는 카테고리는 채우기 단계에서만 선택됨.
    """
    active = {cat: w for cat, w in weights.items() if w > 0}
    total_weight = sum(active.values())
    if budget <= 0:
        return []
    if not total_weight:
        return ordered[:budget]

    picked: dict[str, list[Article]] = {}
    for cat, w in active.items():
        group = [a for a in ordered if a.category == cat]
        quota = min(len(group), math.floor(budget * w / total_weight))
        if quota:
            picked[cat] = group[:quota]

    # 비례 interleave: 소진 비율이 가장 낮은 그룹부터 (동률이면 가중치 정의 순서)
    order = list(picked)
    taken = dict.fromkeys(order, 0)
    result: list[Article] = []
    while True:
        open_groups = [c for c in order if taken[c] < len(picked[c])]
        if not open_groups:
            break
        cat = min(open_groups, key=lambda c: (taken[c] / len(picked[c]), order.index(c)))
        result.append(picked[cat][taken[cat]])
        taken[cat] += 1

    chosen = {a.key for a in result}
    for article in ordered:
        if len(result) >= budget:
            break
        if article.key not in chosen:
            result.append(article)
            chosen.add(article.key)

    return result[:budget]


def rank_articles(
    articles: Iterable[Article],
    max_articles: int = 100,
    category_weights: dict[str, float] | None = None,
) -> list[Article]:
    """중복 제거 → 최신순 정렬 → (선택) 카테고리 재배분 → 예산 truncate.

    sorted()는 stable이므로 동일 타임스탬프는 입력 순서 유지.
    """
    unique = dedupe(articles)
    ordered = sorted(unique, key=lambda a: a.published_at, reverse=True)

    if category_weights:
        ranked = rebalance(ordered, category_weights, max_articles)
    else:
        ranked = ordered[:max_articles]

    logger.info("Ranked %d/%d unique articles (budget=%d)", len(ranked), len(unique), max_articles)
    return ranked
