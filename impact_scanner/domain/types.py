"""기본 타입 정의 — 서비스 전체에서 공유하는 Annotated 타입."""

from typing import Annotated, NewType
from urllib.parse import urlsplit, urlunsplit

from pydantic import Field

# 기사 식별 키: 정규화된 원문 URL
ArticleKey = NewType("ArticleKey", str)

# 감성 점수: 0=전부 Bearish, 50=중립, 100=전부 Bullish
SentimentScore = Annotated[float, Field(ge=0, le=100)]

# 요청 기사 수 (NewsAPI pageSize 상한 100)
PageSize = Annotated[int, Field(gt=0, le=100)]


def article_key(url: str) -> ArticleKey:
    """원문 URL → ArticleKey.

    앞뒤 공백과 fragment를 제거하고 scheme/host만 소문자화.
    path/query는 대소문자를 구분하는 서버가 있으므로 그대로 둔다.
    """
    raw = url.strip()
    if not raw:
        raise ValueError("Article URL is empty")
    parts = urlsplit(raw)
    canonical = urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, ""))
    return ArticleKey(canonical)
