"""NewsAPI (newsapi.org) 검색 클라이언트."""

from .client import NewsApiClient

__all__ = ["NewsApiClient"]
