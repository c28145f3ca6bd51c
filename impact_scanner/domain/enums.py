"""열거형 정의 — 시스템 전체에서 사용하는 상수값."""

from enum import StrEnum


class Region(StrEnum):
    """기사 지역 분류"""

    AMERICAS = "Americas"
    EUROPE = "Europe"
    ASIA = "Asia"
    MIDDLE_EAST = "Middle East"
    AFRICA = "Africa"


class Sentiment(StrEnum):
    """기사 전체 감성"""

    BULLISH = "Bullish"
    BEARISH = "Bearish"
    MIXED = "Mixed"
    NEUTRAL = "Neutral"


class SectorDirection(StrEnum):
    """섹터 영향 방향"""

    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"
    UNCERTAIN = "Uncertain"


class CommodityImpact(StrEnum):
    """레거시 원자재/지수 영향 (gold, silver, rare minerals, stock markets)"""

    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"
    MIXED = "Mixed"
    UNCERTAIN = "Uncertain"


class Timeframe(StrEnum):
    SHORT_TERM = "Short-term"
    MEDIUM_TERM = "Medium-term"
    LONG_TERM = "Long-term"


class Confidence(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class ResultSource(StrEnum):
    """분류 결과 출처"""

    REMOTE = "remote"  # LLM 분류기
    FALLBACK = "fallback"  # 키워드 규칙 분류기


class ScanPhase(StrEnum):
    """스캔 진행 단계 (클라이언트 상태 포함)"""

    IDLE = "idle"
    FETCHING = "fetching"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


class EventType(StrEnum):
    """SSE 이벤트 종류"""

    STATUS = "status"
    ARTICLES = "articles"
    ANALYZED = "analyzed"
    COMPLETE = "complete"
    ERROR = "error"


# 스트림을 종료시키는 이벤트
TERMINAL_EVENTS = frozenset({EventType.COMPLETE, EventType.ERROR})

# 스캔 상태가 더 이상 변하지 않는 단계
FROZEN_PHASES = frozenset({ScanPhase.COMPLETE, ScanPhase.ERROR, ScanPhase.CANCELLED})
