"""통합 설정 모델 — Pydantic Settings 기반.

모든 설정값은 환경 변수로 주입. 우선순위:
  1. 환경 변수 (docker-compose env, .env)
  2. Pydantic Settings 기본값

배치 크기, 재시도 횟수, 배치 간 딜레이는 특정 업스트림의 rate limit에 맞춘 값이므로
하드코딩하지 않고 SCAN_* 환경변수로 조정.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from .enums import Region
from .errors import FatalConfigError
from .news import SearchQuery

DEFAULT_QUERIES: list[SearchQuery] = [
    SearchQuery(query="Federal Reserve ECB interest rates monetary policy", page_size=40, category="Economy"),
    SearchQuery(query="stock market earnings trade tariffs sanctions", page_size=35, category="Markets"),
    SearchQuery(query="tech regulation AI policy defense spending energy", page_size=35, category="Policy"),
    SearchQuery(query="US Congress European Union China geopolitics", page_size=40, category="Politics"),
]


class DatabaseConfig(BaseSettings):
    """데이터베이스 설정."""

    host: str = "localhost"
    port: int = 3306
    user: str = "scanner"
    password: str = ""
    name: str = "impact_scanner"
    # 설정 시 host/port 등 무시 (예: sqlite:///./scans.db)
    dsn: str = ""

    model_config = {"env_prefix": "DB_"}

    @property
    def url(self) -> str:
        if self.dsn:
            return self.dsn
        return f"mysql+pymysql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class RedisConfig(BaseSettings):
    """Redis 설정."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""

    model_config = {"env_prefix": "REDIS_"}

    @property
    def url(self) -> str:
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class LLMConfig(BaseSettings):
    """LLM 설정."""

    tier_fast_provider: str = "gemini"
    tier_reasoning_provider: str = "gemini"
    gemini_model: str = "gemini-2.0-flash"
    classify_temperature: float = 0.3
    classify_max_tokens: int = 4096
    summary_temperature: float = 0.4
    summary_max_tokens: int = 1024

    model_config = {"env_prefix": "LLM_"}


class NewsApiConfig(BaseSettings):
    """NewsAPI 검색 설정."""

    base_url: str = "https://newsapi.org/v2"
    sort_by: str = "publishedAt"
    cache_ttl: int = 300  # 쿼리별 결과 캐시 (초), 0이면 비활성
    cache_timeout: float = 0.5  # 캐시 읽기/쓰기 1회 대기 상한 (초)
    queries: list[SearchQuery] = Field(default_factory=lambda: list(DEFAULT_QUERIES))

    model_config = {"env_prefix": "NEWSAPI_"}


class ScanConfig(BaseSettings):
    """스캔 파이프라인 파라미터."""

    max_articles: int = 100
    batch_size: int = 5  # 작은 배치 = 빠른 스트리밍
    max_attempts: int = 2  # 배치당 원격 분류 시도 횟수
    retry_delay: float = 0.5  # 실패 후 재시도 대기 (초)
    batch_delay: float = 0.15  # 배치 간 대기 (초, rate limit 회피)
    fetch_timeout: float = 10.0
    classify_timeout: float = 30.0
    language: str = "en"
    # {카테고리: 가중치}. 비어 있으면 최신순 truncate만 수행
    category_weights: dict[str, float] = Field(default_factory=dict)
    # fallback 분류 시 카테고리 → 지역 추정 테이블
    category_regions: dict[str, Region] = Field(
        default_factory=lambda: {
            "Economy": Region.AMERICAS,
            "Markets": Region.AMERICAS,
            "Policy": Region.AMERICAS,
            "Politics": Region.EUROPE,
        }
    )
    default_region: Region = Region.AMERICAS
    # /api/scan/stream 클라이언트 IP당 호출 한도 (slowapi 표기)
    stream_rate_limit: str = "10/minute"

    model_config = {"env_prefix": "SCAN_"}


class SecretsConfig(BaseSettings):
    """외부 서비스 API 키 — 환경변수 직접 매핑 (prefix 없음).

    env_prefix 없이 필드명이 곧 환경변수명:
        news_api_key   → NEWS_API_KEY
        gemini_api_key → GEMINI_API_KEY
    """

    news_api_key: str = ""
    gemini_api_key: str = ""


class AppConfig(BaseSettings):
    """최상위 설정 — 서브 설정 객체를 조합.

    Usage:
        from impact_scanner.domain.config import get_config
        config = get_config()
        print(config.scan.batch_size)
        config.require_credentials()
    """

    env: str = Field(default="production", description="development | staging | production")
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True
    record_scans: bool = True

    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    newsapi: NewsApiConfig = Field(default_factory=NewsApiConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)

    model_config = {"env_prefix": "APP_"}

    def require_credentials(self) -> None:
        """스캔에 필요한 API 키 확인. 누락 시 FatalConfigError."""
        missing = [
            name
            for name, value in (
                ("NEWS_API_KEY", self.secrets.news_api_key),
                ("GEMINI_API_KEY", self.secrets.gemini_api_key),
            )
            if not value
        ]
        if missing:
            raise FatalConfigError(f"API keys not configured: {', '.join(missing)}")


@lru_cache
def get_config() -> AppConfig:
    """싱글턴 설정 인스턴스.

    프로세스 내에서 한 번만 환경 변수를 읽고 캐싱.
    테스트에서는 get_config.cache_clear()로 초기화.
    """
    return AppConfig()
