"""FastAPI Depends 기반 DI — 서비스 공통 의존성 팩토리.

Usage:
    from impact_scanner.services.deps import get_db_session, get_redis_client

    @router.get("/scans")
    def list_scans(session: Session = Depends(get_db_session)):
        ...

테스트에서는 app.dependency_overrides로 교체.
"""

from collections.abc import Callable, Generator

import redis
from sqlmodel import Session

from impact_scanner.domain.config import AppConfig, get_config
from impact_scanner.domain.errors import FatalConfigError
from impact_scanner.infra.database.engine import get_engine
from impact_scanner.infra.llm import BaseLLMProvider, LLMFactory
from impact_scanner.infra.redis.client import get_redis


def get_app_config() -> AppConfig:
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """요청 스코프 DB 세션 (FastAPI Depends)."""
    engine = get_engine()
    with Session(engine) as session:
        yield session


def get_session_factory() -> Callable[[], Session]:
    """요청 밖(스트림 완료 시점)에서 쓰는 세션 팩토리."""
    engine = get_engine()
    return lambda: Session(engine)


def get_redis_client() -> redis.Redis:
    """Redis 클라이언트 (싱글턴)."""
    return get_redis()


def get_summary_llm() -> BaseLLMProvider:
    """내러티브 요약용 LLM (REASONING tier)."""
    if not get_config().secrets.gemini_api_key:
        raise FatalConfigError("GEMINI_API_KEY not configured")
    return LLMFactory.get_provider("reasoning")


def get_classify_llm() -> BaseLLMProvider:
    """배치 분류용 LLM (FAST tier)."""
    if not get_config().secrets.gemini_api_key:
        raise FatalConfigError("GEMINI_API_KEY not configured")
    return LLMFactory.get_provider("fast")
