"""FastAPI 앱 팩토리 — 공통 헬스체크 + 에러 핸들러.

Usage:
    from impact_scanner.services.base import create_app

    app = create_app("scan-api", version="1.0.0", dependencies=["redis", "db"])
"""

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from impact_scanner.domain.errors import ClassifierError, FatalConfigError
from impact_scanner.domain.health import DependencyHealth, HealthStatus

logger = logging.getLogger(__name__)

# 서비스 시작 시각 (uptime 계산용)
_start_time: float = 0.0


def create_app(
    service_name: str,
    *,
    version: str = "1.0.0",
    lifespan: Callable | None = None,
    dependencies: list[str] | None = None,
) -> FastAPI:
    """FastAPI 앱 팩토리 — 공통 헬스체크 + 에러 핸들러.

    Args:
        service_name: 서비스 식별자 (예: "scan-api")
        version: 서비스 버전
        lifespan: 커스텀 lifespan context manager (startup/shutdown)
        dependencies: 헬스체크에 포함할 의존성 목록 ("redis", "db")
    """
    deps = dependencies or []

    @asynccontextmanager
    async def wrapped_lifespan(app: FastAPI) -> AsyncIterator[None]:
        global _start_time
        _start_time = time.monotonic()
        logger.info("[%s] Starting v%s", service_name, version)
        if lifespan:
            async with lifespan(app):
                yield
        else:
            yield
        logger.info("[%s] Shutting down", service_name)

    app = FastAPI(
        title=f"impact-scanner {service_name}",
        version=version,
        lifespan=wrapped_lifespan,
    )
    # 진행 중인 SSE 스트림 수 (헬스체크 노출)
    app.state.active_scans = 0

    # --- Error Handlers ---

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": exc.errors(include_url=False), "message": "Validation error"},
        )

    @app.exception_handler(FatalConfigError)
    async def config_error_handler(request: Request, exc: FatalConfigError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(ClassifierError)
    async def classifier_error_handler(request: Request, exc: ClassifierError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": str(exc), "message": "Upstream LLM error"})

    # --- Health Check ---

    @app.get("/health")
    async def health() -> HealthStatus:
        dep_health: dict[str, DependencyHealth] = {}
        overall = "healthy"

        for dep in deps:
            dep_health[dep] = _check_dependency(dep)
            if dep_health[dep].status == "down":
                overall = "unhealthy"
            elif dep_health[dep].status == "degraded" and overall == "healthy":
                overall = "degraded"

        return HealthStatus(
            service=service_name,
            status=overall,
            uptime_seconds=time.monotonic() - _start_time,
            version=version,
            active_scans=app.state.active_scans,
            dependencies=dep_health,
            timestamp=datetime.now(UTC),
        )

    return app


def _check_dependency(name: str) -> DependencyHealth:
    """의존성 상태 체크."""
    start = time.monotonic()
    try:
        if name == "redis":
            from impact_scanner.infra.redis.client import get_redis

            get_redis().ping()
        elif name == "db":
            from sqlalchemy import text

            from impact_scanner.infra.database.engine import get_engine

            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
        else:
            return DependencyHealth(status="healthy", message=f"Unknown dep: {name}")

        latency = (time.monotonic() - start) * 1000
        status = "healthy" if latency < 1000 else "degraded"
        return DependencyHealth(status=status, latency_ms=round(latency, 1))

    except Exception as e:
        latency = (time.monotonic() - start) * 1000
        return DependencyHealth(
            status="down",
            latency_ms=round(latency, 1),
            message=str(e)[:200],
        )
