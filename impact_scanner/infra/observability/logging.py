"""Structured logging — structlog 기반 설정.

Usage:
    from impact_scanner.infra.observability.logging import setup_logging

    setup_logging(service_name="scan-api")
    logger = logging.getLogger(__name__)
    logger.info("Batch %d/%d analyzed", 1, 20)
"""

import logging
import sys

import structlog

# 요청 단위 로그가 과도한 라이브러리
_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai")


def setup_logging(
    service_name: str = "impact-scanner",
    *,
    log_level: str = "INFO",
    json_output: bool = True,
) -> None:
    """전역 structlog + stdlib 로깅 설정.

    Args:
        service_name: 로그에 포함할 서비스 이름
        log_level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR)
        json_output: True면 JSON 형식, False면 사람이 읽기 쉬운 형식
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level_int,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib handler에 structlog 포매터 연결 → logging.getLogger() 로그도 동일 포맷
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    root = logging.getLogger()
    for handler in root.handlers:
        handler.setFormatter(formatter)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level_int, logging.WARNING))

    structlog.contextvars.bind_contextvars(service=service_name)


def bind_scan_id(scan_id: str) -> None:
    """현재 컨텍스트(스캔 스트림 task)의 로그에 scan_id 바인딩."""
    structlog.contextvars.bind_contextvars(scan_id=scan_id)
