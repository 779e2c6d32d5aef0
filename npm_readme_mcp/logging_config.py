"""
구조화된 로깅 설정

structlog를 표준 logging 위에 구성합니다. stdio 전송에서는 stdout이
JSON-RPC 채널이므로 모든 로그는 stderr로 출력해야 합니다.
"""

import logging
import sys

import structlog

from .config.settings import LoggingConfig


def configure_logging(config: LoggingConfig) -> None:
    """
    structlog 및 표준 logging 설정

    Args:
        config: 로깅 설정 (레벨, 출력 형식)
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # httpx는 요청마다 INFO 로그를 남기므로 한 단계 낮춤
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    if config.log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
