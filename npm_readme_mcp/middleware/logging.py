"""
도구 호출 로깅 미들웨어

MCP 도구 호출마다 시작/완료 이벤트를 구조화된 형태로 로깅합니다.

주요 기능:
    - 도구 이름과 인자 로깅 (민감 필드는 [REDACTED]로 마스킹)
    - 처리 시간 측정 및 느린 호출 경고
    - 성공/실패 여부 기록

사용 예시:
    ```python
    logging_middleware = LoggingMiddleware(
        sensitive_fields=["token", "api_key"],
        slow_call_threshold_ms=2000,
    )
    server.add_middleware(logging_middleware)
    ```
"""

from typing import Any
import time
import uuid

import structlog
from fastmcp.server.middleware import Middleware, MiddlewareContext, CallNext

logger = structlog.get_logger(__name__)

# 로그에 남길 문자열 최대 길이
MAX_LOGGED_STRING_LENGTH = 1000


class LoggingMiddleware(Middleware):
    """
    도구 호출 추적 및 성능 모니터링 미들웨어

    stdio 전송에서는 stdout이 JSON-RPC 채널이므로 로그는 logging_config에서
    설정한 stderr 핸들러로만 출력됩니다.
    """

    def __init__(
        self,
        log_arguments: bool = True,
        sensitive_fields: list[str] | None = None,
        slow_call_threshold_ms: float = 1000,
    ):
        """
        로깅 미들웨어 초기화

        Args:
            log_arguments: 도구 인자 로깅 여부
            sensitive_fields: 로그에서 마스킹할 필드 이름 (부분 일치, 대소문자 무시)
            slow_call_threshold_ms: 느린 호출 경고 기준 (밀리초)
        """
        self.log_arguments = log_arguments
        self.sensitive_fields = sensitive_fields or ["password", "token", "api_key", "secret"]
        self.slow_call_threshold_ms = slow_call_threshold_ms

    async def on_call_tool(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        """도구 호출 로깅 및 처리 시간 측정"""
        start_time = time.perf_counter()
        request_id = str(uuid.uuid4())
        tool_name = getattr(context.message, "name", "unknown")

        log_context = {"request_id": request_id, "tool_name": tool_name}

        arguments = getattr(context.message, "arguments", None) or {}
        logger.info(
            "도구 호출 시작",
            **log_context,
            arguments=self._sanitize_data(arguments) if self.log_arguments else None,
        )

        success = False
        try:
            result = await call_next(context)
            success = True
            return result

        except Exception as e:
            log_context["error_type"] = type(e).__name__
            log_context["error"] = self._sanitize_data(str(e))
            raise

        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            log_level = "info" if success else "error"
            getattr(logger, log_level)(
                "도구 호출 완료",
                **log_context,
                duration_ms=round(duration_ms, 2),
                success=success,
            )

            if duration_ms > self.slow_call_threshold_ms:
                logger.warning(
                    "느린 도구 호출 감지",
                    **log_context,
                    duration_ms=round(duration_ms, 2),
                    threshold_ms=self.slow_call_threshold_ms,
                )

    def _sanitize_data(self, data: Any) -> Any:
        """
        로그에서 민감한 데이터를 재귀적으로 마스킹

        Returns:
            Any: 민감 필드는 "[REDACTED]", 긴 문자열은 1000자로 절단
        """
        if isinstance(data, dict):
            sanitized = {}
            for key, value in data.items():
                if any(field.lower() in str(key).lower() for field in self.sensitive_fields):
                    sanitized[key] = "[REDACTED]"
                else:
                    sanitized[key] = self._sanitize_data(value)
            return sanitized

        if isinstance(data, list):
            return [self._sanitize_data(item) for item in data]

        if isinstance(data, str) and len(data) > MAX_LOGGED_STRING_LENGTH:
            return data[:MAX_LOGGED_STRING_LENGTH] + "... [TRUNCATED]"

        return data
