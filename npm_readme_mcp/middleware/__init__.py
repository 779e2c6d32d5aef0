"""
MCP 서버용 미들웨어 컴포넌트 모음

미들웨어 컴포넌트:
    ErrorHandlerMiddleware: 전역 예외 로깅
        - 에러 종류별 로그 레벨 선택
        - 예상치 못한 예외의 스택 트레이스 로깅
        - 에러 타입/메서드별 통계

    LoggingMiddleware: 도구 호출 로깅
        - 요청 ID 생성 및 추적
        - 처리 시간 측정
        - 민감 데이터 마스킹

실행 순서:
    요청: ErrorHandlerMiddleware → LoggingMiddleware → 도구
    응답: 도구 → LoggingMiddleware → ErrorHandlerMiddleware
"""

from .error_handler import ErrorHandlerMiddleware, find_mcp_error
from .logging import LoggingMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
    "LoggingMiddleware",
    "find_mcp_error",
]
