"""
사용자 정의 예외 및 에러 처리 모듈

이 모듈은 npm README MCP 서버의 모든 에러와 예외를 정의하고 처리합니다.
JSON-RPC 2.0 표준 에러 코드와 함께 사용자 정의 에러 코드를 제공하며,
각 예외는 호출자가 분기할 수 있는 문자열 에러 종류(kind)를 함께 가집니다.

주요 구성요소:
    - ErrorCode: 표준 및 사용자 정의 에러 코드 열거형
    - MCPError: 모든 MCP 예외의 기본 클래스
    - 구체적인 예외 클래스들: 검증, 패키지 없음, 네트워크, 속도 제한 등
    - ErrorHandler: 중앙 집중식 에러 처리기

에러 코드 범위:
    - 표준 JSON-RPC: -32700 ~ -32603
    - 사용자 정의: -32000 ~ -32099

캐시 계층은 이 모듈의 예외를 발생시키지 않습니다. 업스트림 호출과
파라미터 검증에서 발생한 예외는 캐시를 거치지 않고 그대로 전파됩니다.
"""

from typing import Any, Dict, Optional
from enum import Enum
import asyncio


class ErrorCode(Enum):
    """
    MCP 에러 코드 열거형

    JSON-RPC 2.0 표준 에러 코드와 MCP 확장 에러 코드를 정의합니다.
    표준 코드는 JSON-RPC 스펙을 따르고, 사용자 정의 코드는
    -32000 ~ -32099 범위를 사용합니다.
    """

    # 표준 JSON-RPC 에러 코드
    PARSE_ERROR = -32700          # JSON 파싱 에러
    INVALID_REQUEST = -32600      # 잘못된 요청 형식
    METHOD_NOT_FOUND = -32601     # 메서드를 찾을 수 없음
    INVALID_PARAMS = -32602       # 잘못된 매개변수
    INTERNAL_ERROR = -32603       # 내부 서버 에러

    # 사용자 정의 에러 코드 (-32000 ~ -32099 범위 사용)
    RATE_LIMIT_ERROR = -32003      # 업스트림 속도 제한 초과
    NETWORK_ERROR = -32004         # 업스트림 네트워크 실패
    VALIDATION_ERROR = -32005      # 입력값 검증 실패
    TIMEOUT_ERROR = -32006         # 작업 시간 초과
    RESOURCE_NOT_FOUND = -32007    # 패키지/버전을 찾을 수 없음


class MCPError(Exception):
    """
    모든 MCP 에러의 기본 예외 클래스

    JSON-RPC 2.0 형식의 에러 응답을 생성할 수 있도록 설계되었습니다.
    모든 서버 관련 예외는 이 클래스를 상속받아야 합니다.

    Attributes:
        message (str): 에러 메시지
        code (ErrorCode): 프로토콜 레벨 에러 코드
        kind (str): 에러 종류 (예: "PACKAGE_NOT_FOUND", "INVALID_LIMIT")
        data (dict): 추가 에러 정보 (선택사항)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        data: Optional[Dict[str, Any]] = None,
        kind: str = "INTERNAL_ERROR",
    ):
        """
        MCP 에러 초기화

        Args:
            message: 사용자에게 표시될 에러 메시지
            code: 에러 코드 (기본값: INTERNAL_ERROR)
            data: 디버깅에 유용한 추가 정보 (선택사항)
            kind: 에러 종류 문자열 (기본값: "INTERNAL_ERROR")
        """
        self.message = message
        self.code = code
        self.kind = kind
        self.data = data or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        에러를 JSON-RPC 에러 형식으로 변환

        error 객체의 data 필드에는 항상 kind가 포함되며,
        추가 정보가 있으면 함께 병합됩니다.

        Returns:
            Dict[str, Any]: JSON-RPC 에러 형식
                - code: 에러 코드 (숫자)
                - message: 에러 메시지
                - data: kind와 추가 정보
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "data": {"kind": self.kind, **self.data},
        }


class ValidationError(MCPError):
    """
    요청 검증 실패 에러

    입력 매개변수가 유효하지 않거나 필수 필드가 누락되었을 때 발생합니다.
    캐시 조회 이전에 발생하므로 캐시 상태에 영향을 주지 않습니다.
    """

    def __init__(
        self,
        message: str,
        kind: str = "INVALID_PARAMS",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            message: 에러 메시지
            kind: 검증 실패 종류 (예: "INVALID_PACKAGE_NAME", "INVALID_LIMIT")
            field: 검증에 실패한 필드 이름 (선택사항)
            value: 잘못된 값 (선택사항)
            data: 추가 정보 (예: 예상 형식, 제약 조건 등)
        """
        if data is None:
            data = {}
        if field:
            data["field"] = field
        if value is not None:
            # 긴 값은 100자로 잘라서 로그에 과도한 데이터 방지
            data["value"] = str(value)[:100]

        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            data=data,
            kind=kind,
        )


class PackageNotFoundError(MCPError):
    """레지스트리에 패키지가 존재하지 않을 때 발생합니다."""

    def __init__(self, package_name: str):
        super().__init__(
            message=f"Package '{package_name}' not found",
            code=ErrorCode.RESOURCE_NOT_FOUND,
            data={"package_name": package_name, "status_code": 404},
            kind="PACKAGE_NOT_FOUND",
        )
        self.package_name = package_name


class VersionNotFoundError(MCPError):
    """패키지는 존재하지만 요청한 버전이나 dist-tag가 없을 때 발생합니다."""

    def __init__(self, package_name: str, version: str):
        super().__init__(
            message=f"Version '{version}' of package '{package_name}' not found",
            code=ErrorCode.RESOURCE_NOT_FOUND,
            data={"package_name": package_name, "version": version, "status_code": 404},
            kind="VERSION_NOT_FOUND",
        )
        self.package_name = package_name
        self.version = version


class NetworkError(MCPError):
    """
    업스트림 네트워크 실패 에러

    npm 레지스트리나 GitHub API 호출이 연결 오류 또는 예상하지 못한
    HTTP 상태로 실패했을 때 발생합니다. 이 에러는 절대 캐시되지 않습니다.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            message: 에러 메시지
            service: 실패한 업스트림 서비스 이름 (예: "npm", "github")
            status_code: HTTP 상태 코드 (응답을 받은 경우)
            data: 추가 정보
        """
        if data is None:
            data = {}
        if service:
            data["service"] = service
        if status_code is not None:
            data["status_code"] = status_code

        super().__init__(
            message=f"Network error: {message}",
            code=ErrorCode.NETWORK_ERROR,
            data=data,
            kind="NETWORK_ERROR",
        )


class RateLimitError(MCPError):
    """
    업스트림 속도 제한 초과 에러

    재시도 후에도 업스트림이 429를 반환할 때 발생합니다.
    재시도 가능 시간 정보를 포함할 수 있습니다.
    """

    def __init__(
        self,
        service: str,
        retry_after: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        if data is None:
            data = {}
        data["service"] = service
        if retry_after is not None:
            # 재시도 가능 시간을 기계가 읽을 수 있는 형식과
            # 사람이 읽을 수 있는 형식으로 모두 제공
            data["retry_after"] = retry_after
            data["retry_after_human"] = f"{retry_after} seconds"

        super().__init__(
            message=f"Rate limit exceeded for {service}",
            code=ErrorCode.RATE_LIMIT_ERROR,
            data=data,
            kind="RATE_LIMIT_EXCEEDED",
        )


class TimeoutError(MCPError):
    """
    작업 시간 초과 에러

    업스트림 요청이 설정된 타임아웃 내에 완료되지 않았을 때 발생합니다.
    캐시 연산에는 타임아웃이 적용되지 않습니다.
    """

    def __init__(
        self,
        message: str = "Operation timed out",
        operation: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            message: 에러 메시지 (기본값: "Operation timed out")
            operation: 타임아웃된 작업 이름 (선택사항)
            timeout_seconds: 타임아웃 시간 (초 단위, 선택사항)
            data: 추가 정보
        """
        if data is None:
            data = {}
        if operation:
            data["operation"] = operation
        if timeout_seconds:
            data["timeout_seconds"] = timeout_seconds

        super().__init__(
            message=message,
            code=ErrorCode.TIMEOUT_ERROR,
            data=data,
            kind="TIMEOUT",
        )


class ErrorHandler:
    """
    중앙 집중식 에러 처리기

    모든 예외를 JSON-RPC 형식의 에러 응답으로 변환하고
    에러 컨텍스트를 생성하는 유틸리티 클래스입니다.
    """

    @staticmethod
    def handle_error(error: Exception, request_id: Optional[str] = None) -> Dict[str, Any]:
        """
        모든 예외를 JSON-RPC 에러 응답으로 변환

        Args:
            error: 처리할 예외
            request_id: 요청 추적을 위한 ID (선택사항)

        Returns:
            Dict[str, Any]: JSON-RPC 에러 응답
                - jsonrpc: "2.0" (고정값)
                - error: 에러 객체 (code, message, data)
                - id: 요청 ID (null일 수 있음)
        """
        if isinstance(error, MCPError):
            mcp_error = error
        elif isinstance(error, asyncio.TimeoutError):
            # asyncio 타임아웃을 MCP 타임아웃 에러로 변환
            mcp_error = TimeoutError("Operation timed out")
        elif isinstance(error, ValueError):
            # ValueError를 검증 에러로 변환 (잘못된 입력값)
            mcp_error = ValidationError(str(error))
        else:
            # 예상치 못한 예외는 내부 에러로 처리
            # 보안을 위해 상세 정보는 data 필드에만 포함
            mcp_error = MCPError(
                message="Internal server error",
                code=ErrorCode.INTERNAL_ERROR,
                data={
                    "exception_type": type(error).__name__,
                    "exception_message": str(error),
                },
            )

        return {
            "jsonrpc": "2.0",
            "error": mcp_error.to_dict(),
            "id": request_id,
        }

    @staticmethod
    def create_error_context(
        error: Exception,
        method: Optional[str] = None,
        tool_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        로깅을 위한 에러 컨텍스트 생성

        Args:
            error: 발생한 예외
            method: 호출된 MCP 메서드 (예: "tools/call")
            tool_name: 에러가 발생한 도구 이름

        Returns:
            Dict[str, Any]: 구조화된 로깅용 에러 컨텍스트
        """
        context = {
            "error_type": type(error).__name__,
            "error_message": str(error),
        }

        if method:
            context["method"] = method
        if tool_name:
            context["tool_name"] = tool_name

        if isinstance(error, MCPError):
            context["error_code"] = error.code.value
            context["error_kind"] = error.kind
            context["error_data"] = error.data

        return context
