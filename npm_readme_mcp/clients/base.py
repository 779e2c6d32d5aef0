"""
업스트림 클라이언트 기본 인터페이스 모듈

npm 레지스트리와 GitHub API 클라이언트가 공유하는 연결 관리,
재시도, 에러 변환 로직을 정의합니다.

주요 구성요소:
    - UpstreamClient: 모든 업스트림 클라이언트의 추상 기본 클래스
    - UpstreamHealth: 클라이언트 상태 정보 모델

에러 변환 규칙:
    - httpx.TimeoutException → TimeoutError
    - 429 (재시도 소진) → RateLimitError
    - 그 외 HTTP 상태 오류 및 전송 오류 → NetworkError

429와 5xx 응답은 Retry-After 헤더 또는 지수 백오프에 따라 재시도합니다.
"""

from abc import ABC
import asyncio
from datetime import datetime, timezone
from typing import Any, Optional, Self

import httpx
from pydantic import BaseModel, Field
import structlog

from ..exceptions import NetworkError, RateLimitError, TimeoutError
from ..utils.connection_manager import HTTPSessionManager

# 재시도 대상 HTTP 상태 코드
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# 재시도 대기 시간 상한 (초)
MAX_RETRY_DELAY_SECONDS = 30.0


class UpstreamHealth(BaseModel):
    """
    업스트림 클라이언트 상태 정보 모델

    Attributes:
        healthy (bool): 정상 작동 여부
        service_name (str): 서비스 이름 (예: "npm", "github")
        details (dict[str, Any] | None): 추가 상태 정보
        error (str | None): 에러 메시지 (에러 발생 시)
        checked_at (datetime): 상태 확인 시각 (UTC)
    """

    healthy: bool
    service_name: str
    details: dict[str, Any] | None = Field(default=None)
    error: str | None = Field(default=None)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UpstreamClient(ABC):
    """
    모든 업스트림 클라이언트의 추상 기본 클래스

    HTTPSessionManager를 통해 연결 풀을 공유하고, GET 요청에 대한
    재시도와 에러 변환을 제공합니다. 비동기 컨텍스트 매니저를 지원합니다.

    사용 예제:
        ```python
        async with NpmRegistryClient(config) as client:
            info = await client.get_package_info("lodash")
        ```

    Attributes:
        service_name (str): 로그와 에러에 사용되는 서비스 이름
        timeout (float): 요청 타임아웃 (초)
        max_retries (int): 429/5xx 응답에 대한 최대 재시도 횟수
        backoff_base (float): 지수 백오프 기본 대기 시간 (초)
    """

    service_name = "upstream"

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 3,
        user_agent: str = "npm-readme-mcp/1.0.0",
        session_manager: Optional[HTTPSessionManager] = None,
        backoff_base: float = 0.5,
        health_check_url: Optional[str] = None,
    ) -> None:
        """
        Args:
            timeout: 요청 타임아웃 (초)
            max_retries: 429/5xx 응답 재시도 횟수
            user_agent: User-Agent 헤더 값
            session_manager: 공유 세션 매니저 (없으면 새로 생성)
            backoff_base: 지수 백오프 기본 대기 시간 (초)
            health_check_url: health_check()에서 확인할 URL
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        # 클래스 이름을 로거 이름으로 사용하여 로그 추적 용이
        self.logger = structlog.get_logger(self.__class__.__name__)

        self._owns_session = session_manager is None
        self._session_manager = session_manager or HTTPSessionManager(
            timeout=timeout,
            retries=1,
            headers={"User-Agent": user_agent},
            health_check_url=health_check_url,
        )

    @property
    def connected(self) -> bool:
        return self._session_manager.initialized

    async def connect(self) -> None:
        """HTTP 세션을 초기화합니다."""
        await self._session_manager.initialize()
        self._log_operation("connect", status="success")

    async def disconnect(self) -> None:
        """소유한 HTTP 세션을 닫습니다. 공유 세션은 소유자가 닫습니다."""
        if self._owns_session:
            await self._session_manager.close()
        self._log_operation(
            "disconnect",
            total_requests=self._session_manager.metrics.total_requests,
        )

    async def health_check(self) -> UpstreamHealth:
        """세션 상태 확인"""
        session_health = await self._session_manager.health_check()
        status = session_health.get("status")
        return UpstreamHealth(
            healthy=status in ("healthy", "not_initialized"),
            service_name=self.service_name,
            details={
                "connected": self.connected,
                "timeout": self.timeout,
                "total_requests": session_health.get("total_requests", 0),
                "request_errors": session_health.get("request_errors", 0),
                "reuse_rate": session_health.get("reuse_rate", 0.0),
            },
            error=session_health.get("error"),
        )

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        # 예외 발생 여부와 관계없이 항상 연결 종료
        await self.disconnect()

    async def _get(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        passthrough_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        """
        재시도가 적용된 GET 요청

        Args:
            url: 요청 URL
            params: 쿼리 파라미터
            headers: 요청별 추가 헤더
            passthrough_statuses: 에러로 변환하지 않고 그대로 반환할 상태 코드
                (예: 404를 호출자가 직접 처리하는 경우)

        Returns:
            httpx.Response: 성공 응답 또는 passthrough 상태의 응답

        Raises:
            TimeoutError: 요청 시간 초과
            RateLimitError: 재시도 후에도 429 응답
            NetworkError: 그 외 HTTP 또는 전송 오류
        """
        for attempt in range(self.max_retries + 1):
            try:
                async with self._session_manager.session() as session:
                    response = await session.get(url, params=params, headers=headers)
                    if response.status_code in passthrough_statuses:
                        return response
                    response.raise_for_status()
                    return response

            except httpx.TimeoutException as e:
                self._log_operation("get", status="timeout", url=url)
                raise TimeoutError(
                    f"{self.service_name} request timed out",
                    operation=url,
                    timeout_seconds=self.timeout,
                ) from e

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries:
                    delay = self._retry_delay(e.response, attempt)
                    self._log_operation(
                        "get",
                        status="retrying",
                        http_status=status_code,
                        retry_after=delay,
                        attempt=attempt + 1,
                    )
                    # 지정된 시간만큼 대기 후 재시도
                    await asyncio.sleep(delay)
                    continue
                raise self._status_error(e.response) from e

            except httpx.HTTPError as e:
                self._log_operation("get", status="failed", url=url, error=str(e))
                raise NetworkError(str(e) or type(e).__name__, service=self.service_name) from e

        # 여기에 도달할 수 없지만 타입 체커를 위해 포함
        raise RuntimeError("Failed to get response from upstream")

    def _retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Retry-After 헤더(초)가 있으면 사용하고, 없으면 지수 백오프"""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return min(float(retry_after), MAX_RETRY_DELAY_SECONDS)
            except ValueError:
                # HTTP 날짜 형식은 지원하지 않으므로 백오프 사용
                pass
        return min(self.backoff_base * (2 ** attempt), MAX_RETRY_DELAY_SECONDS)

    def _status_error(self, response: httpx.Response) -> Exception:
        status_code = response.status_code
        if status_code == 429:
            retry_after = response.headers.get("Retry-After")
            return RateLimitError(
                self.service_name,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        return NetworkError(
            f"{self.service_name} returned HTTP {status_code}",
            service=self.service_name,
            status_code=status_code,
        )

    def _log_operation(self, operation: str, **kwargs: Any) -> None:
        """
        업스트림 작업 로깅

        Args:
            operation: 작업 이름 (예: "get", "connect")
            **kwargs: 로그에 포함할 추가 컨텍스트
        """
        self.logger.debug(
            "업스트림 작업",
            service=self.service_name,
            operation=operation,
            **kwargs,
        )
