"""
캐싱이 통합된 도구 기본 클래스

모든 MCP 도구는 같은 흐름을 따릅니다:

    파라미터 검증 → 캐시 키 생성 → 캐시 조회 → (미스) 업스트림 조회 → 캐시 저장 → 반환

Template Method 패턴으로 캐싱 흐름은 공통으로 두고, 하위 클래스는
검증(parse_params), 키 생성(cache_key), 실제 조회(fetch)만 구현합니다.

캐싱 정책:
    - 검증 실패는 캐시 조회 전에 발생합니다
    - 업스트림 오류는 캐시하지 않습니다 (예외가 그대로 전파)
    - exists=False 응답(패키지 없음)은 캐시하지 않습니다
    - 응답 표시 옵션(include_*)은 캐시 이후 present()에서 적용합니다
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

import structlog
from pydantic import BaseModel

from ..cache import MemoryCache
from ..clients import GitHubClient, NpmRegistryClient
from ..config import CacheConfig
from ..models import ToolParams

P = TypeVar("P", bound=ToolParams)


@dataclass
class ToolDependencies:
    """
    도구 실행에 필요한 의존성 묶음

    서버 lifespan에서 생성되어 각 도구에 주입됩니다.
    cache가 None이면 캐싱 없이 매번 업스트림을 조회합니다.
    """

    npm_client: NpmRegistryClient
    github_client: GitHubClient
    cache: Optional[MemoryCache] = None
    cache_config: CacheConfig = field(default_factory=CacheConfig)
    include_download_stats: bool = True


class PackageTool(ABC, Generic[P]):
    """
    npm 패키지 도구 추상 클래스

    사용 예시:
        ```python
        class MyTool(PackageTool[MyParams]):
            name = "my_tool"

            def parse_params(self, arguments):
                return MyParams.model_validate(arguments)

            def cache_key(self, params):
                return f"my:{params.value}"

            def cache_ttl(self):
                return self.deps.cache_config.default_ttl_ms

            async def fetch(self, params):
                ...
        ```
    """

    name: str = "package_tool"

    def __init__(self, deps: ToolDependencies):
        self.deps = deps
        self.logger = structlog.get_logger(self.__class__.__name__)

    async def run(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        캐싱이 적용된 도구 실행

        Args:
            arguments: MCP 도구 호출 인자

        Returns:
            dict[str, Any]: 응답 모델을 직렬화한 딕셔너리

        Raises:
            ValidationError: 파라미터 검증 실패
            MCPError: 업스트림 조회 실패
        """
        params = self.parse_params(arguments)
        key = self.cache_key(params)
        cache = self.deps.cache

        if cache is not None:
            cached = cache.get(key)
            if cached is not None:
                self.logger.debug("캐시된 응답 반환", tool=self.name, key=key)
                return self.present(cached, params)

        self.logger.info("업스트림 조회 시작", tool=self.name, key=key)
        result = await self.fetch(params)
        payload = result.model_dump(exclude_none=True)

        if cache is not None and payload.get("exists", True):
            cache.set(key, payload, self.cache_ttl())

        return self.present(payload, params)

    def present(self, payload: dict[str, Any], params: P) -> dict[str, Any]:
        """응답 표시 옵션 적용. 캐시된 딕셔너리와 중첩 객체를 공유하지 않는 깊은 복사본을 반환합니다."""
        return copy.deepcopy(payload)

    @abstractmethod
    def parse_params(self, arguments: dict[str, Any]) -> P:
        """인자 검증 및 파라미터 모델 변환"""

    @abstractmethod
    def cache_key(self, params: P) -> str:
        pass

    @abstractmethod
    def cache_ttl(self) -> int:
        """캐시 TTL (밀리초)"""

    @abstractmethod
    async def fetch(self, params: P) -> BaseModel:
        """업스트림 조회 및 응답 모델 생성"""
