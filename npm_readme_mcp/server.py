"""
npm README MCP 서버

npm 패키지의 README, 메타데이터, 검색 결과를 MCP 도구로 제공하는
설정 기반 서버입니다. 업스트림 응답은 인메모리 캐시에 저장되어
반복 요청 시 네트워크 호출을 건너뜁니다.

주요 특징:
    - 설정 기반 기능 활성화/비활성화 (MCP_ENABLE_<FEATURE>)
    - 세션 lifespan이 공유 캐시와 HTTP 클라이언트를 참조 카운트로 생성하고 정리
    - stdio (기본) 또는 HTTP 전송

사용 예시:
    # stdio 서버
    python -m npm_readme_mcp

    # HTTP 서버
    MCP_TRANSPORT=http MCP_SERVER_PORT=8001 python -m npm_readme_mcp

    # 캐시 비활성화
    MCP_ENABLE_CACHE=false python -m npm_readme_mcp
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Union

import structlog
from fastmcp import FastMCP, Context
from fastmcp.exceptions import ToolError
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse

from .cache import MemoryCache, MemoryCacheConfig
from .clients import GitHubClient, NpmRegistryClient
from .config import ServerConfig, validate_config
from .exceptions import ErrorHandler
from .logging_config import configure_logging
from .middleware import ErrorHandlerMiddleware, LoggingMiddleware
from .tools import (
    GetPackageInfoTool,
    GetPackageReadmeTool,
    PackageTool,
    SearchPackagesTool,
    ToolDependencies,
)

logger = structlog.get_logger(__name__)


class NpmReadmeServer:
    """
    npm README MCP 서버 클래스

    설정에 따라 미들웨어와 캐시를 구성하고 FastMCP 서버를 생성합니다.
    캐시와 업스트림 클라이언트는 init_components()에서 만들어지고
    cleanup()에서 정리됩니다.
    """

    def __init__(self, config: ServerConfig):
        """
        서버 초기화

        Args:
            config: 서버 설정
        """
        self.config = config
        self.middlewares: List[Any] = []
        self.tools: Dict[str, PackageTool] = {}

        self.cache: Optional[MemoryCache] = None
        self.npm_client: Optional[NpmRegistryClient] = None
        self.github_client: Optional[GitHubClient] = None

        # 미들웨어 인스턴스 저장 (통계 조회용)
        self.error_handler_middleware: Optional[ErrorHandlerMiddleware] = None

        # 컴포넌트를 사용 중인 세션 수 (마지막 세션이 끝날 때만 정리)
        self._active_users = 0
        self._lifecycle_lock = asyncio.Lock()

        # 컴포넌트 초기화
        self._init_components()

        logger.info(
            "npm README MCP 서버 초기화",
            features=config.get_enabled_features()
        )

    @property
    def use_emoji(self) -> bool:
        return bool(self.config.logging_config and self.config.logging_config.use_emoji)

    def _init_components(self):
        """설정 기반 미들웨어 초기화"""
        # 1. 에러 핸들러 (가장 바깥층)
        if self.config.features["error_handler"]:
            include_details = (
                self.config.logging_config is not None
                and self.config.logging_config.log_level == "DEBUG"
            )
            self.error_handler_middleware = ErrorHandlerMiddleware(
                capture_stack_trace=True,
                include_error_details=include_details,
                max_error_log_length=5000
            )
            self.middlewares.append(self.error_handler_middleware)
            logger.debug("에러 핸들러 미들웨어 초기화")

        # 2. 로깅
        if self.config.features["enhanced_logging"] and self.config.logging_config:
            self.middlewares.append(
                LoggingMiddleware(
                    sensitive_fields=self.config.logging_config.sensitive_fields
                )
            )
            logger.debug("로깅 미들웨어 초기화")

    async def init_components(self) -> ToolDependencies:
        """
        캐시, 업스트림 클라이언트, 도구 생성

        이벤트 루프 안에서 호출되어야 캐시의 주기적 정리 태스크가 시작됩니다.

        Returns:
            ToolDependencies: 도구에 주입된 의존성
        """
        upstream = self.config.upstream_config
        self.npm_client = NpmRegistryClient(upstream)
        self.github_client = GitHubClient(upstream)
        await self.npm_client.connect()
        await self.github_client.connect()

        if self.config.features["cache"]:
            cache_config = self.config.cache_config
            self.cache = MemoryCache(
                MemoryCacheConfig(
                    default_ttl_ms=cache_config.default_ttl_ms,
                    max_size_bytes=cache_config.max_size_bytes,
                    cleanup_interval_seconds=cache_config.cleanup_interval_seconds,
                )
            )
            logger.info(
                "인메모리 캐시 초기화",
                max_size_bytes=cache_config.max_size_bytes,
                default_ttl_ms=cache_config.default_ttl_ms,
            )

        deps = ToolDependencies(
            npm_client=self.npm_client,
            github_client=self.github_client,
            cache=self.cache,
            cache_config=self.config.cache_config,
            include_download_stats=self.config.features["download_stats"],
        )
        self.tools = {
            tool.name: tool
            for tool in (
                GetPackageReadmeTool(deps),
                GetPackageInfoTool(deps),
                SearchPackagesTool(deps),
            )
        }
        return deps

    @asynccontextmanager
    async def running(self):
        """
        공유 컴포넌트 사용 구간

        첫 진입에서 init_components()를, 마지막 종료에서 cleanup()을 호출합니다.
        MCP 세션마다 진입하는 lifespan과 프로세스 전체 구간(main)이 함께 사용하므로
        한 세션이 끝나도 다른 세션이 쓰는 캐시와 클라이언트는 유지됩니다.
        """
        async with self._lifecycle_lock:
            if self._active_users == 0:
                logger.info(
                    "npm README MCP 서버 시작 중...",
                    features=self.config.get_enabled_features()
                )
                await self.init_components()
                logger.info("MCP 서버 시작 완료", tools=list(self.tools.keys()))
            self._active_users += 1

        try:
            yield self
        finally:
            async with self._lifecycle_lock:
                self._active_users -= 1
                if self._active_users == 0:
                    await self.cleanup()

    async def cleanup(self):
        """종료 시 정리 작업"""
        logger.info("npm README MCP 서버 종료 중...")

        if self.error_handler_middleware:
            logger.info(
                "최종 에러 통계",
                statistics=self.error_handler_middleware.get_error_statistics()
            )

        if self.cache is not None:
            self.cache.destroy()
            self.cache = None

        for client in (self.npm_client, self.github_client):
            if client is None:
                continue
            try:
                await client.disconnect()
            except Exception as e:
                logger.error(
                    f"{client.service_name} 클라이언트 연결 해제 중 오류", error=str(e)
                )

        self.npm_client = None
        self.github_client = None
        self.tools.clear()
        logger.info("npm README MCP 서버 종료 완료")

    def create_server(self) -> FastMCP:
        """
        FastMCP 서버 인스턴스 생성

        Returns:
            설정된 FastMCP 서버 인스턴스
        """
        # 라이프사이클 관리 (세션마다 진입하므로 공유 컴포넌트는 참조 카운트로 관리)
        @asynccontextmanager
        async def lifespan(server: FastMCP):
            async with self.running():
                yield

        server = FastMCP(
            name=self.config.name,
            lifespan=lifespan,
            instructions=self._build_instructions()
        )

        # 미들웨어 적용
        for middleware in self.middlewares:
            server.add_middleware(middleware)

        # 도구 등록
        self._register_tools(server)

        # 헬스체크 엔드포인트 추가
        @server.custom_route("/health", methods=["GET"])
        async def health_check_endpoint(request: Request):
            return JSONResponse(await self.health_status())

        return server

    async def health_status(self) -> Dict[str, Any]:
        """
        헬스체크 응답 본문

        업스트림 클라이언트마다 health_check()를 호출하며, 하나라도
        비정상이거나 확인 중 예외가 나면 상태를 "degraded"로 표시합니다.
        """
        status: Dict[str, Any] = {
            "status": "healthy",
            "service": self.config.name,
            "features": self.config.get_enabled_features(),
            "tools": list(self.tools.keys()),
            "upstream": {},
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        for client in (self.npm_client, self.github_client):
            if client is None:
                continue
            try:
                health = await client.health_check()
                status["upstream"][client.service_name] = health.model_dump(mode="json")
                if not health.healthy:
                    status["status"] = "degraded"
            except Exception as e:
                logger.warning(
                    "업스트림 상태 확인 실패",
                    service=client.service_name,
                    error=str(e)
                )
                status["upstream"][client.service_name] = {"healthy": False, "error": str(e)}
                status["status"] = "degraded"

        if self.cache is not None:
            status["cache"] = self.cache.stats().model_dump()
        if self.error_handler_middleware:
            status["errors"] = self.error_handler_middleware.get_error_statistics()
        return status

    def _build_instructions(self) -> str:
        """서버 설명 생성"""
        base = """
npm README MCP 서버

npm 패키지 정보를 조회하는 도구를 제공합니다:
- get_package_readme: README, 사용 예제, 설치 방법
- get_package_info: 버전, 작성자, 라이선스, 의존성, 다운로드 통계
- search_packages: 키워드 검색 (quality/popularity 하한 필터)

활성화된 기능:
"""
        features = []

        if self.config.features["cache"]:
            features.append(
                f"- 인메모리 캐싱 (검색 {self.config.cache_config.ttl_search_ms // 1000}초, "
                f"패키지 정보 {self.config.cache_config.ttl_package_info_ms // 1000}초)"
            )
        if self.config.features["download_stats"]:
            features.append("- npm 다운로드 통계")

        if not features:
            features.append("- 기본 기능만 활성화")

        return base + "\n".join(features)

    async def run_tool(
        self, name: str, arguments: Dict[str, Any], ctx: Optional[Context] = None
    ) -> Dict[str, Any]:
        """
        도구 실행 및 에러 변환

        도메인 예외는 JSON-RPC 에러 객체(code, message, data.kind)를 담은
        ToolError로 변환되며, 원래 예외는 __cause__로 유지됩니다.
        """
        tool = self.tools.get(name)
        if tool is None:
            raise ToolError(f"{name} 도구를 사용할 수 없습니다 - 서버가 초기화되지 않음")

        if ctx:
            emoji = "🔍" if self.use_emoji else ""
            await ctx.info(f"{emoji} {name} 실행 중...")

        try:
            result = await tool.run(arguments)
        except Exception as e:
            error = ErrorHandler.handle_error(e)["error"]
            if ctx:
                emoji = "❌" if self.use_emoji else ""
                await ctx.error(f"{emoji} {name} 실패: {error['message']}")
            raise ToolError(json.dumps(error, ensure_ascii=False, default=str)) from e

        if ctx:
            emoji = "✅" if self.use_emoji else ""
            await ctx.info(f"{emoji} {name} 완료")
        return result

    def _register_tools(self, server: FastMCP):
        """도구 함수 등록"""

        @server.tool
        async def get_package_readme(
            ctx: Context,
            package_name: Annotated[
                str, Field(description="npm 패키지 이름 (예: lodash, @types/node)")
            ],
            version: Annotated[
                str, Field(description="버전 또는 dist-tag (기본값: latest)")
            ] = "latest",
            include_examples: Annotated[
                bool, Field(description="README 코드 블록에서 추출한 사용 예제 포함 여부")
            ] = True,
        ) -> Dict[str, Any]:
            """
            npm 패키지의 README와 사용 예제 조회

            README 본문, 사용 예제(최대 5개), 설치 명령, 기본 정보를 반환합니다.
            패키지가 없으면 exists=false 응답을 반환합니다.
            """
            return await self.run_tool(
                "get_package_readme",
                {
                    "package_name": package_name,
                    "version": version,
                    "include_examples": include_examples,
                },
                ctx,
            )

        @server.tool
        async def get_package_info(
            ctx: Context,
            package_name: Annotated[
                str, Field(description="npm 패키지 이름 (예: lodash, @types/node)")
            ],
            include_dependencies: Annotated[
                bool, Field(description="dependencies 포함 여부")
            ] = True,
            include_dev_dependencies: Annotated[
                bool, Field(description="devDependencies 포함 여부")
            ] = False,
        ) -> Dict[str, Any]:
            """
            npm 패키지의 최신 버전 메타데이터 조회

            작성자, 라이선스, 키워드, 의존성, 다운로드 통계, 저장소 정보를 반환합니다.
            """
            return await self.run_tool(
                "get_package_info",
                {
                    "package_name": package_name,
                    "include_dependencies": include_dependencies,
                    "include_dev_dependencies": include_dev_dependencies,
                },
                ctx,
            )

        @server.tool
        async def search_packages(
            ctx: Context,
            query: Annotated[str, Field(description="검색어 (최대 250자)")],
            limit: Annotated[
                Union[int, float], Field(description="최대 결과 수 (1~250, 기본값: 20)")
            ] = 20,
            quality: Annotated[
                Optional[float], Field(description="최소 품질 점수 (0~1)")
            ] = None,
            popularity: Annotated[
                Optional[float], Field(description="최소 인기도 점수 (0~1)")
            ] = None,
        ) -> Dict[str, Any]:
            """
            npm 레지스트리 패키지 검색

            quality/popularity를 지정하면 해당 점수 이상인 패키지만 반환합니다.
            """
            arguments: Dict[str, Any] = {"query": query, "limit": limit}
            if quality is not None:
                arguments["quality"] = quality
            if popularity is not None:
                arguments["popularity"] = popularity
            return await self.run_tool("search_packages", arguments, ctx)

        @server.tool
        async def health_check(ctx: Context) -> Dict[str, Any]:
            """서버와 업스트림(npm, GitHub) 클라이언트 상태 확인"""
            emoji = "🏥" if self.use_emoji else ""
            await ctx.info(f"{emoji} 건강 상태 검사 수행 중...")
            return await self.health_status()

        # 캐싱이 활성화된 경우 캐시 관리 도구
        if self.config.features["cache"]:

            @server.tool
            async def cache_stats(ctx: Context) -> Dict[str, Any]:
                """인메모리 캐시 통계 (항목 수, 추정 메모리 사용량)"""
                if self.cache is None:
                    raise ToolError("캐시를 사용할 수 없습니다")
                return self.cache.stats().model_dump()

            @server.tool
            async def clear_cache(ctx: Context) -> Dict[str, Any]:
                """인메모리 캐시의 모든 항목 삭제"""
                if self.cache is None:
                    raise ToolError("캐시를 사용할 수 없습니다")

                cleared = self.cache.size()
                self.cache.clear()

                emoji = "🗑️" if self.use_emoji else ""
                await ctx.info(f"{emoji} 캐시 {cleared}개 항목 삭제")
                return {"cleared": cleared}


async def main():
    """메인 실행 함수 (비동기)"""
    # 설정 로드
    config = ServerConfig.from_env()
    configure_logging(config.logging_config)

    is_valid, errors = validate_config(config)
    if not is_valid:
        logger.error("설정 검증 실패", errors=errors)
        raise ValueError(f"잘못된 설정: {', '.join(errors)}")

    logger.info(
        "npm README MCP 서버 시작",
        transport=config.transport,
        port=config.port,
        features=config.get_enabled_features()
    )

    # 서버 생성
    npm_server = NpmReadmeServer(config)
    mcp = npm_server.create_server()

    # 프로세스 전체 구간에서 컴포넌트 유지 (세션 lifespan은 참조만 추가)
    async with npm_server.running():
        if config.transport == "http":
            logger.info(f"HTTP 모드로 서버 시작 - http://0.0.0.0:{config.port}/mcp")
            await mcp.run_async(
                transport="http",
                host="0.0.0.0",
                port=config.port,
                path="/mcp",
                log_level=config.logging_config.log_level.lower()
            )
        else:
            await mcp.run_async(transport="stdio")


def run():
    """콘솔 스크립트 진입점"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
