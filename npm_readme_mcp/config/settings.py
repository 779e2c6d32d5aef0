"""
서버 설정 클래스

npm README MCP 서버의 모든 설정을 관리하는 클래스입니다.
모든 설정은 환경 변수에서 로드되며 기능 플래그로 컴포넌트를 켜고 끕니다.

주요 기능:
    - 환경 변수를 통한 세밀한 제어
    - 기능 플래그 시스템 (MCP_ENABLE_<FEATURE>)
    - 컴포넌트별 설정 (캐시, 업스트림, 로깅)
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import structlog

logger = structlog.get_logger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class CacheConfig:
    """
    캐싱 설정

    인메모리 캐시의 용량과 도구별 TTL을 정의합니다.
    모든 시간 값은 밀리초 단위이며, 검색 결과는 패키지 메타데이터보다
    짧은 TTL을 사용합니다.
    """

    default_ttl_ms: int = 3_600_000  # 1시간
    max_size_bytes: int = 104_857_600  # 100MB
    cleanup_interval_seconds: int = 300  # 5분
    ttl_package_info_ms: int = 3_600_000  # 1시간
    ttl_readme_ms: int = 3_600_000  # 1시간
    ttl_search_ms: int = 600_000  # 10분 (검색 결과)
    ttl_download_stats_ms: int = 3_600_000  # 1시간

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """환경 변수에서 캐시 설정 로드"""
        return cls(
            default_ttl_ms=int(os.getenv("CACHE_DEFAULT_TTL_MS", "3600000")),
            max_size_bytes=int(os.getenv("CACHE_MAX_SIZE_BYTES", "104857600")),
            cleanup_interval_seconds=int(
                os.getenv("CACHE_CLEANUP_INTERVAL_SECONDS", "300")
            ),
            ttl_package_info_ms=int(os.getenv("CACHE_TTL_PACKAGE_INFO_MS", "3600000")),
            ttl_readme_ms=int(os.getenv("CACHE_TTL_README_MS", "3600000")),
            ttl_search_ms=int(os.getenv("CACHE_TTL_SEARCH_MS", "600000")),
            ttl_download_stats_ms=int(
                os.getenv("CACHE_TTL_DOWNLOAD_STATS_MS", "3600000")
            ),
        )


@dataclass
class UpstreamConfig:
    """
    업스트림 API 설정

    npm 레지스트리, npm 다운로드 API, GitHub API의 주소와
    HTTP 클라이언트 동작(타임아웃, 재시도)을 정의합니다.
    """

    npm_registry_url: str = "https://registry.npmjs.org"
    npm_search_url: str = "https://registry.npmjs.org/-/v1/search"
    npm_downloads_url: str = "https://api.npmjs.org/downloads"
    github_api_url: str = "https://api.github.com"
    github_token: Optional[str] = None
    timeout_seconds: float = 30.0
    max_retries: int = 3
    user_agent: str = "npm-readme-mcp/1.0.0"

    @classmethod
    def from_env(cls) -> "UpstreamConfig":
        """환경 변수에서 업스트림 설정 로드"""
        return cls(
            npm_registry_url=os.getenv("NPM_REGISTRY_URL", "https://registry.npmjs.org"),
            npm_search_url=os.getenv(
                "NPM_SEARCH_URL", "https://registry.npmjs.org/-/v1/search"
            ),
            npm_downloads_url=os.getenv(
                "NPM_DOWNLOADS_URL", "https://api.npmjs.org/downloads"
            ),
            github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
            github_token=os.getenv("GITHUB_TOKEN") or None,
            timeout_seconds=float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30")),
            max_retries=int(os.getenv("UPSTREAM_MAX_RETRIES", "3")),
            user_agent=os.getenv("UPSTREAM_USER_AGENT", "npm-readme-mcp/1.0.0"),
        )


@dataclass
class LoggingConfig:
    """
    로깅 설정

    구조화된 로깅과 디버깅을 위한 설정입니다.
    로그는 항상 stderr로 출력됩니다 (stdout은 stdio 전송 채널).
    """

    log_level: str = "INFO"
    log_format: str = "console"  # console or json
    use_emoji: bool = True
    sensitive_fields: list[str] = field(
        default_factory=lambda: ["token", "api_key", "secret", "auth"]
    )

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """환경 변수에서 로깅 설정 로드"""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
            use_emoji=_env_bool("USE_EMOJI", "true"),
            sensitive_fields=os.getenv(
                "SENSITIVE_FIELDS", "token,api_key,secret,auth"
            ).split(","),
        )


@dataclass
class ServerConfig:
    """
    통합 서버 설정

    MCP 서버의 모든 설정을 관리하는 메인 클래스입니다.

    사용 예시:
        # 환경 변수 기반 생성
        config = ServerConfig.from_env()

        # 특정 기능 활성화/비활성화
        config.features["cache"] = False
    """

    # 기본 설정
    name: str = "npm-readme-mcp"
    transport: str = "stdio"  # stdio or http
    port: int = 8001

    # 기능 플래그
    features: Dict[str, bool] = field(
        default_factory=lambda: {
            "cache": True,  # 인메모리 응답 캐싱
            "error_handler": True,  # 에러 처리 미들웨어
            "enhanced_logging": True,  # 도구 호출 로깅 미들웨어
            "download_stats": True,  # npm 다운로드 통계 조회
        }
    )

    # 컴포넌트별 설정
    cache_config: CacheConfig = field(default_factory=CacheConfig)
    upstream_config: UpstreamConfig = field(default_factory=UpstreamConfig)
    logging_config: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        환경 변수에서 설정 로드

        개별 MCP_ENABLE_* 환경 변수로 기능을 오버라이드할 수 있습니다.

        Returns:
            환경 변수 기반 ServerConfig 인스턴스
        """
        config = cls(
            cache_config=CacheConfig.from_env(),
            upstream_config=UpstreamConfig.from_env(),
            logging_config=LoggingConfig.from_env(),
        )

        # 기본 설정 오버라이드
        config.name = os.getenv("MCP_SERVER_NAME", config.name)
        config.transport = os.getenv("MCP_TRANSPORT", config.transport)
        config.port = int(os.getenv("MCP_SERVER_PORT", str(config.port)))

        # 개별 기능 오버라이드
        for feature in config.features:
            env_key = f"MCP_ENABLE_{feature.upper()}"
            if env_value := os.getenv(env_key):
                config.features[feature] = env_value.lower() == "true"
                logger.debug(
                    f"기능 오버라이드: {feature}={config.features[feature]}",
                    env_key=env_key,
                    env_value=env_value,
                )

        logger.info(
            "환경 변수 기반 설정 로드 완료",
            transport=config.transport,
            features=config.get_enabled_features(),
        )

        return config

    def get_enabled_features(self) -> list[str]:
        """활성화된 기능 목록 반환"""
        return [feature for feature, enabled in self.features.items() if enabled]

    def validate(self) -> tuple[bool, list[str]]:
        """
        설정 유효성 검증

        Returns:
            (유효 여부, 오류 메시지 목록)
        """
        errors = []

        if self.transport not in ("stdio", "http"):
            errors.append(f"지원되지 않는 전송 모드: {self.transport}")

        # 포트 범위 검증
        if self.transport == "http":
            if not (1 <= self.port <= 65535):
                errors.append(f"잘못된 포트 번호: {self.port}")

        if self.features.get("cache") and self.cache_config.max_size_bytes <= 0:
            errors.append("캐싱이 활성화되었지만 CACHE_MAX_SIZE_BYTES가 0 이하")

        if not self.upstream_config.github_token:
            logger.warning("GitHub 토큰이 설정되지 않음 - 비인증 요청 한도 적용")

        return len(errors) == 0, errors

    def to_dict(self) -> dict[str, Any]:
        """설정을 딕셔너리로 변환 (토큰은 마스킹)"""
        upstream = dict(self.upstream_config.__dict__)
        if upstream.get("github_token"):
            upstream["github_token"] = "***"

        return {
            "name": self.name,
            "transport": self.transport,
            "port": self.port,
            "features": self.features,
            "cache_config": self.cache_config.__dict__,
            "upstream_config": upstream,
            "logging_config": self.logging_config.__dict__,
        }
