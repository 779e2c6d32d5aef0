"""
설정 검증 모듈

서버 설정의 유효성을 검증하고 일관성을 보장합니다.

주요 기능:
    - 기본 설정 검증 (이름, 전송 모드, 포트)
    - 캐시 용량 및 TTL 검증
    - 업스트림 URL 및 타임아웃 검증
"""

import re
from typing import List, Tuple
import structlog

from .settings import ServerConfig

logger = structlog.get_logger(__name__)

# TTL 상한 (밀리초, 1일)
MAX_TTL_MS = 86_400_000


def validate_config(config: ServerConfig) -> Tuple[bool, List[str]]:
    """
    전체 설정 검증

    Args:
        config: 검증할 서버 설정

    Returns:
        (유효 여부, 오류 메시지 목록)
    """
    errors = []

    # 기본 검증
    errors.extend(_validate_basic_settings(config))

    # 기능별 검증
    if config.features.get("cache"):
        errors.extend(_validate_cache_settings(config))

    errors.extend(_validate_upstream_settings(config))
    errors.extend(_validate_logging_settings(config))

    is_valid = len(errors) == 0

    if not is_valid:
        logger.error(
            "설정 검증 실패",
            error_count=len(errors),
            errors=errors[:5],  # 처음 5개만 로깅
        )
    else:
        logger.info("설정 검증 성공")

    return is_valid, errors


def _validate_basic_settings(config: ServerConfig) -> List[str]:
    """기본 설정 검증"""
    errors = []

    # 서버 이름 검증
    if not config.name or not config.name.strip():
        errors.append("서버 이름이 비어있음")
    elif not re.match(r"^[a-zA-Z0-9_-]+$", config.name):
        errors.append(f"잘못된 서버 이름 형식: {config.name}")

    # 전송 모드 검증
    if config.transport not in ["stdio", "http"]:
        errors.append(f"지원되지 않는 전송 모드: {config.transport}")

    # HTTP 모드 포트 검증
    if config.transport == "http":
        if not (1 <= config.port <= 65535):
            errors.append(f"잘못된 포트 번호: {config.port}")
        elif config.port < 1024:
            errors.append(f"권한이 필요한 포트: {config.port} (1024 이상 권장)")

    return errors


def _validate_cache_settings(config: ServerConfig) -> List[str]:
    """캐시 설정 검증"""
    errors = []
    cache = config.cache_config

    if cache.max_size_bytes <= 0:
        errors.append(f"잘못된 캐시 최대 크기: {cache.max_size_bytes}")

    if cache.cleanup_interval_seconds <= 0:
        errors.append(f"잘못된 캐시 정리 간격: {cache.cleanup_interval_seconds}")

    # TTL 검증
    ttl_settings = {
        "기본": cache.default_ttl_ms,
        "패키지 정보": cache.ttl_package_info_ms,
        "README": cache.ttl_readme_ms,
        "검색": cache.ttl_search_ms,
        "다운로드 통계": cache.ttl_download_stats_ms,
    }

    for name, ttl in ttl_settings.items():
        if ttl <= 0:
            errors.append(f"{name} TTL이 0 이하: {ttl}")
        elif ttl > MAX_TTL_MS:
            errors.append(f"{name} TTL이 너무 긴 ({ttl}ms, 최대 1일)")

    if cache.ttl_search_ms > cache.ttl_package_info_ms:
        logger.warning(
            "검색 TTL이 패키지 정보 TTL보다 김",
            ttl_search_ms=cache.ttl_search_ms,
            ttl_package_info_ms=cache.ttl_package_info_ms,
        )

    return errors


def _validate_upstream_settings(config: ServerConfig) -> List[str]:
    """업스트림 설정 검증"""
    errors = []
    upstream = config.upstream_config

    urls = {
        "NPM_REGISTRY_URL": upstream.npm_registry_url,
        "NPM_SEARCH_URL": upstream.npm_search_url,
        "NPM_DOWNLOADS_URL": upstream.npm_downloads_url,
        "GITHUB_API_URL": upstream.github_api_url,
    }
    for name, url in urls.items():
        if not url.startswith(("http://", "https://")):
            errors.append(f"잘못된 {name} 형식: {url}")

    if upstream.timeout_seconds <= 0:
        errors.append(f"잘못된 업스트림 타임아웃: {upstream.timeout_seconds}")

    if upstream.max_retries < 0:
        errors.append(f"잘못된 재시도 횟수: {upstream.max_retries}")

    return errors


def _validate_logging_settings(config: ServerConfig) -> List[str]:
    """로깅 설정 검증"""
    errors = []
    logging_config = config.logging_config

    if logging_config.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"잘못된 로그 레벨: {logging_config.log_level}")

    if logging_config.log_format not in ("console", "json"):
        errors.append(f"지원되지 않는 로그 형식: {logging_config.log_format}")

    return errors
