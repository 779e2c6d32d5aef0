"""
응답 캐싱 모듈

npm README MCP 서버의 도구 응답을 프로세스 메모리에 캐싱합니다.

주요 컴포넌트:
    MemoryCache: TTL 및 크기 제한이 있는 인메모리 캐시
        - 항목별 TTL과 지연 만료 검사
        - 크기 초과 시 LRU 항목 1개 퇴출
        - asyncio 태스크 기반 주기적 정리

    MemoryCacheConfig: 캐시 설정 모델
    CacheStats: 항목 수와 추정 메모리 사용량

    keys: 요청별 캐시 키 생성 함수

사용 예시:
    ```python
    from npm_readme_mcp.cache import MemoryCache, package_info_key

    cache = MemoryCache()
    key = package_info_key("lodash", "latest")
    cache.set(key, response, ttl=60_000)
    cached = cache.get(key)
    cache.destroy()
    ```
"""

from .keys import (
    download_stats_key,
    package_info_key,
    package_readme_key,
    search_results_key,
)
from .memory_cache import CacheEntry, CacheStats, MemoryCache, MemoryCacheConfig

__all__ = [
    "MemoryCache",
    "MemoryCacheConfig",
    "CacheEntry",
    "CacheStats",
    "package_info_key",
    "package_readme_key",
    "search_results_key",
    "download_stats_key",
]
