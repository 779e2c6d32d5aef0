"""
인메모리 캐시 통합 테스트

실제 이벤트 루프와 시계를 사용하여 주기적 만료 정리 태스크의
시작, 동작, 종료를 검증합니다.
"""

import asyncio

import pytest

from npm_readme_mcp.cache import MemoryCache, MemoryCacheConfig

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


def short_lived_config(**overrides) -> MemoryCacheConfig:
    values = {"default_ttl_ms": 20, "cleanup_interval_seconds": 0.05}
    values.update(overrides)
    return MemoryCacheConfig(**values)


async def test_sweeper_removes_expired_entries():
    """만료된 항목은 읽지 않아도 정리 태스크가 제거"""
    async with MemoryCache(short_lived_config()) as cache:
        cache.set("pkg_info:lodash:latest", {"exists": True})
        cache.set("pkg_readme:lodash:latest", {"exists": True}, ttl=60_000)

        await asyncio.sleep(0.2)

        # size()는 만료 검사를 하지 않으므로 정리 태스크가 실행된 경우에만 1
        assert cache.size() == 1
        assert cache.has("pkg_readme:lodash:latest")


async def test_context_exit_cancels_sweeper():
    cache = MemoryCache(short_lived_config())
    async with cache:
        task = cache._sweep_task
        assert task is not None and not task.done()

    assert task.cancelled()
    assert cache.destroyed
    assert cache.size() == 0


async def test_destroy_is_idempotent():
    cache = MemoryCache(short_lived_config())
    cache.set("search:react:20", {"total": 0})

    cache.destroy()
    cache.destroy()

    assert cache.destroyed
    assert cache.size() == 0


async def test_sweeper_starts_lazily():
    """루프 밖에서 생성된 캐시는 첫 set()에서 정리 태스크를 시작"""

    def build_cache() -> MemoryCache:
        return MemoryCache(short_lived_config())

    cache = await asyncio.get_running_loop().run_in_executor(None, build_cache)
    try:
        assert cache._sweep_task is None

        cache.set("stats:lodash:all", {"last_day": 1})

        assert cache._sweep_task is not None
    finally:
        cache.destroy()


async def test_no_sweeper_after_destroy():
    cache = await asyncio.get_running_loop().run_in_executor(
        None, lambda: MemoryCache(short_lived_config())
    )
    cache.destroy()

    cache.set("pkg_info:lodash:latest", {"exists": True})

    assert cache._sweep_task is None
    cache.destroy()
