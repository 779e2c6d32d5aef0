"""
인메모리 응답 캐시

이 모듈은 도구 응답을 프로세스 메모리에 보관하는 TTL 및 크기 제한
캐시를 구현합니다. npm 레지스트리와 GitHub에 대한 중복 호출을 줄이는
것이 목적입니다.

주요 기능:
    - 항목별 TTL(밀리초)과 저장소 전체 기본 TTL
    - 직렬화 크기 기반의 대략적인 메모리 사용량 추적
    - 크기 초과 시 가장 오래 접근하지 않은 항목 1개 제거 (LRU-by-touch)
    - 읽기/존재 확인 시 지연 만료 검사
    - asyncio 태스크 기반의 주기적 만료 정리 (기본 5분)

만료 규칙:
    now - stored_at > ttl 이면 만료된 것으로 간주하고 없는 항목처럼
    취급합니다. get()이 성공하면 stored_at이 갱신되므로 읽기는 항목의
    수명을 연장합니다.

퇴출 정책:
    삽입으로 전체 크기가 최대치를 넘게 되면 stored_at이 가장 작은 항목을
    정확히 하나만 제거한 뒤, 그것으로 충분한지와 관계없이 삽입을 진행합니다.
    따라서 저장소는 일시적으로 항목 하나 크기만큼 최대치를 넘을 수 있습니다.

동시성:
    모든 연산은 동기식이며 중간에 await하지 않습니다. 인스턴스별
    threading.RLock이 맵과 크기 계산을 보호하므로 정리 태스크나 다른
    스레드와 섞여 실행되어도 상태가 손상되지 않습니다.

의존성:
    - pydantic: 설정 및 통계 모델
    - structlog: 구조화된 로깅
"""

import asyncio
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field
import structlog

# 모듈별 구조화된 로거
logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


def _wall_clock_ms() -> float:
    return time.time() * 1000


class MemoryCacheConfig(BaseModel):
    """
    메모리 캐시 설정 모델

    Attributes:
        default_ttl_ms (int): 기본 만료 시간 (밀리초, 기본 1시간)
        max_size_bytes (int): 추정 메모리 사용량 상한 (기본 100MB)
        cleanup_interval_seconds (float): 주기적 정리 간격 (기본 5분)
        metadata_overhead (int): 항목당 고정 부가 비용 (타임스탬프, TTL 등)
    """

    default_ttl_ms: int = Field(default=3_600_000, gt=0)
    max_size_bytes: int = Field(default=104_857_600, gt=0)
    cleanup_interval_seconds: float = Field(default=300, gt=0)
    metadata_overhead: int = Field(default=24, ge=0)


class CacheStats(BaseModel):
    """캐시 통계 (항목 수와 추정 메모리 사용량)"""

    size: int
    estimated_memory_bytes: int
    max_size_bytes: int


@dataclass
class CacheEntry:
    """
    캐시 항목

    size는 삽입 시 한 번 계산되어 보관되며, 같은 키로 재삽입되면
    새 값 기준으로 다시 계산됩니다.
    """

    key: str
    value: Any
    stored_at: float
    ttl: int
    size: int

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


class MemoryCache:
    """
    TTL 및 크기 제한이 있는 인메모리 캐시

    서버 lifespan이 인스턴스를 생성하고 소유하며, 종료 시 destroy()를
    호출합니다. 전역 싱글톤을 사용하지 않고 필요한 곳에 주입합니다.

    사용 예시:
        ```python
        async with MemoryCache(MemoryCacheConfig(default_ttl_ms=60_000)) as cache:
            cache.set("pkg_info:lodash:latest", response)
            cached = cache.get("pkg_info:lodash:latest")
        ```

    저장된 값이 None이면 get()의 결과와 구분할 수 없으므로, None 대신
    has()를 사용하거나 None을 저장하지 않아야 합니다.

    Attributes:
        config (MemoryCacheConfig): 캐시 설정
        _entries (dict): 키별 캐시 항목 (삽입 순서 유지)
        _total_size (int): 모든 항목의 추정 크기 합계
        _sweep_task (asyncio.Task): 주기적 만료 정리 태스크
    """

    def __init__(
        self,
        config: Optional[MemoryCacheConfig] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            config: 캐시 설정 (기본값 사용 시 None)
            clock: 현재 시각을 밀리초로 반환하는 함수 (테스트용 주입)
        """
        self.config = config or MemoryCacheConfig()
        self._clock = clock or _wall_clock_ms
        self._entries: Dict[str, CacheEntry] = {}
        self._total_size = 0
        self._lock = threading.RLock()
        self._sweep_task: Optional[asyncio.Task] = None
        self._destroyed = False

        # 실행 중인 이벤트 루프가 있으면 바로 정리 태스크 시작
        self._ensure_sweeper()

    # ------------------------------------------------------------------
    # 공개 API
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        값을 저장하거나 기존 항목을 교체합니다.

        삽입 후 전체 크기가 최대치를 넘게 되면 가장 오래 접근하지 않은
        항목 하나를 먼저 제거합니다. 큰 값이라도 삽입을 거부하지 않습니다.

        Args:
            key: 캐시 키
            value: 저장할 값 (JSON 직렬화 크기로 용량 추정)
            ttl: 만료 시간 (밀리초). 없거나 0이면 기본 TTL 사용
        """
        entry_size = self._estimate_size(key, value)

        with self._lock:
            self._ensure_sweeper()

            if self._total_size + entry_size > self.config.max_size_bytes:
                self._evict_least_recently_used()

            previous = self._entries.pop(key, None)
            if previous is not None:
                self._total_size -= previous.size

            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                stored_at=self._clock(),
                ttl=ttl or self.config.default_ttl_ms,
                size=entry_size,
            )
            self._total_size += entry_size

        logger.debug("캐시 저장", key=key, size=entry_size, ttl=ttl or self.config.default_ttl_ms)

    def get(self, key: str) -> Optional[Any]:
        """
        값을 조회합니다.

        없거나 만료된 경우 None을 반환하며, 만료된 항목은 함께 제거합니다.
        유효한 항목이면 stored_at을 현재 시각으로 갱신합니다.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("캐시 미스", key=key)
                return None

            now = self._clock()
            if entry.is_expired(now):
                self._remove(key)
                logger.debug("캐시 항목 만료", key=key)
                return None

            entry.stored_at = now
            value = entry.value

        logger.debug("캐시 히트", key=key)
        return value

    def has(self, key: str) -> bool:
        """존재 여부 확인. 만료 항목은 제거하지만 stored_at은 갱신하지 않습니다."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._remove(key)
                logger.debug("캐시 항목 만료", key=key)
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._remove(key)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._total_size = 0
        logger.info("캐시 전체 삭제", removed=count)

    def size(self) -> int:
        """현재 항목 수 (아직 정리되지 않은 만료 항목 포함)"""
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                estimated_memory_bytes=self._total_size,
                max_size_bytes=self.config.max_size_bytes,
            )

    def cleanup(self) -> int:
        """
        만료된 항목을 모두 제거합니다.

        주기적 정리 태스크의 본문이며 직접 호출할 수도 있습니다.

        Returns:
            int: 제거된 항목 수
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                self._remove(key)

        if expired:
            logger.debug("만료 항목 정리", removed=len(expired))
        return len(expired)

    def destroy(self) -> None:
        """
        정리 태스크를 중지하고 모든 항목을 제거합니다.

        여러 번 호출해도 안전합니다. 호출 이후에는 인스턴스를 사용하지 않아야 합니다.
        """
        if self._destroyed:
            return
        self._destroyed = True

        if self._sweep_task is not None and not self._sweep_task.done():
            self._sweep_task.cancel()

        with self._lock:
            self._entries.clear()
            self._total_size = 0

        logger.info("메모리 캐시 종료")

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def __aenter__(self) -> "MemoryCache":
        self._ensure_sweeper()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        task = self._sweep_task
        self.destroy()
        if task is not None:
            # 취소된 정리 태스크가 완전히 끝날 때까지 대기
            await asyncio.gather(task, return_exceptions=True)

    # ------------------------------------------------------------------
    # 내부 구현
    # ------------------------------------------------------------------

    def _remove(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        self._total_size -= entry.size
        return True

    def _evict_least_recently_used(self) -> None:
        if not self._entries:
            return
        # min()은 동률일 때 먼저 만난 항목(가장 먼저 삽입된 항목)을 반환
        oldest = min(self._entries.values(), key=lambda entry: entry.stored_at)
        self._remove(oldest.key)
        logger.debug("LRU 항목 퇴출", key=oldest.key, size=oldest.size)

    def _estimate_size(self, key: str, value: Any) -> int:
        """2 * len(key) + 2 * len(json(value)) + 고정 부가 비용"""
        try:
            serialized = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            # 순환 참조 등 직렬화 불가능한 값은 repr 길이로 추정
            serialized = repr(value)
        return len(key) * 2 + len(serialized) * 2 + self.config.metadata_overhead

    def _ensure_sweeper(self) -> None:
        if self._destroyed or self._sweep_task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # 이벤트 루프 밖에서 생성된 경우 첫 set() 호출 시 시작
            return
        self._sweep_task = loop.create_task(self._sweep_loop())

    async def _sweep_loop(self) -> None:
        interval = self.config.cleanup_interval_seconds
        logger.debug("캐시 정리 태스크 시작", interval_seconds=interval)
        while True:
            try:
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                logger.debug("캐시 정리 태스크 중지")
                raise
            self.cleanup()
