# wiki_chat/cache/service.py
import asyncio
import json
import logging
import re
import threading
import time
from typing import Any, Callable, Dict, Optional

from .domains import CacheEntry, CacheStats
from .settings import CacheSettings

logger = logging.getLogger(__name__)


class TTLCache:
    """TTL 기반 인메모리 캐시 - 여러 요청이 공유하는 프로세스 단일 인스턴스"""

    def __init__(
        self,
        settings: CacheSettings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._default_ttl_ms = settings.CACHE_DEFAULT_TTL_MS
        self._max_size = settings.CACHE_MAX_SIZE
        self._cleanup_interval_ms = settings.CACHE_CLEANUP_INTERVAL_MS
        self._clock = clock

        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._cleanup_task: Optional[asyncio.Task] = None

    def _now_ms(self) -> float:
        return self._clock() * 1000

    # === 조회/저장 ===
    def get(self, key: str) -> Optional[Any]:
        """값 조회 (만료 항목은 삭제 후 miss 처리)"""
        now = self._now_ms()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._store[key]
                self._misses += 1
                return None
            entry.hit_count += 1
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """값 저장 (ttl 단위: ms)"""
        ttl_ms = self._default_ttl_ms if ttl is None else ttl
        if ttl_ms <= 0:
            raise ValueError(f"ttl must be positive, got {ttl_ms}")

        now = self._now_ms()
        with self._lock:
            self._store[key] = CacheEntry(
                value=value,
                created_at=now,
                expires_at=now + ttl_ms,
            )
            self._enforce_max_size()

    def has(self, key: str) -> bool:
        now = self._now_ms()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False
            if entry.is_expired(now):
                del self._store[key]
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0

    def invalidate_pattern(self, pattern: str) -> int:
        """정규식에 맞는 키 일괄 삭제"""
        regex = re.compile(pattern)
        with self._lock:
            matched = [key for key in self._store if regex.search(key)]
            for key in matched:
                del self._store[key]
        if matched:
            logger.info(f"Invalidated {len(matched)} cache entries matching '{pattern}'")
        return len(matched)

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                hit_rate=self._hits / total if total else 0.0,
                size=len(self._store),
                max_size=self._max_size,
            )

    # === 정리 ===
    def cleanup(self) -> int:
        """만료 항목 제거 후 제거 개수 반환"""
        now = self._now_ms()
        with self._lock:
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
        if expired:
            logger.debug(f"Cache cleanup removed {len(expired)} expired entries")
        return len(expired)

    def _enforce_max_size(self) -> None:
        # 락을 잡은 상태에서만 호출
        overflow = len(self._store) - self._max_size
        if overflow <= 0:
            return
        oldest = sorted(self._store.items(), key=lambda item: item[1].created_at)[:overflow]
        for key, _ in oldest:
            del self._store[key]

    # === 생명주기 ===
    def start_cleanup(self) -> None:
        """실행 중인 이벤트 루프에 주기적 정리 작업 등록"""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(self._cleanup_loop())
        logger.info(f"Cache cleanup scheduled every {self._cleanup_interval_ms}ms")

    async def stop_cleanup(self) -> None:
        """정리 작업 취소"""
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Cache cleanup stopped")

    async def _cleanup_loop(self) -> None:
        interval = self._cleanup_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            # 요청 처리 루프를 막지 않도록 워커 스레드에서 정리
            await asyncio.to_thread(self.cleanup)


def _serialize_param(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


def generate_cache_key(namespace: str, params: Optional[Dict[str, Any]] = None) -> str:
    """네임스페이스와 파라미터로 결정적 캐시 키 생성"""
    if not params:
        return namespace
    parts = [f"{key}={_serialize_param(params[key])}" for key in sorted(params)]
    return f"{namespace}:" + ":".join(parts)
