# wiki_chat/rate_limit/service.py
import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from .domains import RateLimitResult
from .settings import RateLimitSettings

logger = logging.getLogger(__name__)


class RateLimiter:
    """사용자별 슬라이딩 윈도우 요청 제한"""

    def __init__(
        self,
        settings: RateLimitSettings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = settings.RATE_LIMIT_MAX_REQUESTS
        self.window_ms = settings.RATE_LIMIT_WINDOW_MS
        self._clock = clock
        self._events: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = self._now_ms()

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _prune(self, key: str, now: float) -> Deque[float]:
        events = self._events.get(key)
        if events is None:
            return deque()
        while events and now - events[0] >= self.window_ms:
            events.popleft()
        if not events:
            del self._events[key]
        return events

    def check_limit(self, user_key: str) -> RateLimitResult:
        """요청 허용 여부 확인 (허용 시 타임스탬프 기록)"""
        now = self._now_ms()
        with self._lock:
            # 한 윈도우가 지날 때마다 요청이 끊긴 키까지 정리
            if abs(now - self._last_sweep) >= self.window_ms:
                self._sweep(now)
            events = self._prune(user_key, now)

            if len(events) < self.max_requests:
                events.append(now)
                self._events[user_key] = events
                return RateLimitResult(
                    allowed=True,
                    remaining=self.max_requests - len(events),
                    wait_time_ms=0,
                )

            wait_time_ms = max(0, math.ceil(events[0] + self.window_ms - now))

        logger.warning(f"Rate limit exceeded for {user_key}, retry in {wait_time_ms}ms")
        return RateLimitResult(allowed=False, remaining=0, wait_time_ms=wait_time_ms)

    def get_count(self, user_key: str) -> int:
        """현재 윈도우 안의 요청 수"""
        with self._lock:
            return len(self._prune(user_key, self._now_ms()))

    def reset(self, user_key: str) -> None:
        with self._lock:
            self._events.pop(user_key, None)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def cleanup(self) -> int:
        """윈도우가 비어 있는 사용자 키 정리

        Returns:
            삭제된 키 수
        """
        with self._lock:
            removed = self._sweep(self._now_ms())
        if removed:
            logger.debug(f"Rate limiter cleanup removed {removed} idle keys")
        return removed

    def _sweep(self, now: float) -> int:
        # 호출자가 lock 을 잡은 상태여야 함
        before = len(self._events)
        for key in list(self._events):
            self._prune(key, now)
        self._last_sweep = now
        return before - len(self._events)
