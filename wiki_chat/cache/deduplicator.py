# wiki_chat/cache/deduplicator.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from .service import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestDeduplicator:
    """동일 키에 대한 동시 요청을 하나의 업스트림 호출로 합침

    이벤트 루프 안에서만 사용한다. 조회와 등록 사이에 await 가 없으므로
    같은 키의 호출 시작은 직렬화되고, 서로 다른 키는 병렬로 진행된다.
    """

    def __init__(self):
        self._pending: Dict[str, asyncio.Task] = {}

    async def deduplicate(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._release(key, done))
        else:
            logger.debug(f"Joining in-flight request: {key}")

        # 대기자 하나가 취소돼도 공유 호출은 계속 진행
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # 모든 대기자가 취소된 경우 예외가 회수되지 않은 채 남지 않도록 확인
        if not task.cancelled():
            task.exception()

    def size(self) -> int:
        return len(self._pending)

    def clear(self) -> None:
        self._pending.clear()


async def cached_fetch(
    cache: TTLCache,
    deduplicator: RequestDeduplicator,
    key: str,
    loader: Callable[[], Awaitable[T]],
    ttl: Optional[int] = None,
) -> T:
    """캐시 조회 후 없으면 중복 제거된 로더 실행 (실패는 캐시하지 않음)"""
    cached = cache.get(key)
    if cached is not None:
        return cached

    async def load_and_store() -> Any:
        value = await loader()
        cache.set(key, value, ttl)
        return value

    return await deduplicator.deduplicate(key, load_and_store)
