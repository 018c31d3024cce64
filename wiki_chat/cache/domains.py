# wiki_chat/cache/domains.py
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """캐시 항목 (시각은 단조 시계 기준 ms)"""
    value: Any
    created_at: float
    expires_at: float
    hit_count: int = 0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """캐시 통계"""
    hits: int
    misses: int
    hit_rate: float
    size: int
    max_size: int

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "size": self.size,
            "max_size": self.max_size,
        }
