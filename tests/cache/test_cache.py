# tests/cache/test_cache.py
import asyncio

import pytest

from wiki_chat.cache.service import TTLCache, generate_cache_key
from wiki_chat.cache.settings import CacheSettings


class TestTTLCache:
    """TTLCache 테스트"""

    def test_set_then_get_returns_value(self, cache: TTLCache):
        """저장 직후 조회"""
        cache.set("key", "value", ttl=1000)
        assert cache.get("key") == "value"

    def test_expired_entry_is_miss(self, cache: TTLCache, fake_clock):
        """TTL 경과 후 조회는 None 이고 miss 로 집계"""
        # given
        cache.set("key", "value", ttl=1000)

        # when
        fake_clock.advance_ms(1001)

        # then
        assert cache.get("key") is None
        stats = cache.get_stats()
        assert stats.misses == 1
        assert stats.hits == 0

    def test_cleanup_removes_expired_entries(self, cache: TTLCache, fake_clock):
        """만료 항목 정리 후 size 에서 제외"""
        # given
        cache.set("short", 1, ttl=1000)
        cache.set("long", 2, ttl=10_000)
        fake_clock.advance_ms(1500)

        # when
        removed = cache.cleanup()

        # then
        assert removed == 1
        assert cache.size() == 1
        assert cache.has("short") is False
        assert cache.get("long") == 2

    def test_has_and_delete(self, cache: TTLCache):
        cache.set("key", "value")
        assert cache.has("key") is True
        assert cache.delete("key") is True
        assert cache.has("key") is False
        assert cache.delete("key") is False

    def test_clear(self, cache: TTLCache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")

        cache.clear()

        assert cache.size() == 0
        assert cache.get_stats().hits == 0

    def test_invalidate_pattern(self, cache: TTLCache):
        """정규식에 맞는 키만 삭제"""
        cache.set("wiki:retrieve:query=a", 1)
        cache.set("wiki:retrieve:query=b", 2)
        cache.set("wiki:categories", 3)

        removed = cache.invalidate_pattern(r"^wiki:retrieve")

        assert removed == 2
        assert cache.get("wiki:categories") == 3
        assert cache.size() == 1

    def test_stats_hit_rate(self, cache: TTLCache):
        cache.set("key", "value")
        cache.get("key")
        cache.get("key")
        cache.get("missing")

        stats = cache.get_stats()

        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.hit_rate == pytest.approx(2 / 3)
        assert stats.size == 1
        assert stats.max_size == 100

    def test_capacity_evicts_oldest_entry(self, fake_clock):
        """최대 크기 초과 시 가장 먼저 생성된 항목 제거"""
        # given
        small_cache = TTLCache(CacheSettings(CACHE_MAX_SIZE=2), clock=fake_clock)
        small_cache.set("first", 1)
        fake_clock.advance_ms(1)
        small_cache.set("second", 2)
        fake_clock.advance_ms(1)

        # when
        small_cache.set("third", 3)

        # then
        assert small_cache.size() == 2
        assert small_cache.get("first") is None
        assert small_cache.get("second") == 2
        assert small_cache.get("third") == 3

    def test_non_positive_ttl_rejected(self, cache: TTLCache):
        with pytest.raises(ValueError):
            cache.set("key", "value", ttl=0)

    def test_falsy_values_are_cached(self, cache: TTLCache):
        """빈 목록도 유효한 캐시 값"""
        cache.set("empty", [])
        assert cache.get("empty") == []


@pytest.mark.asyncio
class TestCacheLifecycle:
    """주기적 정리 작업 테스트"""

    async def test_start_and_stop_cleanup(self, fake_clock):
        # given
        cache = TTLCache(CacheSettings(CACHE_CLEANUP_INTERVAL_MS=10), clock=fake_clock)
        cache.set("key", "value", ttl=1000)
        fake_clock.advance_ms(2000)

        # when
        cache.start_cleanup()
        for _ in range(50):
            if cache.size() == 0:
                break
            await asyncio.sleep(0.01)
        await cache.stop_cleanup()

        # then
        assert cache.size() == 0

    async def test_stop_without_start_is_noop(self, cache: TTLCache):
        await cache.stop_cleanup()


class TestGenerateCacheKey:
    """캐시 키 생성 테스트"""

    def test_keys_are_sorted(self):
        assert generate_cache_key("ns", {"b": 2, "a": "x"}) == "ns:a=x:b=2"

    def test_same_params_same_key(self):
        assert generate_cache_key("ns", {"a": 1, "b": [1, 2]}) == generate_cache_key("ns", {"b": [1, 2], "a": 1})

    def test_namespace_only(self):
        assert generate_cache_key("wiki:categories") == "wiki:categories"
