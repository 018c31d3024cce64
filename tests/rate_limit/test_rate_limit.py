# tests/rate_limit/test_rate_limit.py
import threading

from wiki_chat.rate_limit.service import RateLimiter
from wiki_chat.rate_limit.settings import RateLimitSettings


class TestRateLimiter:
    """RateLimiter 테스트"""

    def test_allows_up_to_limit(self, rate_limiter: RateLimiter):
        """한도까지 허용되고 remaining 이 감소"""
        results = [rate_limiter.check_limit("user-1") for _ in range(10)]

        assert all(result.allowed for result in results)
        assert [result.remaining for result in results] == list(range(9, -1, -1))

    def test_excess_request_rejected_with_wait_time(self, rate_limiter: RateLimiter, fake_clock):
        """초과 요청은 가장 오래된 요청이 윈도우를 벗어날 때까지 대기"""
        # given
        rate_limiter.check_limit("user-1")
        fake_clock.advance_ms(10_000)
        for _ in range(9):
            rate_limiter.check_limit("user-1")
        fake_clock.advance_ms(5_000)

        # when
        result = rate_limiter.check_limit("user-1")

        # then
        assert result.allowed is False
        assert result.remaining == 0
        assert result.wait_time_ms == 45_000

    def test_window_slides(self, rate_limiter: RateLimiter, fake_clock):
        """가장 오래된 요청이 윈도우를 벗어나면 다시 허용"""
        for _ in range(10):
            rate_limiter.check_limit("user-1")
        assert rate_limiter.check_limit("user-1").allowed is False

        fake_clock.advance_ms(60_000)

        result = rate_limiter.check_limit("user-1")
        assert result.allowed is True
        assert result.remaining == 9

    def test_rejected_requests_are_not_counted(self, rate_limiter: RateLimiter):
        for _ in range(15):
            rate_limiter.check_limit("user-1")

        assert rate_limiter.get_count("user-1") == 10

    def test_users_are_independent(self, rate_limiter: RateLimiter):
        for _ in range(10):
            rate_limiter.check_limit("user-1")

        assert rate_limiter.check_limit("user-1").allowed is False
        assert rate_limiter.check_limit("user-2").allowed is True

    def test_reset_and_clear(self, rate_limiter: RateLimiter):
        for _ in range(10):
            rate_limiter.check_limit("user-1")
            rate_limiter.check_limit("user-2")

        rate_limiter.reset("user-1")
        assert rate_limiter.check_limit("user-1").allowed is True
        assert rate_limiter.check_limit("user-2").allowed is False

        rate_limiter.clear()
        assert rate_limiter.get_count("user-2") == 0

    def test_idle_users_are_dropped_after_window(self, rate_limiter: RateLimiter, fake_clock):
        """다시 요청하지 않는 사용자 키도 윈도우가 지나면 정리"""
        # given
        for index in range(1000):
            rate_limiter.check_limit(f"user-{index}")
        fake_clock.advance_ms(10 * 60_000)

        # when
        result = rate_limiter.check_limit("newcomer")

        # then
        assert result.allowed is True
        assert list(rate_limiter._events) == ["newcomer"]

    def test_cleanup_keeps_active_users(self, rate_limiter: RateLimiter, fake_clock):
        rate_limiter.check_limit("idle")
        fake_clock.advance_ms(30_000)
        rate_limiter.check_limit("active")
        fake_clock.advance_ms(30_000)

        removed = rate_limiter.cleanup()

        assert removed == 1
        assert rate_limiter.get_count("idle") == 0
        assert rate_limiter.get_count("active") == 1

    def test_wait_time_never_negative(self, fake_clock):
        """시계가 뒤로 가도 대기 시간은 음수가 아님"""
        limiter = RateLimiter(
            RateLimitSettings(RATE_LIMIT_MAX_REQUESTS=1, RATE_LIMIT_WINDOW_MS=1000),
            clock=fake_clock,
        )
        limiter.check_limit("user-1")
        fake_clock.advance_ms(-5000)

        result = limiter.check_limit("user-1")

        assert result.allowed is False
        assert result.wait_time_ms >= 0

    def test_concurrent_checks_never_exceed_limit(self):
        """동시 요청에서도 한도를 넘겨 허용하지 않음"""
        limiter = RateLimiter(RateLimitSettings(RATE_LIMIT_MAX_REQUESTS=10, RATE_LIMIT_WINDOW_MS=60_000))
        allowed = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                result = limiter.check_limit("user-1")
                with lock:
                    allowed.append(result.allowed)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert allowed.count(True) == 10
