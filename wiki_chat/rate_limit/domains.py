# wiki_chat/rate_limit/domains.py
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """요청 제한 확인 결과"""
    allowed: bool
    remaining: int
    wait_time_ms: int
