# wiki_chat/rate_limit/__init__.py
from .domains import RateLimitResult
from .service import RateLimiter
from .container import create_rate_limit_container

__all__ = [
    "RateLimitResult",
    "RateLimiter",
    "create_rate_limit_container",
]
