# wiki_chat/rate_limit/container.py
from dependency_injector import containers, providers
from .settings import RateLimitSettings
from .service import RateLimiter

class RateLimitContainer(containers.DeclarativeContainer):
    """Rate Limit 모듈 DI Container"""

    settings = providers.Singleton(RateLimitSettings)

    service = providers.Singleton(RateLimiter, settings=settings)

def create_rate_limit_container() -> RateLimitContainer:
    """Rate Limit Container 생성"""
    return RateLimitContainer()
