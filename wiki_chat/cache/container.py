# wiki_chat/cache/container.py
from dependency_injector import containers, providers
from .settings import CacheSettings
from .service import TTLCache
from .deduplicator import RequestDeduplicator

class CacheContainer(containers.DeclarativeContainer):
    """Cache 모듈 DI Container"""

    # === Settings ===
    settings = providers.Singleton(CacheSettings)

    # === 프로세스 단일 인스턴스 (앱 시작 시 생성, 종료 시 정리 중단) ===
    cache = providers.Singleton(TTLCache, settings=settings)
    deduplicator = providers.Singleton(RequestDeduplicator)

def create_cache_container() -> CacheContainer:
    """Cache Container 생성"""
    return CacheContainer()
