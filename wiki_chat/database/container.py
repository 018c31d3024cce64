# wiki_chat/database/container.py
from dependency_injector import containers, providers
from .settings import DatabaseSettings
from .session_factory import DatabaseSessionFactory

class DatabaseContainer(containers.DeclarativeContainer):
    """Database 모듈 DI Container"""

    settings = providers.Singleton(DatabaseSettings)

    session_factory = providers.Singleton(DatabaseSessionFactory, settings=settings)

def create_database_container() -> DatabaseContainer:
    """Database Container 생성"""
    return DatabaseContainer()
