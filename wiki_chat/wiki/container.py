# wiki_chat/wiki/container.py
from dependency_injector import containers, providers
from .settings import WikiSettings, ClassifierSettings
from .repository import create_content_repository
from .classifier import QueryClassifier
from .retrieval import RetrievalService

class WikiContainer(containers.DeclarativeContainer):
    """Wiki 검색 모듈 DI Container"""

    # === 외부 의존성 ===
    cache = providers.Dependency()
    deduplicator = providers.Dependency()

    # === Settings ===
    settings = providers.Singleton(WikiSettings)
    classifier_settings = providers.Singleton(ClassifierSettings)

    # === Repository 계층 ===
    repository = providers.Singleton(create_content_repository, settings=settings)

    # === Service 계층 ===
    classifier = providers.Singleton(QueryClassifier, settings=classifier_settings)

    service = providers.Singleton(
        RetrievalService,
        repository=repository,
        cache=cache,
        deduplicator=deduplicator,
        classifier=classifier,
        settings=settings
    )

def create_wiki_container() -> WikiContainer:
    """Wiki Container 생성"""
    return WikiContainer()
