# webapp/container.py
import logging
from dependency_injector import containers, providers

# 모듈별 Container import만
from wiki_chat.cache.container import create_cache_container
from wiki_chat.rate_limit.container import create_rate_limit_container
from wiki_chat.database.container import create_database_container
from wiki_chat.chat_session.container import create_chat_session_container
from wiki_chat.wiki.container import create_wiki_container
from wiki_chat.llm.container import create_llm_container
from wiki_chat.chatbot.container import create_chatbot_container


logger = logging.getLogger(__name__)

class WikiChatContainer(containers.DeclarativeContainer):
    """위키 챗봇 애플리케이션 컨테이너"""

    # === Module Containers ===
    cache_container = providers.DependenciesContainer()
    rate_limit_container = providers.DependenciesContainer()
    database_container = providers.DependenciesContainer()
    chat_session_container = providers.DependenciesContainer()
    wiki_container = providers.DependenciesContainer()
    llm_container = providers.DependenciesContainer()
    chatbot_container = providers.DependenciesContainer()

    # === Infrastructure (생명주기 관리 대상) ===
    cache = providers.Singleton(
        lambda container: container.cache(),
        container=cache_container
    )

    database = providers.Singleton(
        lambda container: container.session_factory(),
        container=database_container
    )

    wiki_repository = providers.Singleton(
        lambda container: container.repository(),
        container=wiki_container
    )

    # === Service Layer ===
    retrieval_service = providers.Singleton(
        lambda container: container.service(),
        container=wiki_container
    )

    llm_settings = providers.Singleton(
        lambda container: container.settings(),
        container=llm_container
    )

    chat_session_service = providers.Singleton(
        lambda container: container.service(),
        container=chat_session_container
    )

    chat_message_service = providers.Singleton(
        lambda container: container.message_service(),
        container=chat_session_container
    )

    chatbot_service = providers.Singleton(
        lambda container: container.service(),
        container=chatbot_container
    )

def create_container() -> WikiChatContainer:
    """컨테이너 생성 및 초기화"""
    container = WikiChatContainer()

    # 모듈별 Container 생성
    cache_container = create_cache_container()
    rate_limit_container = create_rate_limit_container()
    database_container = create_database_container()
    chat_session_container = create_chat_session_container()
    wiki_container = create_wiki_container()
    llm_container = create_llm_container()
    chatbot_container = create_chatbot_container()

    # Container 간 의존성 주입
    chat_session_container.session_factory.override(database_container.session_factory)

    wiki_container.cache.override(cache_container.cache)
    wiki_container.deduplicator.override(cache_container.deduplicator)

    chatbot_container.rate_limiter.override(rate_limit_container.service)
    chatbot_container.chat_session_service.override(chat_session_container.service)
    chatbot_container.chat_message_service.override(chat_session_container.message_service)
    chatbot_container.retrieval_service.override(wiki_container.service)
    chatbot_container.classifier.override(wiki_container.classifier)
    chatbot_container.llm_service.override(llm_container.service)

    # Container 등록
    container.cache_container.override(cache_container)
    container.rate_limit_container.override(rate_limit_container)
    container.database_container.override(database_container)
    container.chat_session_container.override(chat_session_container)
    container.wiki_container.override(wiki_container)
    container.llm_container.override(llm_container)
    container.chatbot_container.override(chatbot_container)

    logger.info("Application container created")
    return container
