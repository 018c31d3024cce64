# wiki_chat/chatbot/container.py
from dependency_injector import containers, providers
from .service import ChatbotService

class ChatbotContainer(containers.DeclarativeContainer):
    """Chatbot 모듈 DI Container"""

    # === 외부 의존성 ===
    rate_limiter = providers.Dependency()
    chat_session_service = providers.Dependency()
    chat_message_service = providers.Dependency()
    retrieval_service = providers.Dependency()
    classifier = providers.Dependency()
    llm_service = providers.Dependency()

    # === Service 계층 ===
    service = providers.Singleton(
        ChatbotService,
        rate_limiter=rate_limiter,
        chat_session_service=chat_session_service,
        chat_message_service=chat_message_service,
        retrieval_service=retrieval_service,
        classifier=classifier,
        llm_service=llm_service
    )

def create_chatbot_container() -> ChatbotContainer:
    """Chatbot Container 생성"""
    return ChatbotContainer()
