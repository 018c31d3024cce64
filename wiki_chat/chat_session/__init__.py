# wiki_chat/chat_session/__init__.py
from .domains import ChatSession, ChatMessage, ArticleSource
from .service import ChatSessionService, ChatMessageService
from .container import create_chat_session_container

__all__ = [
    "ChatSession",
    "ChatMessage",
    "ArticleSource",
    "ChatSessionService",
    "ChatMessageService",
    "create_chat_session_container"
]
