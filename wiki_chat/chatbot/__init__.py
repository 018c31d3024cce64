# wiki_chat/chatbot/__init__.py
from .domains import ChatStage, ChatTurn, StreamFrame
from .service import ChatbotService
from .container import create_chatbot_container

__all__ = [
    "ChatStage",
    "ChatTurn",
    "StreamFrame",
    "ChatbotService",
    "create_chatbot_container",
]
