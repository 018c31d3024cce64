# wiki_chat/chatbot/domains.py
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

from wiki_chat.chat_session.domains import ArticleSource
from wiki_chat.llm.domains import LLMMessage
from wiki_chat.wiki.domains import QueryClassification, RetrievedArticle


class ChatStage(str, Enum):
    """요청 처리 단계"""
    AUTHENTICATE = "authenticate"
    RATE_LIMIT_CHECK = "rate_limit_check"
    VALIDATE_INPUT = "validate_input"
    VERIFY_SESSION = "verify_session"
    PERSIST_USER_MESSAGE = "persist_user_message"
    RETRIEVE = "retrieve"
    CLASSIFY = "classify"
    GENERATE = "generate"
    PERSIST_ASSISTANT_MESSAGE = "persist_assistant_message"
    EMIT_SOURCES = "emit_sources"
    EMIT_DONE = "emit_done"
    ERROR = "error"


@dataclass(frozen=True)
class StreamFrame:
    """SSE 프레임 (content / sources / done / error)"""
    type: str
    data: Any = None
    retryable: Optional[bool] = None

    @staticmethod
    def content(token: str) -> "StreamFrame":
        return StreamFrame(type="content", data=token)

    @staticmethod
    def sources(sources: Sequence[ArticleSource]) -> "StreamFrame":
        return StreamFrame(type="sources", data=[source.to_dict() for source in sources])

    @staticmethod
    def done() -> "StreamFrame":
        return StreamFrame(type="done", data=None)

    @staticmethod
    def error(message: str, retryable: bool) -> "StreamFrame":
        return StreamFrame(type="error", data=message, retryable=retryable)

    def to_dict(self) -> dict:
        payload = {"type": self.type, "data": self.data}
        if self.type == "error":
            payload["retryable"] = bool(self.retryable)
        return payload

    def to_sse(self) -> str:
        """`data: <json>\\n\\n` 형식으로 직렬화"""
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False)}\n\n"


@dataclass
class ChatTurn:
    """스트리밍 전 단계까지 준비된 한 턴의 대화 컨텍스트"""
    user_id: str
    session_id: str
    message: str
    articles: List[RetrievedArticle] = field(default_factory=list)
    classification: QueryClassification = field(default_factory=QueryClassification)
    available_categories: List[str] = field(default_factory=list)
    history: List[LLMMessage] = field(default_factory=list)
    rate_limit_remaining: int = 0
