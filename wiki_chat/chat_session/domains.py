# wiki_chat/chat_session/domains.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List
import uuid

DEFAULT_SESSION_TITLE = "New Conversation"

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
MESSAGE_ROLES = (ROLE_USER, ROLE_ASSISTANT)


@dataclass(frozen=True)
class ArticleSource:
    """답변에 인용된 위키 문서 스냅샷 (원본 문서와 연결되지 않음)"""
    title: str
    slug: str
    category: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "slug": self.slug, "category": self.category}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ArticleSource":
        return ArticleSource(
            title=data.get("title", ""),
            slug=data.get("slug", ""),
            category=data.get("category", ""),
        )


@dataclass
class ChatSession:
    """한 사용자가 소유하는 대화방"""
    id: str
    owner_user_id: str
    title: str
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def new(owner_user_id: str, title: str = DEFAULT_SESSION_TITLE) -> "ChatSession":
        """새 세션 생성"""
        now = datetime.now(timezone.utc)
        return ChatSession(
            id=str(uuid.uuid4()),
            owner_user_id=owner_user_id,
            title=title,
            created_at=now,
            updated_at=now,
        )

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_user_id == user_id


@dataclass(frozen=True)
class ChatMessage:
    """채팅 메시지 (저장 후 변경 불가)"""
    id: str
    session_id: str
    role: str  # 'user', 'assistant'
    content: str
    created_at: datetime
    sources: List[ArticleSource] = field(default_factory=list)

    @staticmethod
    def new(session_id: str, role: str, content: str, sources: List[ArticleSource] = None) -> "ChatMessage":
        return ChatMessage(
            id=str(uuid.uuid4()),
            session_id=session_id,
            role=role,
            content=content,
            created_at=datetime.now(timezone.utc),
            sources=list(sources or []),
        )
