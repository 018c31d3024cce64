"""
채팅 세션/메시지 엔티티 - 데이터베이스 매핑
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Text, DateTime, JSON, ForeignKey, CheckConstraint, Index

from wiki_chat.database.base import Base
from .domains import ChatSession, ChatMessage, ArticleSource


def _as_utc(value: datetime) -> datetime:
    # SQLite 는 시간대 정보 없이 돌려줌
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ChatSessionEntity(Base):
    """채팅 세션 엔티티"""

    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True)
    owner_user_id = Column(String, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_chat_sessions_owner_updated", "owner_user_id", "updated_at"),
    )

    @classmethod
    def from_domain(cls, domain: ChatSession) -> "ChatSessionEntity":
        return cls(
            id=domain.id,
            owner_user_id=domain.owner_user_id,
            title=domain.title,
            created_at=domain.created_at,
            updated_at=domain.updated_at,
        )

    def to_domain(self) -> ChatSession:
        return ChatSession(
            id=self.id,
            owner_user_id=self.owner_user_id,
            title=self.title,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )

    def __repr__(self):
        return f"<ChatSessionEntity(id='{self.id}', title='{self.title}')>"


class ChatMessageEntity(Base):
    """채팅 메시지 엔티티"""

    __tablename__ = "chat_messages"

    # 삽입 순번, 메시지 정렬 기준
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False)
    session_id = Column(
        String(36),
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    sources = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant')", name="ck_chat_messages_role"),
        Index("idx_chat_messages_session_seq", "session_id", "seq"),
    )

    @classmethod
    def from_domain(cls, domain: ChatMessage) -> "ChatMessageEntity":
        return cls(
            id=domain.id,
            session_id=domain.session_id,
            role=domain.role,
            content=domain.content,
            sources=[source.to_dict() for source in domain.sources],
            created_at=domain.created_at,
        )

    def to_domain(self) -> ChatMessage:
        return ChatMessage(
            id=self.id,
            session_id=self.session_id,
            role=self.role,
            content=self.content,
            created_at=_as_utc(self.created_at),
            sources=[ArticleSource.from_dict(item) for item in (self.sources or [])],
        )

    def __repr__(self):
        return f"<ChatMessageEntity(id='{self.id}', session_id='{self.session_id}', role='{self.role}')>"
