# webapp/dtos.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from wiki_chat.chat_session.domains import ArticleSource, ChatMessage, ChatSession
from wiki_chat.wiki.domains import WikiArticle, WikiCategory

class CamelModel(BaseModel):
    """FastAPI의 모든 Request, Response 모델에 CamelCase를 적용"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ===== 채팅 관련 DTO =====
class ChatRequest(CamelModel):
    """채팅 요청 DTO (빈 값 검증은 서비스에서 400 으로 처리)"""
    session_id: Optional[str] = Field(default=None, description="세션 ID")
    message: Optional[str] = Field(default=None, description="사용자 메시지", examples=["How do I register for courses?"])

# ===== 세션 관련 DTO =====
class CreateSessionRequest(CamelModel):
    """세션 생성 요청 DTO"""
    title: Optional[str] = Field(default=None, description="세션 제목", max_length=255)

class UpdateSessionRequest(CamelModel):
    """세션 제목 변경 요청 DTO"""
    title: str = Field(description="세션 제목", max_length=255)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title must not be empty")
        return v.strip()

class ArticleSourceDTO(CamelModel):
    """인용 문서 DTO"""
    title: str
    slug: str
    category: str

    @staticmethod
    def from_domain(source: ArticleSource) -> "ArticleSourceDTO":
        return ArticleSourceDTO(title=source.title, slug=source.slug, category=source.category)

class ChatMessageDTO(CamelModel):
    """메시지 DTO"""
    id: str
    session_id: str
    role: str
    content: str
    sources: List[ArticleSourceDTO] = Field(default_factory=list)
    created_at: datetime

    @staticmethod
    def from_domain(message: ChatMessage) -> "ChatMessageDTO":
        return ChatMessageDTO(
            id=message.id,
            session_id=message.session_id,
            role=message.role,
            content=message.content,
            sources=[ArticleSourceDTO.from_domain(source) for source in message.sources],
            created_at=message.created_at,
        )

class ChatSessionDTO(CamelModel):
    """세션 정보 DTO"""
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    message_count: Optional[int] = Field(default=None, ge=0)

    @staticmethod
    def from_domain(session: ChatSession, message_count: Optional[int] = None) -> "ChatSessionDTO":
        return ChatSessionDTO(
            id=session.id,
            title=session.title,
            created_at=session.created_at,
            updated_at=session.updated_at,
            message_count=message_count,
        )

class SessionListDTO(CamelModel):
    """세션 목록 DTO"""
    sessions: List[ChatSessionDTO]

class SessionDetailDTO(CamelModel):
    """세션 상세 DTO (메시지 포함)"""
    session: ChatSessionDTO
    messages: List[ChatMessageDTO]

class SessionResponseDTO(CamelModel):
    """세션 응답 DTO"""
    message: str
    session_id: Optional[str] = None

# ===== 위키 관련 DTO =====
class WikiCategoryDTO(CamelModel):
    """카테고리 DTO"""
    category: str
    article_count: int = Field(ge=0)

    @staticmethod
    def from_domain(category: WikiCategory) -> "WikiCategoryDTO":
        return WikiCategoryDTO(category=category.category, article_count=category.article_count)

class WikiArticleDTO(CamelModel):
    """위키 문서 DTO"""
    id: str
    title: str
    slug: str
    category: str
    content: str

    @staticmethod
    def from_domain(article: WikiArticle) -> "WikiArticleDTO":
        return WikiArticleDTO(
            id=article.id,
            title=article.title,
            slug=article.slug,
            category=article.category,
            content=article.content,
        )

# ===== 상태 확인 DTO =====
class HealthDTO(CamelModel):
    """설정 상태 DTO"""
    status: str
    message: str
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    config: dict = Field(default_factory=dict)
