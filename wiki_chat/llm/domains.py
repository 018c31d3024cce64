# wiki_chat/llm/domains.py
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Sequence

from wiki_chat.chat_session.domains import ArticleSource
from wiki_chat.wiki.domains import QueryClassification, RetrievedArticle


@dataclass(frozen=True)
class LLMMessage:
    """대화 이력 메시지"""
    role: str  # 'user', 'assistant'
    content: str


@dataclass
class ConfigValidation:
    """설정 검증 결과"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class GenerationRequest:
    """생성 요청 - 질의, 이전 대화, 검색 문서, 분류 플래그"""
    user_message: str
    articles: Sequence[RetrievedArticle] = field(default_factory=list)
    history: Sequence[LLMMessage] = field(default_factory=list)
    classification: QueryClassification = field(default_factory=QueryClassification)
    available_categories: Sequence[str] = field(default_factory=list)


class GenerationStream:
    """토큰 스트림 (소비 완료 후 sources 확정)

    취소 가능한 풀 방식 시퀀스이며, 소비를 중단하는 쪽은 반드시 aclose() 를 호출한다.
    """

    def __init__(self, tokens: AsyncIterator[str], sources: Sequence[ArticleSource]):
        self._tokens = tokens
        self._pending_sources = list(sources)
        self._sources: Optional[List[ArticleSource]] = None
        self._closed = False

    def __aiter__(self) -> "GenerationStream":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._tokens.__anext__()
        except StopAsyncIteration:
            self._sources = self._pending_sources
            self._closed = True
            raise

    @property
    def sources(self) -> List[ArticleSource]:
        """완료된 스트림의 인용 문서 (완료 전 접근 시 오류)"""
        if self._sources is None:
            raise RuntimeError("Sources are available only after the stream completes")
        return self._sources

    @property
    def completed(self) -> bool:
        return self._sources is not None

    async def aclose(self) -> None:
        if self._closed and self.completed:
            return
        self._closed = True
        aclose = getattr(self._tokens, "aclose", None)
        if aclose is not None:
            await aclose()
