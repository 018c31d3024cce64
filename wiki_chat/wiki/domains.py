# wiki_chat/wiki/domains.py
from dataclasses import dataclass, field
from typing import Any, Dict, List

from wiki_chat.chat_session.domains import ArticleSource


@dataclass(frozen=True)
class WikiArticle:
    """위키 문서"""
    id: str
    title: str
    slug: str
    category: str
    content: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "WikiArticle":
        return WikiArticle(
            id=str(data.get("id") or data.get("slug", "")),
            title=data.get("title", ""),
            slug=data.get("slug", ""),
            category=data.get("category", ""),
            content=data.get("content") or "",
        )

    def to_source(self) -> ArticleSource:
        return ArticleSource(title=self.title, slug=self.slug, category=self.category)


@dataclass(frozen=True)
class WikiCategory:
    """카테고리별 문서 수"""
    category: str
    article_count: int


@dataclass(frozen=True)
class RetrievedArticle:
    """질의에 대해 점수가 매겨진 문서"""
    article: WikiArticle
    relevant_content: str
    relevance_score: int
    source: ArticleSource


@dataclass(frozen=True)
class Interpretation:
    """모호한 질의에 대해 사용자에게 제시할 해석 후보"""
    category: str
    example_title: str


@dataclass(frozen=True)
class QueryClassification:
    """질의 분류 결과 - 생성 단계에 전달되는 참고용 플래그"""
    is_recommendation: bool = False
    is_ambiguous: bool = False
    is_out_of_scope: bool = False
    ambiguity_options: List[Interpretation] = field(default_factory=list)
