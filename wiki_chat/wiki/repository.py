# wiki_chat/wiki/repository.py
import json
import logging
import re
from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import httpx

from wiki_chat.exceptions import ContentRepositoryException
from .domains import WikiArticle, WikiCategory
from .settings import WikiSettings

logger = logging.getLogger(__name__)


def aggregate_categories(categories: Iterable[str]) -> List[WikiCategory]:
    """카테고리별 문서 수 집계 (이름 순)"""
    counts = Counter(category for category in categories if category)
    return [
        WikiCategory(category=category, article_count=count)
        for category, count in sorted(counts.items(), key=lambda item: item[0].lower())
    ]


class WikiContentRepository(ABC):
    """위키 콘텐츠 저장소 인터페이스"""

    @abstractmethod
    async def search_articles(self, query: str) -> List[WikiArticle]:
        """자유 텍스트 검색"""

    @abstractmethod
    async def get_articles_by_category(self, category: str) -> List[WikiArticle]:
        """카테고리별 문서 목록"""

    @abstractmethod
    async def get_all_categories(self) -> List[WikiCategory]:
        """전체 카테고리 목록과 문서 수"""

    async def aclose(self) -> None:
        """리소스 정리"""


# === GraphQL (CMS) 구현 ===
SEARCH_ARTICLES_QUERY = """
query SearchArticles($query: String!) {
  wikiArticles(where: { _search: $query }, stage: PUBLISHED) {
    id
    title
    slug
    category
    content
  }
}
"""

GET_ARTICLES_BY_CATEGORY_QUERY = """
query GetArticlesByCategory($category: String!) {
  wikiArticles(where: { category: $category }, stage: PUBLISHED, orderBy: title_ASC) {
    id
    title
    slug
    category
    content
  }
}
"""

GET_ALL_CATEGORIES_QUERY = """
query GetAllArticles {
  wikiArticles(stage: PUBLISHED) {
    category
  }
}
"""


class GraphQLWikiContentRepository(WikiContentRepository):
    """CMS GraphQL API 기반 콘텐츠 저장소"""

    def __init__(self, settings: WikiSettings, client: Optional[httpx.AsyncClient] = None):
        if not settings.WIKI_GRAPHQL_ENDPOINT:
            raise ValueError("WIKI_GRAPHQL_ENDPOINT must be set for the graphql backend")

        headers = {"Content-Type": "application/json"}
        if settings.WIKI_GRAPHQL_TOKEN:
            headers["Authorization"] = f"Bearer {settings.WIKI_GRAPHQL_TOKEN}"

        self._endpoint = settings.WIKI_GRAPHQL_ENDPOINT
        self._client = client or httpx.AsyncClient(
            headers=headers,
            timeout=settings.WIKI_REQUEST_TIMEOUT,
        )

    async def _request(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = await self._client.post(
                self._endpoint,
                json={"query": query, "variables": variables or {}},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Content repository returned {e.response.status_code}")
            raise ContentRepositoryException(
                f"Content repository request failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Content repository unreachable: {e}")
            raise ContentRepositoryException("Content repository is unreachable") from e

        if payload.get("errors"):
            logger.error(f"Content repository GraphQL errors: {payload['errors']}")
            raise ContentRepositoryException("Content repository returned an error")
        return payload.get("data") or {}

    async def search_articles(self, query: str) -> List[WikiArticle]:
        data = await self._request(SEARCH_ARTICLES_QUERY, {"query": query})
        return [WikiArticle.from_dict(item) for item in data.get("wikiArticles") or []]

    async def get_articles_by_category(self, category: str) -> List[WikiArticle]:
        data = await self._request(GET_ARTICLES_BY_CATEGORY_QUERY, {"category": category})
        return [WikiArticle.from_dict(item) for item in data.get("wikiArticles") or []]

    async def get_all_categories(self) -> List[WikiCategory]:
        data = await self._request(GET_ALL_CATEGORIES_QUERY)
        return aggregate_categories(item.get("category") for item in data.get("wikiArticles") or [])

    async def aclose(self) -> None:
        await self._client.aclose()


# === 인메모리 구현 (로컬 개발/테스트) ===
class InMemoryWikiContentRepository(WikiContentRepository):
    """메모리에 적재된 문서로 동작하는 콘텐츠 저장소"""

    def __init__(self, articles: Optional[Iterable[WikiArticle]] = None):
        self._articles: List[WikiArticle] = list(articles or [])

    @classmethod
    def from_file(cls, path: str) -> "InMemoryWikiContentRepository":
        """JSON 배열 파일에서 문서 적재"""
        items = json.loads(Path(path).read_text(encoding="utf-8"))
        logger.info(f"Loaded {len(items)} wiki articles from {path}")
        return cls(WikiArticle.from_dict(item) for item in items)

    def add_article(self, article: WikiArticle) -> None:
        self._articles.append(article)

    async def search_articles(self, query: str) -> List[WikiArticle]:
        terms = [term for term in re.split(r"\s+", query.lower()) if len(term) > 2]
        if not terms:
            return []
        return [
            article for article in self._articles
            if any(
                term in article.title.lower()
                or term in article.content.lower()
                or term in article.category.lower()
                for term in terms
            )
        ]

    async def get_articles_by_category(self, category: str) -> List[WikiArticle]:
        return sorted(
            (article for article in self._articles if article.category == category),
            key=lambda article: article.title,
        )

    async def get_all_categories(self) -> List[WikiCategory]:
        return aggregate_categories(article.category for article in self._articles)


def create_content_repository(settings: WikiSettings) -> WikiContentRepository:
    """설정에 맞는 콘텐츠 저장소 생성"""
    backend = settings.WIKI_BACKEND.lower()
    if backend == "graphql":
        return GraphQLWikiContentRepository(settings)
    if backend == "memory":
        if settings.WIKI_SEED_FILE:
            return InMemoryWikiContentRepository.from_file(settings.WIKI_SEED_FILE)
        return InMemoryWikiContentRepository()
    raise ValueError(f"지원하지 않는 위키 백엔드: {settings.WIKI_BACKEND}")
