# wiki_chat/wiki/retrieval.py
import logging
import re
from typing import List, Optional, Sequence, Tuple

from wiki_chat.cache.deduplicator import RequestDeduplicator, cached_fetch
from wiki_chat.cache.service import TTLCache, generate_cache_key
from .classifier import QueryClassifier, unique_categories
from .domains import RetrievedArticle, WikiArticle, WikiCategory
from .repository import WikiContentRepository
from .settings import WikiSettings

logger = logging.getLogger(__name__)

MAX_SCORE = 100
TITLE_TERM_SCORE = 10
EXACT_TITLE_BONUS = 20
CONTENT_MATCH_SCORE = 2
CONTENT_SCORE_CAP = 10
CATEGORY_TERM_SCORE = 5

MAX_SECTIONS = 3
MAX_EXTRACT_LENGTH = 2000
FALLBACK_EXTRACT_LENGTH = 1000
OVERVIEW_PARAGRAPHS = 3
MAX_OVERVIEW_LENGTH = 1500

ARTICLE_LINK_PREFIX = "/wiki/articles/"

_SECTION_SPLIT = re.compile(r"(?=^#{1,6}\s)", re.MULTILINE)


# === 순수 함수 ===
def normalize_query(query: str) -> str:
    """캐시 키용 질의 정규화 (공백 정리, 소문자)"""
    return " ".join(query.split()).lower()


def query_terms(query: str) -> List[str]:
    return [term for term in query.lower().split() if len(term) > 2]


def calculate_relevance_score(article: WikiArticle, query: str) -> int:
    """제목, 본문, 카테고리의 질의어 일치로 0-100 점수 계산"""
    query_lower = query.lower()
    terms = query_terms(query)
    title = article.title.lower()
    content = article.content.lower()
    category = article.category.lower()

    score = 0
    for term in terms:
        if term in title:
            score += TITLE_TERM_SCORE
        score += min(content.count(term) * CONTENT_MATCH_SCORE, CONTENT_SCORE_CAP)
        if term in category:
            score += CATEGORY_TERM_SCORE

    if title == query_lower:
        score += EXACT_TITLE_BONUS

    return min(score, MAX_SCORE)


def extract_relevant_content(content: str, query: str, is_recommendation: bool = False) -> str:
    """질의와 관련된 본문 발췌"""
    if is_recommendation:
        # 추천 질의는 문서 개요(앞 문단)를 사용
        overview = "\n\n".join(content.split("\n\n")[:OVERVIEW_PARAGRAPHS])
        if len(overview) > MAX_OVERVIEW_LENGTH:
            return overview[:MAX_OVERVIEW_LENGTH] + "..."
        return overview

    terms = query_terms(query)
    scored_sections = []
    for section in _SECTION_SPLIT.split(content):
        section_lower = section.lower()
        score = sum(section_lower.count(term) for term in terms)
        if score > 0:
            scored_sections.append((score, section))

    if not scored_sections:
        return content[:FALLBACK_EXTRACT_LENGTH]

    scored_sections.sort(key=lambda item: item[0], reverse=True)
    extracted = "\n\n".join(section for _, section in scored_sections[:MAX_SECTIONS])
    if len(extracted) > MAX_EXTRACT_LENGTH:
        return extracted[:MAX_EXTRACT_LENGTH] + "..."
    return extracted


def select_diverse_articles(
    scored: Sequence[Tuple[WikiArticle, int]],
    max_results: int,
    diversity_threshold: int,
) -> List[Tuple[WikiArticle, int]]:
    """점수순 목록에서 상위 2개를 고정하고 남은 자리는 새 카테고리 우선으로 채움"""
    if len(scored) <= max_results:
        return list(scored)

    selected = list(scored[:2])
    seen_categories = {article.category for article, _ in selected}
    remaining = list(scored[2:])

    for item in remaining:
        if len(selected) >= max_results:
            break
        article, score = item
        if article.category not in seen_categories and score >= diversity_threshold:
            selected.append(item)
            seen_categories.add(article.category)

    for item in remaining:
        if len(selected) >= max_results:
            break
        if item not in selected:
            selected.append(item)

    return selected


def create_context_string(articles: Sequence[RetrievedArticle]) -> str:
    """생성 모델용 문서 컨텍스트 문자열"""
    if not articles:
        return "No relevant articles found."

    parts = []
    for index, retrieved in enumerate(articles, start=1):
        article = retrieved.article
        parts.append(
            f"Article {index}: {article.title}\n"
            f"Category: {article.category}\n"
            f"Slug: {article.slug}\n"
            f"Link: {ARTICLE_LINK_PREFIX}{article.slug}\n\n"
            f"Content:\n{retrieved.relevant_content}\n---"
        )
    return "\n\n".join(parts)


# === 서비스 ===
class RetrievalService:
    """질의를 순위가 매겨진 위키 문서 목록으로 변환

    콘텐츠 저장소 호출은 캐시와 중복 제거기를 거친다. TTL 안의 동일 질의는
    외부 호출을 건너뛰고, 동시에 들어온 동일 질의는 하나의 호출로 합쳐진다.
    """

    def __init__(
        self,
        repository: WikiContentRepository,
        cache: TTLCache,
        deduplicator: RequestDeduplicator,
        classifier: QueryClassifier,
        settings: WikiSettings,
    ):
        self._repository = repository
        self._cache = cache
        self._deduplicator = deduplicator
        self._classifier = classifier
        self._settings = settings

    async def retrieve_relevant_articles(self, query: str) -> List[RetrievedArticle]:
        normalized = normalize_query(query)
        if not normalized:
            return []

        key = generate_cache_key("wiki:retrieve", {"query": normalized})
        return await cached_fetch(
            self._cache,
            self._deduplicator,
            key,
            lambda: self._search_and_rank(normalized),
            ttl=self._settings.RETRIEVAL_CACHE_TTL_MS,
        )

    async def get_available_categories(self) -> List[WikiCategory]:
        return await cached_fetch(
            self._cache,
            self._deduplicator,
            generate_cache_key("wiki:categories"),
            self._repository.get_all_categories,
        )

    async def get_articles_by_category(self, category: str) -> List[WikiArticle]:
        return await cached_fetch(
            self._cache,
            self._deduplicator,
            generate_cache_key("wiki:category", {"category": category}),
            lambda: self._repository.get_articles_by_category(category),
        )

    async def _search_and_rank(self, query: str) -> List[RetrievedArticle]:
        articles = await self._repository.search_articles(query)
        if not articles:
            logger.info(f"No articles found for query: '{query}'")
            return []

        scored = sorted(
            ((article, calculate_relevance_score(article, query)) for article in articles),
            key=lambda item: item[1],
            reverse=True,
        )
        selected = select_diverse_articles(
            scored,
            max_results=self._settings.RETRIEVAL_MAX_RESULTS,
            diversity_threshold=self._settings.RETRIEVAL_DIVERSITY_THRESHOLD,
        )

        is_recommendation = self._classifier.is_recommendation_query(query)
        retrieved = [
            RetrievedArticle(
                article=article,
                relevant_content=extract_relevant_content(article.content, query, is_recommendation),
                relevance_score=score,
                source=article.to_source(),
            )
            for article, score in selected
        ]

        categories = unique_categories(retrieved)
        if len(categories) > 1:
            logger.info(
                f"Multi-category retrieval for '{query}': {len(categories)} categories ({', '.join(categories)})"
            )
        return retrieved

    @staticmethod
    def category_names(categories: Optional[Sequence[WikiCategory]]) -> List[str]:
        return [category.category for category in categories or []]
