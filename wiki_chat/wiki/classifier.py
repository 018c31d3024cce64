# wiki_chat/wiki/classifier.py
import logging
import re
from typing import Dict, List, Pattern, Sequence

from .domains import Interpretation, QueryClassification, RetrievedArticle
from .settings import ClassifierSettings

logger = logging.getLogger(__name__)


def _phrase_pattern(phrases: Sequence[str]) -> Pattern:
    """단어 경계 기준 구문 매칭 패턴 ('mit' 이 'submit' 에 걸리지 않도록)"""
    if not phrases:
        return re.compile(r"(?!)")
    alternatives = "|".join(re.escape(phrase) for phrase in sorted(phrases, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


def unique_categories(candidates: Sequence[RetrievedArticle]) -> List[str]:
    """등장 순서를 유지한 카테고리 목록"""
    return list(dict.fromkeys(candidate.article.category for candidate in candidates))


class QueryClassifier:
    """질의 의도 분류기

    결과는 생성 단계에 전달되는 참고용 플래그이며 요청을 차단하지 않는다.
    임계값과 키워드 목록은 모두 ClassifierSettings 에서 조정한다.
    """

    def __init__(self, settings: ClassifierSettings):
        self._settings = settings
        self._recommendation = [keyword.lower() for keyword in settings.CLASSIFIER_RECOMMENDATION_KEYWORDS]
        self._home_institution = _phrase_pattern(settings.CLASSIFIER_HOME_INSTITUTION_KEYWORDS)
        self._domain = _phrase_pattern(settings.CLASSIFIER_DOMAIN_KEYWORDS)
        self._other_institutions = _phrase_pattern(settings.CLASSIFIER_OTHER_INSTITUTIONS)
        self._off_domain_topics = _phrase_pattern(settings.CLASSIFIER_OFF_DOMAIN_TOPICS)
        self._general_knowledge = [
            re.compile(pattern, re.IGNORECASE)
            for pattern in settings.CLASSIFIER_GENERAL_KNOWLEDGE_PATTERNS
        ]

    def is_recommendation_query(self, text: str) -> bool:
        text = text.lower()
        return any(keyword in text for keyword in self._recommendation)

    def has_domain_keyword(self, text: str) -> bool:
        return bool(self._domain.search(text))

    def is_out_of_scope_query(self, text: str) -> bool:
        text = text.strip().lower()

        if self._other_institutions.search(text) and not self._home_institution.search(text):
            return True

        if self._off_domain_topics.search(text) and not self.has_domain_keyword(text):
            return True

        return any(pattern.search(text) for pattern in self._general_knowledge)

    def is_ambiguous_query(self, text: str, candidates: Sequence[RetrievedArticle]) -> bool:
        """짧은 질의가 점수 차가 적은 여러 카테고리 문서에 걸리는 경우"""
        settings = self._settings
        if len(candidates) < settings.CLASSIFIER_MIN_CANDIDATES:
            return False

        if len(text.split()) > settings.CLASSIFIER_SHORT_QUERY_WORDS:
            return False

        if len(unique_categories(candidates)) < settings.CLASSIFIER_MIN_CATEGORIES:
            return False

        top_scores = [candidate.relevance_score for candidate in candidates[:3]]
        return max(top_scores) - min(top_scores) <= settings.CLASSIFIER_SCORE_SPREAD

    def get_ambiguity_options(self, candidates: Sequence[RetrievedArticle]) -> List[Interpretation]:
        """카테고리마다 첫 문서를 예시로 하는 해석 후보"""
        examples: Dict[str, str] = {}
        for candidate in candidates:
            examples.setdefault(candidate.article.category, candidate.article.title)
        return [
            Interpretation(category=category, example_title=title)
            for category, title in examples.items()
        ]

    def classify(self, text: str, candidates: Sequence[RetrievedArticle]) -> QueryClassification:
        """모든 플래그를 한 번에 계산"""
        is_ambiguous = self.is_ambiguous_query(text, candidates)
        # 검색 결과가 없고 도메인 키워드도 없으면 범위 밖으로 간주
        is_out_of_scope = self.is_out_of_scope_query(text) or (
            not candidates and not self.has_domain_keyword(text)
        )

        classification = QueryClassification(
            is_recommendation=self.is_recommendation_query(text),
            is_ambiguous=is_ambiguous,
            is_out_of_scope=is_out_of_scope,
            ambiguity_options=self.get_ambiguity_options(candidates) if is_ambiguous else [],
        )
        logger.info(
            f"Query classified: recommendation={classification.is_recommendation}, "
            f"ambiguous={classification.is_ambiguous}, out_of_scope={classification.is_out_of_scope}"
        )
        return classification
