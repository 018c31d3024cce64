# wiki_chat/wiki/settings.py
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

_SETTINGS_CONFIG = {
    "env_file": ".env",
    "case_sensitive": True,
    "extra": "ignore",
}


class WikiSettings(BaseSettings):
    """위키 콘텐츠 저장소 및 검색 설정"""

    # === 콘텐츠 저장소 ===
    WIKI_BACKEND: str = Field(default="memory", description="graphql 또는 memory")
    WIKI_GRAPHQL_ENDPOINT: str = Field(default="", description="CMS GraphQL 엔드포인트")
    WIKI_GRAPHQL_TOKEN: str = Field(default="", description="CMS 인증 토큰")
    WIKI_REQUEST_TIMEOUT: float = Field(default=10.0, gt=0, description="요청 타임아웃 (초)")
    WIKI_SEED_FILE: Optional[str] = Field(default=None, description="memory 백엔드용 문서 JSON 파일")

    # === 검색 ===
    RETRIEVAL_MAX_RESULTS: int = Field(default=5, ge=1, description="최대 문서 수")
    RETRIEVAL_DIVERSITY_THRESHOLD: int = Field(default=20, ge=0, description="새 카테고리 문서 채택 최소 점수")
    RETRIEVAL_CACHE_TTL_MS: Optional[int] = Field(default=None, gt=0, description="검색 결과 TTL (기본: 캐시 기본값)")

    model_config = _SETTINGS_CONFIG


class ClassifierSettings(BaseSettings):
    """질의 분류 휴리스틱 설정"""

    CLASSIFIER_MIN_CANDIDATES: int = 3
    CLASSIFIER_MIN_CATEGORIES: int = 3
    CLASSIFIER_SCORE_SPREAD: int = 20
    CLASSIFIER_SHORT_QUERY_WORDS: int = 2

    CLASSIFIER_RECOMMENDATION_KEYWORDS: List[str] = [
        "recommend",
        "suggestion",
        "suggest",
        "what should i read",
        "what can i read",
        "articles about",
        "show me articles",
        "list articles",
        "what articles",
        "find articles",
    ]

    # 다른 기관 이름이 있어도 이 키워드가 함께 있으면 비교 질의로 허용
    CLASSIFIER_HOME_INSTITUTION_KEYWORDS: List[str] = [
        "tum",
        "technical university of munich",
    ]

    # 이 키워드가 있으면 도메인 관련 질의로 본다
    CLASSIFIER_DOMAIN_KEYWORDS: List[str] = [
        "tum",
        "technical university of munich",
        "campus",
        "student",
        "university",
    ]

    CLASSIFIER_OTHER_INSTITUTIONS: List[str] = [
        "harvard",
        "stanford",
        "mit",
        "oxford",
        "cambridge",
        "yale",
        "princeton",
        "berkeley",
        "caltech",
        "eth zurich",
        "eth zürich",
        "lmu",
        "ludwig maximilian",
        "rwth aachen",
        "kit karlsruhe",
        "heidelberg university",
        "humboldt",
        "free university berlin",
        "university of",
    ]

    CLASSIFIER_OFF_DOMAIN_TOPICS: List[str] = [
        "recipe",
        "cooking",
        "weather",
        "stock market",
        "cryptocurrency",
        "bitcoin",
        "movie",
        "tv show",
        "celebrity",
        "sports score",
        "football match",
        "game result",
        "how to fix",
        "repair",
        "medical advice",
        "legal advice",
        "tax",
        "investment",
    ]

    CLASSIFIER_GENERAL_KNOWLEDGE_PATTERNS: List[str] = [
        r"^what is the capital of",
        r"^who is the president of",
        r"^when did .* happen",
        r"^how do i (cook|make|build|fix)",
        r"^what's the weather",
        r"^tell me a joke",
        r"^write me a (story|poem|song)",
    ]

    model_config = _SETTINGS_CONFIG
