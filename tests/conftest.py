# tests/conftest.py
import pytest
import logging
from unittest.mock import MagicMock

from wiki_chat.cache.deduplicator import RequestDeduplicator
from wiki_chat.cache.service import TTLCache
from wiki_chat.cache.settings import CacheSettings
from wiki_chat.rate_limit.service import RateLimiter
from wiki_chat.rate_limit.settings import RateLimitSettings
from wiki_chat.database.session_factory import DatabaseSessionFactory
from wiki_chat.database.settings import DatabaseSettings
from wiki_chat.chat_session.repository import ChatSessionRepository
from wiki_chat.chat_session.service import ChatSessionService, ChatMessageService
from wiki_chat.chat_session.domains import ArticleSource
from wiki_chat.wiki.classifier import QueryClassifier
from wiki_chat.wiki.domains import WikiArticle
from wiki_chat.wiki.repository import InMemoryWikiContentRepository
from wiki_chat.wiki.retrieval import RetrievalService
from wiki_chat.wiki.settings import ClassifierSettings, WikiSettings
from wiki_chat.llm.domains import GenerationStream
from wiki_chat.chatbot.service import ChatbotService


@pytest.fixture(scope="session", autouse=True)
def initialize_test_logger():
    """테스트 로거 초기화"""
    logger = logging.getLogger()
    logger.setLevel("INFO")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="[%(levelname)5s][%(filename)s:%(lineno)s] %(message)s",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


class FakeClock:
    """테스트용 단조 시계 (초 단위)"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


class StubLLMService:
    """지정한 토큰/예외를 순서대로 내보내는 생성 서비스"""

    def __init__(self, tokens=("Hel", "lo"), error: Exception = None, sources=None):
        self.tokens = list(tokens)
        self.error = error
        self.sources = sources
        self.requests = []
        self.closed = False

    async def generate_response(self, request):
        self.requests.append(request)

        async def token_iterator():
            try:
                for token in self.tokens:
                    yield token
                if self.error is not None:
                    raise self.error
            finally:
                self.closed = True

        sources = self.sources if self.sources is not None else [article.source for article in request.articles]
        return GenerationStream(token_iterator(), sources)


# === 기본 구성요소 ===
@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def cache(fake_clock):
    """TTL Cache (가짜 시계)"""
    return TTLCache(CacheSettings(CACHE_DEFAULT_TTL_MS=300_000, CACHE_MAX_SIZE=100), clock=fake_clock)


@pytest.fixture
def deduplicator():
    return RequestDeduplicator()


@pytest.fixture
def rate_limiter(fake_clock):
    """분당 10회 요청 제한"""
    return RateLimiter(
        RateLimitSettings(RATE_LIMIT_MAX_REQUESTS=10, RATE_LIMIT_WINDOW_MS=60_000),
        clock=fake_clock,
    )


# === Database Fixtures ===
@pytest.fixture
async def session_factory():
    """인메모리 SQLite 세션 팩토리"""
    factory = DatabaseSessionFactory(DatabaseSettings(DATABASE_URL="sqlite+aiosqlite:///:memory:"))
    await factory.create_tables()
    yield factory
    await factory.close()


@pytest.fixture
def chat_session_repository(session_factory):
    return ChatSessionRepository(session_factory=session_factory)


@pytest.fixture
def chat_session_service(chat_session_repository):
    return ChatSessionService(repository=chat_session_repository)


@pytest.fixture
def chat_message_service(chat_session_repository, chat_session_service):
    return ChatMessageService(repository=chat_session_repository, session_service=chat_session_service)


# === Wiki Fixtures ===
@pytest.fixture
def sample_articles():
    """샘플 위키 문서"""
    return [
        WikiArticle(
            id="1",
            title="Course Registration",
            slug="course-registration",
            category="Academics",
            content="# Registration\nRegister for courses in TUMonline before the deadline.\n\n"
                    "# Deadlines\nCourse registration closes two weeks after the semester starts.",
        ),
        WikiArticle(
            id="2",
            title="Mensa Guide",
            slug="mensa-guide",
            category="Campus Life",
            content="The mensa serves lunch on every campus. Students pay reduced prices.",
        ),
        WikiArticle(
            id="3",
            title="Library Services",
            slug="library-services",
            category="Student Services",
            content="The library offers study rooms and course reserves for students.",
        ),
    ]


@pytest.fixture
def wiki_repository(sample_articles):
    return InMemoryWikiContentRepository(sample_articles)


@pytest.fixture
def classifier():
    return QueryClassifier(ClassifierSettings())


@pytest.fixture
def retrieval_service(wiki_repository, cache, deduplicator, classifier):
    return RetrievalService(
        repository=wiki_repository,
        cache=cache,
        deduplicator=deduplicator,
        classifier=classifier,
        settings=WikiSettings(),
    )


@pytest.fixture
def sample_source():
    return ArticleSource(title="X", slug="x", category="c")


# === Chatbot Fixtures ===
@pytest.fixture
def stub_llm_service():
    return StubLLMService()


@pytest.fixture
def chatbot_service(
    rate_limiter,
    chat_session_service,
    chat_message_service,
    retrieval_service,
    classifier,
    stub_llm_service,
):
    return ChatbotService(
        rate_limiter=rate_limiter,
        chat_session_service=chat_session_service,
        chat_message_service=chat_message_service,
        retrieval_service=retrieval_service,
        classifier=classifier,
        llm_service=stub_llm_service,
    )


@pytest.fixture
def mock_chat_model():
    """astream 을 흉내내는 Mock 채팅 모델"""
    mock = MagicMock()

    async def mock_astream(messages, **kwargs):
        for content in ("Hel", "lo"):
            chunk = MagicMock()
            chunk.content = content
            yield chunk

    mock.astream = mock_astream
    return mock


@pytest.fixture(autouse=True)
def test_info(request):
    """테스트 정보 출력"""
    logger = logging.getLogger()
    logger.info(f"테스트 시작: {request.node.name}")
    yield
    logger.info(f"테스트 완료: {request.node.name}")
