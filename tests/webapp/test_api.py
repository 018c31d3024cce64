# tests/webapp/test_api.py
import json
import logging
from datetime import datetime, timezone

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from webapp.container import create_container
from webapp.main import create_app
from wiki_chat.chat_session.repository import ChatSessionRepository
from wiki_chat.chat_session.service import ChatMessageService, ChatSessionService
from wiki_chat.chatbot.service import ChatbotService
from wiki_chat.database.session_factory import DatabaseSessionFactory
from wiki_chat.database.settings import DatabaseSettings
from wiki_chat.exceptions import GenerationServiceException
from wiki_chat.llm.settings import LLMSettings

USER_HEADERS = {"X-User-Id": "user-1"}
OTHER_USER_HEADERS = {"X-User-Id": "user-2"}


def parse_frames(body: str) -> list:
    """SSE 본문을 프레임 목록으로 변환"""
    return [
        json.loads(event[len("data: "):])
        for event in body.split("\n\n")
        if event.startswith("data: ")
    ]


# === Fixtures ===
@pytest.fixture
def api_container(cache, rate_limiter, wiki_repository, retrieval_service, classifier, stub_llm_service):
    """테스트용 구성요소로 교체한 애플리케이션 컨테이너

    데이터베이스 엔진은 TestClient 의 이벤트 루프 안에서 생성되도록 지연 생성한다.
    """
    database = DatabaseSessionFactory(DatabaseSettings(DATABASE_URL="sqlite+aiosqlite:///:memory:"))
    repository = ChatSessionRepository(session_factory=database)
    session_service = ChatSessionService(repository=repository)
    message_service = ChatMessageService(repository=repository, session_service=session_service)
    chatbot_service = ChatbotService(
        rate_limiter=rate_limiter,
        chat_session_service=session_service,
        chat_message_service=message_service,
        retrieval_service=retrieval_service,
        classifier=classifier,
        llm_service=stub_llm_service,
    )

    container = create_container()
    container.database.override(providers.Object(database))
    container.cache.override(providers.Object(cache))
    container.wiki_repository.override(providers.Object(wiki_repository))
    container.chat_session_service.override(providers.Object(session_service))
    container.chat_message_service.override(providers.Object(message_service))
    container.chatbot_service.override(providers.Object(chatbot_service))
    container.retrieval_service.override(providers.Object(retrieval_service))
    container.llm_settings.override(
        providers.Object(LLMSettings(OPENAI_API_KEY="sk-test-1234567890", OPENAI_MODEL="gpt-4o-mini"))
    )
    yield container
    container.unwire()


@pytest.fixture
def client(api_container):
    app = create_app(api_container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def lenient_client(api_container):
    """처리되지 않은 예외도 500 응답으로 돌려받는 클라이언트"""
    app = create_app(api_container)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def session_id(client):
    response = client.post("/api/chat/sessions", headers=USER_HEADERS)
    return response.json()["id"]


# === Tests ===
class TestMessageEndpoint:
    """POST /api/chat/message"""

    def test_streams_frames(self, client, session_id):
        # when
        response = client.post(
            "/api/chat/message",
            json={"sessionId": session_id, "message": "mensa lunch"},
            headers=USER_HEADERS,
        )

        # then
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"
        assert response.headers["x-ratelimit-remaining"] == "9"

        frames = parse_frames(response.text)
        assert frames == [
            {"type": "content", "data": "Hel"},
            {"type": "content", "data": "lo"},
            {"type": "sources", "data": [{"title": "Mensa Guide", "slug": "mensa-guide", "category": "Campus Life"}]},
            {"type": "done", "data": None},
        ]

    def test_turn_is_persisted(self, client, session_id):
        client.post(
            "/api/chat/message",
            json={"sessionId": session_id, "message": "mensa lunch"},
            headers=USER_HEADERS,
        )

        detail = client.get(f"/api/chat/sessions/{session_id}", headers=USER_HEADERS).json()

        assert detail["session"]["title"] == "mensa lunch"
        assert detail["session"]["messageCount"] == 2
        assert [message["role"] for message in detail["messages"]] == ["user", "assistant"]
        assert detail["messages"][1]["content"] == "Hello"
        assert detail["messages"][1]["sources"][0]["slug"] == "mensa-guide"

    def test_generation_error_frame(self, client, session_id, stub_llm_service):
        stub_llm_service.error = GenerationServiceException("Request timed out. Please try again.", is_retryable=True)

        response = client.post(
            "/api/chat/message",
            json={"sessionId": session_id, "message": "mensa lunch"},
            headers=USER_HEADERS,
        )

        frames = parse_frames(response.text)
        assert response.status_code == 200
        assert frames[-1] == {"type": "error", "data": "Request timed out. Please try again.", "retryable": True}

    def test_missing_user_is_unauthorized(self, client, session_id):
        response = client.post("/api/chat/message", json={"sessionId": session_id, "message": "hi"})

        assert response.status_code == 401

    def test_missing_session_id(self, client):
        response = client.post("/api/chat/message", json={"message": "hi"}, headers=USER_HEADERS)

        assert response.status_code == 400
        assert response.json()["message"] == "Session ID is required"

    def test_empty_message(self, client, session_id):
        response = client.post(
            "/api/chat/message",
            json={"sessionId": session_id, "message": "   "},
            headers=USER_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Message is required and cannot be empty"

    def test_malformed_body(self, client):
        response = client.post(
            "/api/chat/message",
            content="not json",
            headers={**USER_HEADERS, "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_unknown_session(self, client):
        response = client.post(
            "/api/chat/message",
            json={"sessionId": "missing", "message": "hi"},
            headers=USER_HEADERS,
        )

        assert response.status_code == 404

    def test_foreign_session(self, client, session_id):
        response = client.post(
            "/api/chat/message",
            json={"sessionId": session_id, "message": "hi"},
            headers=OTHER_USER_HEADERS,
        )

        assert response.status_code == 403

    def test_rate_limited(self, client, session_id, rate_limiter):
        # given
        for _ in range(10):
            rate_limiter.check_limit("user-1")

        # when
        response = client.post(
            "/api/chat/message",
            json={"sessionId": session_id, "message": "mensa lunch"},
            headers=USER_HEADERS,
        )

        # then
        assert response.status_code == 429
        assert response.headers["retry-after"] == "60"
        assert response.headers["x-ratelimit-remaining"] == "0"
        assert response.json()["waitTimeMs"] == 60_000
        assert response.json()["retryAfter"] == 60
        reset_at = datetime.fromisoformat(response.headers["x-ratelimit-reset"])
        assert reset_at.tzinfo is not None
        assert reset_at > datetime.now(timezone.utc)


class TestSessionEndpoints:
    """세션 관리 API"""

    def test_create_session(self, client):
        response = client.post("/api/chat/sessions", json={"title": "Thesis"}, headers=USER_HEADERS)

        assert response.status_code == 201
        assert response.json()["title"] == "Thesis"
        assert response.json()["messageCount"] == 0

    def test_create_session_with_default_title(self, client):
        response = client.post("/api/chat/sessions", headers=USER_HEADERS)

        assert response.json()["title"] == "New Conversation"

    def test_list_sessions_only_own(self, client, session_id):
        client.post("/api/chat/sessions", headers=OTHER_USER_HEADERS)

        sessions = client.get("/api/chat/sessions", headers=USER_HEADERS).json()["sessions"]

        assert [session["id"] for session in sessions] == [session_id]
        assert sessions[0]["messageCount"] == 0

    def test_update_title(self, client, session_id):
        response = client.patch(
            f"/api/chat/sessions/{session_id}",
            json={"title": "Mensa questions"},
            headers=USER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Mensa questions"

    def test_update_title_rejects_blank(self, client, session_id):
        response = client.patch(f"/api/chat/sessions/{session_id}", json={"title": "  "}, headers=USER_HEADERS)

        assert response.status_code == 400

    def test_delete_session(self, client, session_id):
        response = client.delete(f"/api/chat/sessions/{session_id}", headers=USER_HEADERS)

        assert response.status_code == 200
        assert response.json()["sessionId"] == session_id
        assert client.get(f"/api/chat/sessions/{session_id}", headers=USER_HEADERS).status_code == 404

    def test_foreign_session_detail(self, client, session_id):
        response = client.get(f"/api/chat/sessions/{session_id}", headers=OTHER_USER_HEADERS)

        assert response.status_code == 403

    def test_unexpected_error_is_logged_with_request_context(self, api_container, lenient_client, caplog, monkeypatch):
        """분류되지 않은 오류는 500 으로 응답하고 작업, 사용자, 세션을 기록"""
        # given
        session_id = lenient_client.post("/api/chat/sessions", headers=USER_HEADERS).json()["id"]

        async def broken_get_session(session_id, user_id):
            raise RuntimeError("database exploded")

        monkeypatch.setattr(api_container.chat_session_service(), "get_session", broken_get_session)

        # when
        with caplog.at_level(logging.ERROR, logger="webapp.main"):
            response = lenient_client.get(f"/api/chat/sessions/{session_id}", headers=USER_HEADERS)

        # then
        assert response.status_code == 500
        assert response.json()["message"] == "Internal server error occurred. Please try again."
        record = next(record for record in caplog.records if "database exploded" in record.getMessage())
        assert f"operation=GET /api/chat/sessions/{session_id}" in record.getMessage()
        assert "user=user-1" in record.getMessage()
        assert f"session={session_id}" in record.getMessage()
        assert "at=" in record.getMessage()


class TestWikiEndpoints:
    """위키 조회 API"""

    def test_categories(self, client):
        response = client.get("/api/wiki/categories")

        assert response.status_code == 200
        assert [item["category"] for item in response.json()] == ["Academics", "Campus Life", "Student Services"]
        assert all(item["articleCount"] == 1 for item in response.json())

    def test_articles_by_category(self, client):
        response = client.get("/api/wiki/category/Campus Life")

        assert response.status_code == 200
        assert [article["slug"] for article in response.json()] == ["mensa-guide"]
        assert response.json()[0]["title"] == "Mensa Guide"

    def test_unknown_category_is_empty(self, client):
        response = client.get("/api/wiki/category/Nightlife")

        assert response.status_code == 200
        assert response.json() == []


class TestHealthEndpoint:

    def test_valid_configuration(self, client):
        response = client.get("/api/chat/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["config"]["api_key"] == "sk-t...7890"

    def test_invalid_configuration(self, client, api_container):
        api_container.llm_settings.override(providers.Object(LLMSettings(OPENAI_API_KEY="")))

        response = client.get("/api/chat/health")

        assert response.status_code == 500
        assert response.json()["status"] == "error"
        assert "OPENAI_API_KEY is not set" in response.json()["errors"]
