# wiki_chat/chatbot/service.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import AsyncGenerator, List, Optional

from wiki_chat.chat_session.domains import DEFAULT_SESSION_TITLE, ROLE_ASSISTANT, ROLE_USER
from wiki_chat.chat_session.service import ChatMessageService, ChatSessionService
from wiki_chat.exceptions import (
    ContentRepositoryException,
    GenerationServiceException,
    InvalidRequestException,
    RateLimitExceededException,
    ServerException,
    WikiChatException,
)
from wiki_chat.llm.domains import GenerationRequest, GenerationStream
from wiki_chat.llm.service import LLMService, to_llm_messages
from wiki_chat.rate_limit.service import RateLimiter
from wiki_chat.wiki.classifier import QueryClassifier
from wiki_chat.wiki.retrieval import RetrievalService
from .domains import ChatStage, ChatTurn, StreamFrame

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."
MAX_TITLE_LENGTH = 50


def derive_session_title(message: str) -> str:
    """첫 메시지로 세션 제목 생성"""
    message = " ".join(message.split())
    if len(message) <= MAX_TITLE_LENGTH:
        return message
    return message[:MAX_TITLE_LENGTH] + "..."


class ChatbotService:
    """챗봇 응답 스트리밍 서비스 - 요청 상태 머신 전담

    prepare_turn 은 스트림 시작 전 단계(요청 제한, 입력 검증, 세션 확인,
    사용자 메시지 저장, 검색, 분류)를 수행하고 실패 시 예외를 던진다.
    stream_turn 은 응답 헤더가 나간 뒤의 단계로, 실패는 error 프레임으로 전달한다.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        chat_session_service: ChatSessionService,
        chat_message_service: ChatMessageService,
        retrieval_service: RetrievalService,
        classifier: QueryClassifier,
        llm_service: LLMService,
    ):
        self._rate_limiter = rate_limiter
        self._session_service = chat_session_service
        self._message_service = chat_message_service
        self._retrieval_service = retrieval_service
        self._classifier = classifier
        self._llm_service = llm_service

    # === 스트림 시작 전 단계 ===
    async def prepare_turn(
        self,
        user_id: str,
        session_id: Optional[str],
        message: Optional[str],
    ) -> ChatTurn:
        stage = ChatStage.RATE_LIMIT_CHECK
        try:
            limit = self._rate_limiter.check_limit(user_id)
            if not limit.allowed:
                raise RateLimitExceededException(
                    "Too many requests. Please wait before sending another message.",
                    wait_time_ms=limit.wait_time_ms,
                )

            stage = ChatStage.VALIDATE_INPUT
            session_id, message = self._validate_inputs(session_id, message)

            stage = ChatStage.VERIFY_SESSION
            session = await self._session_service.get_session(session_id, user_id)

            stage = ChatStage.PERSIST_USER_MESSAGE
            previous = await self._message_service.get_messages(session_id)
            await self._message_service.save_message(session_id, user_id, ROLE_USER, message)
            if not previous and session.title == DEFAULT_SESSION_TITLE:
                await self._session_service.update_session_title(
                    session_id, user_id, derive_session_title(message)
                )

            stage = ChatStage.RETRIEVE
            articles = await self._retrieval_service.retrieve_relevant_articles(message)
            available_categories: List[str] = []
            if not articles:
                available_categories = await self._fetch_category_names()

            stage = ChatStage.CLASSIFY
            classification = self._classifier.classify(message, articles)
            if classification.is_out_of_scope and not available_categories:
                available_categories = await self._fetch_category_names()

        except WikiChatException:
            raise
        except Exception as e:
            self._log_unexpected(stage, user_id, session_id, e)
            raise ServerException(GENERIC_ERROR_MESSAGE) from e

        return ChatTurn(
            user_id=user_id,
            session_id=session_id,
            message=message,
            articles=articles,
            classification=classification,
            available_categories=available_categories,
            history=to_llm_messages(previous),
            rate_limit_remaining=limit.remaining,
        )

    # === 스트리밍 단계 ===
    async def stream_turn(self, turn: ChatTurn) -> AsyncGenerator[StreamFrame, None]:
        """토큰을 즉시 전달하면서 누적하고, 완료된 경우에만 응답을 저장"""
        stage = ChatStage.GENERATE
        stream: Optional[GenerationStream] = None
        accumulated: List[str] = []
        try:
            stream = await self._llm_service.generate_response(
                GenerationRequest(
                    user_message=turn.message,
                    articles=turn.articles,
                    history=turn.history,
                    classification=turn.classification,
                    available_categories=turn.available_categories,
                )
            )
            async for token in stream:
                accumulated.append(token)
                yield StreamFrame.content(token)

            stage = ChatStage.PERSIST_ASSISTANT_MESSAGE
            sources = stream.sources
            await self._message_service.save_message(
                turn.session_id,
                turn.user_id,
                ROLE_ASSISTANT,
                "".join(accumulated),
                sources,
            )

            stage = ChatStage.EMIT_SOURCES
            yield StreamFrame.sources(sources)

            stage = ChatStage.EMIT_DONE
            yield StreamFrame.done()

        except GenerationServiceException as e:
            logger.warning(
                f"Generation failed for session {turn.session_id} after {len(accumulated)} tokens: "
                f"{e.message} (retryable={e.is_retryable})"
            )
            yield StreamFrame.error(e.message, e.is_retryable)
        except (asyncio.CancelledError, GeneratorExit):
            # 연결이 끊긴 턴은 저장하지 않고 부분 응답은 버린다
            logger.info(
                f"Client disconnected during {stage.value} for session {turn.session_id}, "
                f"discarding {len(accumulated)} tokens"
            )
            raise
        except Exception as e:
            self._log_unexpected(stage, turn.user_id, turn.session_id, e)
            yield StreamFrame.error(GENERIC_ERROR_MESSAGE, True)
        finally:
            if stream is not None:
                await stream.aclose()

    # === 내부 Helper 메서드들 ===
    def _validate_inputs(self, session_id: Optional[str], message: Optional[str]):
        """입력 검증"""
        if not isinstance(session_id, str) or not session_id.strip():
            raise InvalidRequestException("Session ID is required")

        if not isinstance(message, str) or not message.strip():
            raise InvalidRequestException("Message is required and cannot be empty")

        return session_id.strip(), message.strip()

    async def _fetch_category_names(self) -> List[str]:
        """안내용 카테고리 목록 (실패 시 빈 목록, 프롬프트가 기본 목록 사용)"""
        try:
            categories = await self._retrieval_service.get_available_categories()
        except ContentRepositoryException as e:
            logger.warning(f"Failed to fetch categories for suggestions: {e.message}")
            return []
        return RetrievalService.category_names(categories)

    def _log_unexpected(self, stage: ChatStage, user_id: str, session_id: Optional[str], error: Exception):
        logger.error(
            f"Unexpected error in chat {stage.value}: user={user_id} session={session_id} "
            f"at={datetime.now(timezone.utc).isoformat()} error={type(error).__name__}: {error}",
            exc_info=True,
        )
