# wiki_chat/llm/service.py
import logging
from typing import AsyncIterator, List, Optional

import openai
from langchain_openai import ChatOpenAI
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from wiki_chat.exceptions import GenerationServiceException
from .domains import GenerationRequest, GenerationStream, LLMMessage
from .prompt import create_system_prompt
from .settings import LLMSettings

logger = logging.getLogger(__name__)


def classify_generation_error(error: Exception) -> GenerationServiceException:
    """생성 백엔드 예외를 재시도 가능 여부가 표시된 예외로 변환"""
    if isinstance(error, GenerationServiceException):
        return error

    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return GenerationServiceException(
            "Authentication failed. Please check your API key configuration.",
            is_retryable=False,
        )

    if isinstance(error, openai.RateLimitError):
        # 할당량 소진은 재시도해도 해결되지 않음
        if getattr(error, "code", None) == "insufficient_quota":
            return GenerationServiceException(
                "The AI service quota has been exhausted. Please contact the administrator.",
                is_retryable=False,
            )
        return GenerationServiceException(
            "Rate limit exceeded. Please try again in a moment.",
            is_retryable=True,
        )

    if isinstance(error, openai.APITimeoutError):
        return GenerationServiceException("Request timed out. Please try again.", is_retryable=True)

    if isinstance(error, openai.APIConnectionError):
        return GenerationServiceException(
            "Connection interrupted while receiving response. Please try again.",
            is_retryable=True,
        )

    if isinstance(error, openai.APIStatusError):
        if error.status_code >= 500:
            return GenerationServiceException(
                "The AI service is temporarily unavailable. Please try again later.",
                is_retryable=True,
            )
        return GenerationServiceException(
            "Failed to generate response. Please try again.",
            is_retryable=False,
        )

    return GenerationServiceException(
        "An unexpected error occurred. Please try again.",
        is_retryable=True,
    )


def format_conversation_history(history) -> List[BaseMessage]:
    """저장된 대화 이력을 LangChain 메시지로 변환"""
    messages: List[BaseMessage] = []
    for message in history:
        if message.role == "assistant":
            messages.append(AIMessage(content=message.content))
        else:
            messages.append(HumanMessage(content=message.content))
    return messages


class LLMService:
    """LLM 비즈니스 서비스 - 검색 증강 스트리밍 응답 생성"""

    def __init__(self, settings: LLMSettings, chat_model: Optional[BaseChatModel] = None):
        self._settings = settings
        self._chat_model = chat_model

        validation = settings.validate_config()
        for warning in validation.warnings:
            logger.warning(f"LLM configuration warning: {warning}")

    @property
    def chat_model(self) -> BaseChatModel:
        """채팅 모델 (지연 생성)"""
        if self._chat_model is None:
            if not self._settings.OPENAI_API_KEY:
                raise GenerationServiceException(
                    "The AI service is not configured. Please contact the administrator.",
                    is_retryable=False,
                )
            kwargs = {
                "model": self._settings.OPENAI_MODEL,
                "api_key": self._settings.OPENAI_API_KEY,
                "temperature": self._settings.temperature,
                "max_tokens": self._settings.max_tokens,
                "max_retries": self._settings.OPENAI_MAX_RETRIES,
                "timeout": self._settings.OPENAI_TIMEOUT,
                "streaming": True,
            }
            if self._settings.OPENAI_BASE_URL:
                kwargs["base_url"] = self._settings.OPENAI_BASE_URL
            self._chat_model = ChatOpenAI(**kwargs)
        return self._chat_model

    def build_messages(self, request: GenerationRequest) -> List[BaseMessage]:
        """시스템 프롬프트 + 이전 대화 + 현재 질의"""
        system_prompt = create_system_prompt(
            request.articles,
            request.classification,
            request.available_categories,
        )
        logger.info(
            f"Generating response with {len(request.articles)} articles "
            f"(system prompt: {len(system_prompt)} chars)"
        )
        return [
            SystemMessage(content=system_prompt),
            *format_conversation_history(request.history),
            HumanMessage(content=request.user_message),
        ]

    async def generate_response(self, request: GenerationRequest) -> GenerationStream:
        """토큰 스트림 생성 (호출자는 소비 후 또는 중단 시 aclose 호출)"""
        messages = self.build_messages(request)
        sources = [article.source for article in request.articles]
        return GenerationStream(self._stream_tokens(messages), sources)

    async def _stream_tokens(self, messages: List[BaseMessage]) -> AsyncIterator[str]:
        try:
            async for chunk in self.chat_model.astream(messages):
                content = chunk.content if isinstance(chunk.content, str) else ""
                if content:
                    yield content
        except GenerationServiceException:
            raise
        except Exception as e:
            error = classify_generation_error(e)
            logger.error(
                f"LLM generation failed: {type(e).__name__}: {e} (retryable={error.is_retryable})"
            )
            raise error from e


def to_llm_messages(messages) -> List[LLMMessage]:
    """저장 메시지를 생성 요청용 이력으로 변환"""
    return [LLMMessage(role=message.role, content=message.content) for message in messages]
