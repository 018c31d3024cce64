# wiki_chat/chat_session/service.py
from typing import Dict, List, Optional
import logging
from datetime import datetime, timezone

from .domains import (
    ChatSession,
    ChatMessage,
    ArticleSource,
    DEFAULT_SESSION_TITLE,
    MESSAGE_ROLES,
)
from .repository import ChatSessionRepository
from wiki_chat.exceptions import (
    InvalidRequestException,
    SessionNotFoundException,
    SessionPermissionException,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255


class ChatSessionService:
    """채팅 세션 관리 서비스 - 대화방 생명주기와 소유권 검증 전담"""

    def __init__(self, repository: ChatSessionRepository):
        self._repository = repository

    # === 세션 생명주기 관리 ===
    async def create_session(self, user_id: str, title: str = DEFAULT_SESSION_TITLE) -> ChatSession:
        """새 채팅 세션 생성"""
        session = ChatSession.new(owner_user_id=user_id, title=self._normalize_title(title))
        await self._repository.save_session(session)
        logger.info(f"New session created: {session.id} (user={user_id})")
        return session

    async def get_session(self, session_id: str, user_id: str) -> ChatSession:
        """세션 조회 (존재 및 소유권 확인)"""
        session = await self._repository.find_session_by_id(session_id)
        if not session:
            raise SessionNotFoundException(f"Session {session_id} not found")
        if not session.is_owned_by(user_id):
            logger.warning(f"User {user_id} attempted to access session {session_id}")
            raise SessionPermissionException(f"Session {session_id} does not belong to this user")
        return session

    async def list_sessions(self, user_id: str) -> List[ChatSession]:
        """사용자 세션 목록 (최근 갱신 순)"""
        return await self._repository.find_sessions_by_owner(user_id)

    async def touch_session(self, session_id: str, user_id: str) -> ChatSession:
        """세션 갱신 시각 업데이트"""
        session = await self.get_session(session_id, user_id)
        session.updated_at = datetime.now(timezone.utc)
        await self._repository.touch_session(session_id, session.updated_at)
        return session

    async def update_session_title(self, session_id: str, user_id: str, title: str) -> ChatSession:
        """세션 제목 변경"""
        if not title or not title.strip():
            raise InvalidRequestException("Title must not be empty")
        session = await self.get_session(session_id, user_id)
        session.title = self._normalize_title(title)
        session.updated_at = datetime.now(timezone.utc)
        await self._repository.update_session(
            session_id, title=session.title, updated_at=session.updated_at
        )
        return session

    async def delete_session(self, session_id: str, user_id: str) -> None:
        """세션 삭제 (메시지 포함)"""
        await self.get_session(session_id, user_id)
        await self._repository.delete_session(session_id)
        logger.info(f"Session deleted: {session_id}")

    def _normalize_title(self, title: str) -> str:
        title = (title or "").strip() or DEFAULT_SESSION_TITLE
        return title[:MAX_TITLE_LENGTH]


class ChatMessageService:
    """메시지 저장 서비스 - 세션별 추가 전용 로그"""

    def __init__(self, repository: ChatSessionRepository, session_service: ChatSessionService):
        self._repository = repository
        self._session_service = session_service

    async def save_message(
        self,
        session_id: str,
        user_id: str,
        role: str,
        content: str,
        sources: Optional[List[ArticleSource]] = None,
    ) -> ChatMessage:
        """메시지 저장 (세션 갱신 시각도 함께 업데이트)"""
        if role not in MESSAGE_ROLES:
            raise InvalidRequestException(f"Unsupported message role: {role}")

        # 쓰기 전에 소유권 확인
        await self._session_service.touch_session(session_id, user_id)

        message = ChatMessage.new(session_id=session_id, role=role, content=content, sources=sources)
        await self._repository.save_message(message)
        logger.debug(f"Message saved: {message.id} ({role}) in session {session_id}")
        return message

    async def get_messages(self, session_id: str) -> List[ChatMessage]:
        """세션 메시지 목록 (작성 순)"""
        return await self._repository.find_messages_by_session(session_id)

    async def get_message_count(self, session_id: str) -> int:
        return await self._repository.count_messages(session_id)

    async def get_message_counts(self, session_ids: List[str]) -> Dict[str, int]:
        return await self._repository.count_messages_by_sessions(session_ids)
