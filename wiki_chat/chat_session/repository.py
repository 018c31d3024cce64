"""
채팅 세션 리포지토리 - 세션/메시지 영속성 관리
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, update, delete, func

from wiki_chat.database.session_factory import DatabaseSessionFactory
from .domains import ChatSession, ChatMessage
from .entities import ChatSessionEntity, ChatMessageEntity

logger = logging.getLogger(__name__)


class ChatSessionRepository:
    """채팅 세션 데이터 저장소"""

    def __init__(self, session_factory: DatabaseSessionFactory):
        self._session_factory = session_factory

    # === Session 관리 ===
    async def save_session(self, session: ChatSession) -> ChatSession:
        """새 세션 저장"""
        async with self._session_factory.get_session() as db:
            db.add(ChatSessionEntity.from_domain(session))
        return session

    async def find_session_by_id(self, session_id: str) -> Optional[ChatSession]:
        """ID로 세션 조회"""
        async with self._session_factory.get_session() as db:
            entity = await db.get(ChatSessionEntity, session_id)
            return entity.to_domain() if entity else None

    async def find_sessions_by_owner(self, owner_user_id: str) -> List[ChatSession]:
        """사용자 세션 목록 (최근 갱신 순)"""
        async with self._session_factory.get_session() as db:
            stmt = (
                select(ChatSessionEntity)
                .where(ChatSessionEntity.owner_user_id == owner_user_id)
                .order_by(ChatSessionEntity.updated_at.desc())
            )
            result = await db.execute(stmt)
            return [entity.to_domain() for entity in result.scalars().all()]

    async def update_session(self, session_id: str, **values) -> None:
        """세션 컬럼 갱신"""
        async with self._session_factory.get_session() as db:
            await db.execute(
                update(ChatSessionEntity)
                .where(ChatSessionEntity.id == session_id)
                .values(**values)
            )

    async def touch_session(self, session_id: str, updated_at: datetime) -> None:
        await self.update_session(session_id, updated_at=updated_at)

    async def delete_session(self, session_id: str) -> bool:
        """세션 삭제 (관련 메시지도 같은 트랜잭션에서 삭제)"""
        async with self._session_factory.get_session() as db:
            await db.execute(
                delete(ChatMessageEntity).where(ChatMessageEntity.session_id == session_id)
            )
            result = await db.execute(
                delete(ChatSessionEntity).where(ChatSessionEntity.id == session_id)
            )
            return result.rowcount > 0

    # === Message 관리 ===
    async def save_message(self, message: ChatMessage) -> ChatMessage:
        """메시지 추가 (기존 행은 변경하지 않음)"""
        async with self._session_factory.get_session() as db:
            db.add(ChatMessageEntity.from_domain(message))
        return message

    async def find_messages_by_session(self, session_id: str) -> List[ChatMessage]:
        """세션별 메시지 조회 (작성 순)"""
        async with self._session_factory.get_session() as db:
            stmt = (
                select(ChatMessageEntity)
                .where(ChatMessageEntity.session_id == session_id)
                .order_by(ChatMessageEntity.seq.asc())
            )
            result = await db.execute(stmt)
            return [entity.to_domain() for entity in result.scalars().all()]

    async def count_messages(self, session_id: str) -> int:
        """세션별 메시지 개수"""
        async with self._session_factory.get_session() as db:
            stmt = select(func.count()).select_from(ChatMessageEntity).where(
                ChatMessageEntity.session_id == session_id
            )
            return (await db.execute(stmt)).scalar_one()

    async def count_messages_by_sessions(self, session_ids: List[str]) -> Dict[str, int]:
        """여러 세션의 메시지 개수를 한 번에 조회"""
        if not session_ids:
            return {}
        async with self._session_factory.get_session() as db:
            stmt = (
                select(ChatMessageEntity.session_id, func.count())
                .where(ChatMessageEntity.session_id.in_(session_ids))
                .group_by(ChatMessageEntity.session_id)
            )
            result = await db.execute(stmt)
            counts = {session_id: count for session_id, count in result.all()}
        return {session_id: counts.get(session_id, 0) for session_id in session_ids}
