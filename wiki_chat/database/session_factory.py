"""
Database Session Factory - 세션 팩토리 패턴
DI 기반 세션 관리 및 생명주기 제어
"""
import logging
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

import sqlalchemy
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker
)
from sqlalchemy.pool import NullPool, StaticPool

from .settings import DatabaseSettings
from .base import Base

logger = logging.getLogger(__name__)


class DatabaseSessionFactory:
    """비동기 데이터베이스 세션 팩토리"""

    def __init__(self, settings: DatabaseSettings):
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        """비동기 엔진 반환 (지연 생성)"""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> AsyncEngine:
        """데이터베이스 엔진 생성"""
        db_type = self.settings.db_type
        if db_type == "sqlite":
            engine = create_async_engine(
                _with_driver(self.settings.DATABASE_URL, "sqlite", "aiosqlite"),
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=self.settings.DB_ECHO,
            )
            # SQLite 는 연결마다 외래키 제약을 켜야 CASCADE 가 동작
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        elif db_type == "postgresql":
            engine = create_async_engine(
                _with_driver(self.settings.DATABASE_URL, "postgresql", "asyncpg"),
                poolclass=NullPool,
                echo=self.settings.DB_ECHO,
            )
        else:
            raise ValueError(f"지원하지 않는 데이터베이스 타입: {db_type}")

        logger.info(f"Database engine created: {db_type}")
        return engine

    @property
    def session_factory(self) -> async_sessionmaker:
        """세션 팩토리 반환"""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                autoflush=self.settings.DB_AUTOFLUSH,
                expire_on_commit=self.settings.DB_EXPIRE_ON_COMMIT
            )
        return self._session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """세션 컨텍스트 매니저 (성공 시 커밋, 실패 시 롤백)"""
        session: AsyncSession = self.session_factory()
        try:
            yield session
            await session.commit()
        except sqlalchemy.exc.IntegrityError as e:
            await session.rollback()
            logger.error(f"Integrity error: {e}")
            raise
        except Exception as e:
            await session.rollback()
            logger.exception(f"Session rolled back: {e}")
            raise
        finally:
            await session.close()

    async def create_tables(self):
        """데이터베이스 테이블 생성"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_tables(self):
        """데이터베이스 테이블 삭제"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped")

    async def close(self):
        """엔진 정리"""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine disposed")


def _with_driver(url: str, scheme: str, driver: str) -> str:
    """드라이버가 지정되지 않은 URL 에 비동기 드라이버 지정"""
    prefix = f"{scheme}://"
    if url.startswith(prefix):
        return f"{scheme}+{driver}://" + url[len(prefix):]
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
