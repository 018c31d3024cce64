"""
Database Settings - 채팅 저장소 전용 설정
"""
from pydantic import Field
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    """데이터베이스 전용 설정"""

    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./wiki_chat.db",
        description="데이터베이스 연결 URL (sqlite 또는 postgresql)"
    )

    # 세션 설정
    DB_ECHO: bool = Field(default=False, description="SQL 로깅 여부")
    DB_AUTOFLUSH: bool = Field(default=True, description="자동 플러시 여부")
    DB_EXPIRE_ON_COMMIT: bool = Field(default=False, description="커밋 시 만료 여부")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def db_type(self) -> str:
        """URL 스킴에서 데이터베이스 종류 추출"""
        return self.DATABASE_URL.split(":", 1)[0].split("+", 1)[0]
