# wiki_chat/cache/settings.py
from pydantic import Field
from pydantic_settings import BaseSettings


class CacheSettings(BaseSettings):
    """캐시 설정"""

    CACHE_DEFAULT_TTL_MS: int = Field(default=300_000, gt=0, description="기본 TTL (ms)")
    CACHE_MAX_SIZE: int = Field(default=1000, ge=1, description="최대 항목 수")
    CACHE_CLEANUP_INTERVAL_MS: int = Field(default=60_000, gt=0, description="만료 항목 정리 주기 (ms)")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }
