# wiki_chat/rate_limit/settings.py
from pydantic import Field
from pydantic_settings import BaseSettings


class RateLimitSettings(BaseSettings):
    """요청 제한 설정"""

    RATE_LIMIT_MAX_REQUESTS: int = Field(default=10, ge=1, description="윈도우당 최대 요청 수")
    RATE_LIMIT_WINDOW_MS: int = Field(default=60_000, gt=0, description="윈도우 크기 (ms)")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }
