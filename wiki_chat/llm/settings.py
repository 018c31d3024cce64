# wiki_chat/llm/settings.py
from typing import Any, Dict, List

from pydantic_settings import BaseSettings

from .domains import ConfigValidation

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
MAX_TOKENS_LIMIT = 4096

KNOWN_MODELS = [
    "gpt-4-turbo-preview",
    "gpt-4-turbo",
    "gpt-4",
    "gpt-4-0125-preview",
    "gpt-4-1106-preview",
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-3.5-turbo",
    "gpt-3.5-turbo-0125",
    "gpt-3.5-turbo-1106",
]


class LLMSettings(BaseSettings):
    """LLM 관련 설정 - 중앙화된 설정 관리"""

    # === OpenAI 설정 ===
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4-turbo-preview"
    OPENAI_TEMPERATURE: float = DEFAULT_TEMPERATURE
    OPENAI_MAX_TOKENS: int = DEFAULT_MAX_TOKENS
    OPENAI_BASE_URL: str = ""

    # === 재시도/타임아웃 (라이브러리 내장 지수 백오프 사용) ===
    OPENAI_MAX_RETRIES: int = 3
    OPENAI_TIMEOUT: float = 60.0

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def temperature(self) -> float:
        """허용 범위(0-2)를 벗어나면 기본값 사용"""
        if 0 <= self.OPENAI_TEMPERATURE <= 2:
            return self.OPENAI_TEMPERATURE
        return DEFAULT_TEMPERATURE

    @property
    def max_tokens(self) -> int:
        """허용 범위(1-4096)를 벗어나면 기본값 사용"""
        if 1 <= self.OPENAI_MAX_TOKENS <= MAX_TOKENS_LIMIT:
            return self.OPENAI_MAX_TOKENS
        return DEFAULT_MAX_TOKENS

    def validate_config(self) -> ConfigValidation:
        """설정 검증 (예외 없이 오류/경고 목록 반환)"""
        errors: List[str] = []
        warnings: List[str] = []

        if not self.OPENAI_API_KEY:
            errors.append("OPENAI_API_KEY is not set")

        if self.OPENAI_MODEL not in KNOWN_MODELS:
            warnings.append(
                f'Unknown OPENAI_MODEL value: "{self.OPENAI_MODEL}". '
                f"This may cause API errors if the model doesn't exist."
            )

        if self.temperature != self.OPENAI_TEMPERATURE:
            warnings.append(
                f"Invalid OPENAI_TEMPERATURE value: {self.OPENAI_TEMPERATURE} "
                f"(must be between 0 and 2). Using default: {DEFAULT_TEMPERATURE}"
            )

        if self.max_tokens != self.OPENAI_MAX_TOKENS:
            warnings.append(
                f"Invalid OPENAI_MAX_TOKENS value: {self.OPENAI_MAX_TOKENS} "
                f"(must be between 1 and {MAX_TOKENS_LIMIT}). Using default: {DEFAULT_MAX_TOKENS}"
            )

        return ConfigValidation(is_valid=not errors, errors=errors, warnings=warnings)

    def get_config_summary(self) -> Dict[str, Any]:
        """API 키를 가린 설정 요약"""
        return {
            "api_key": _mask_secret(self.OPENAI_API_KEY),
            "model": self.OPENAI_MODEL,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


def _mask_secret(value: str) -> str:
    if not value:
        return "not set"
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"
