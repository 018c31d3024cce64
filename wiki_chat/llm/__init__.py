# wiki_chat/llm/__init__.py
from .domains import LLMMessage, GenerationRequest, GenerationStream, ConfigValidation
from .settings import LLMSettings
from .service import LLMService, classify_generation_error
from .prompt import create_system_prompt
from .container import create_llm_container

__all__ = [
    "LLMMessage",
    "GenerationRequest",
    "GenerationStream",
    "ConfigValidation",
    "LLMSettings",
    "LLMService",
    "classify_generation_error",
    "create_system_prompt",
    "create_llm_container",
]
