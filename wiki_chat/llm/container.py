# wiki_chat/llm/container.py
from dependency_injector import containers, providers
from .service import LLMService
from .settings import LLMSettings

class LLMContainer(containers.DeclarativeContainer):
    """LLM 모듈 DI Container"""

    # === Settings ===
    settings = providers.Singleton(LLMSettings)

    # === Main Service ===
    service = providers.Singleton(
        LLMService,
        settings=settings
    )

def create_llm_container() -> LLMContainer:
    return LLMContainer()
