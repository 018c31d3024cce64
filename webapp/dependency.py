# webapp/dependency.py
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Header

from webapp.container import WikiChatContainer
from wiki_chat.exceptions import AuthorizationException

USER_ID_HEADER = "X-User-Id"

# === 인증 ===
def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER)
) -> str:
    """게이트웨이가 인증 후 전달한 사용자 ID"""
    if not x_user_id or not x_user_id.strip():
        raise AuthorizationException("Authentication required")
    return x_user_id.strip()

# === 핵심 서비스 의존성 ===
@inject
def get_chatbot_service(
    service = Depends(Provide[WikiChatContainer.chatbot_service])
):
    """챗봇 서비스 의존성"""
    return service

@inject
def get_chat_session_service(
    service = Depends(Provide[WikiChatContainer.chat_session_service])
):
    """채팅 세션 서비스 의존성"""
    return service

@inject
def get_chat_message_service(
    service = Depends(Provide[WikiChatContainer.chat_message_service])
):
    """메시지 서비스 의존성"""
    return service

@inject
def get_llm_settings(
    settings = Depends(Provide[WikiChatContainer.llm_settings])
):
    """LLM 설정 의존성"""
    return settings

@inject
def get_retrieval_service(
    service = Depends(Provide[WikiChatContainer.retrieval_service])
):
    """위키 검색 서비스 의존성"""
    return service
