# webapp/routers/chat.py
import logging
from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse, StreamingResponse

from webapp.dtos import (
    ChatRequest,
    ChatMessageDTO,
    ChatSessionDTO,
    CreateSessionRequest,
    HealthDTO,
    SessionDetailDTO,
    SessionListDTO,
    SessionResponseDTO,
    UpdateSessionRequest,
)
from webapp.dependency import (
    get_chat_message_service,
    get_chat_session_service,
    get_chatbot_service,
    get_current_user_id,
    get_llm_settings,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

@router.post(
    "/message",
    summary="채팅 스트리밍",
    description="사용자 메시지를 받아 위키 문서 기반 응답을 SSE 로 스트리밍합니다.",
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def send_message(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    chatbot_service = Depends(get_chatbot_service),
):
    """채팅 스트리밍"""
    # 헤더 전송 전 단계의 실패는 예외 처리기가 HTTP 오류로 응답
    turn = await chatbot_service.prepare_turn(user_id, request.session_id, request.message)

    async def event_stream():
        frames = chatbot_service.stream_turn(turn)
        try:
            async for frame in frames:
                yield frame.to_sse()
        finally:
            # 클라이언트 연결 종료 시 생성 스트림까지 닫는다
            await frames.aclose()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-RateLimit-Remaining": str(turn.rate_limit_remaining)},
    )

@router.get(
    "/sessions",
    response_model=SessionListDTO,
    summary="세션 목록"
)
async def list_sessions(
    user_id: str = Depends(get_current_user_id),
    session_service = Depends(get_chat_session_service),
    message_service = Depends(get_chat_message_service),
) -> SessionListDTO:
    """세션 목록 (메시지 수 포함)"""
    sessions = await session_service.list_sessions(user_id)
    counts = await message_service.get_message_counts([session.id for session in sessions])
    return SessionListDTO(
        sessions=[ChatSessionDTO.from_domain(session, counts.get(session.id, 0)) for session in sessions]
    )

@router.post(
    "/sessions",
    response_model=ChatSessionDTO,
    status_code=201,
    summary="세션 생성"
)
async def create_session(
    request: CreateSessionRequest = None,
    user_id: str = Depends(get_current_user_id),
    session_service = Depends(get_chat_session_service),
) -> ChatSessionDTO:
    """세션 생성"""
    title = request.title if request and request.title else None
    if title:
        session = await session_service.create_session(user_id, title)
    else:
        session = await session_service.create_session(user_id)
    return ChatSessionDTO.from_domain(session, 0)

@router.get(
    "/sessions/{session_id}",
    response_model=SessionDetailDTO,
    summary="세션 상세 조회"
)
async def get_session(
    session_id: str = Path(..., description="세션 ID"),
    user_id: str = Depends(get_current_user_id),
    session_service = Depends(get_chat_session_service),
    message_service = Depends(get_chat_message_service),
) -> SessionDetailDTO:
    """세션 및 메시지 조회"""
    session = await session_service.get_session(session_id, user_id)
    messages = await message_service.get_messages(session_id)
    return SessionDetailDTO(
        session=ChatSessionDTO.from_domain(session, len(messages)),
        messages=[ChatMessageDTO.from_domain(message) for message in messages],
    )

@router.patch(
    "/sessions/{session_id}",
    response_model=ChatSessionDTO,
    summary="세션 제목 변경"
)
async def update_session(
    request: UpdateSessionRequest,
    session_id: str = Path(..., description="세션 ID"),
    user_id: str = Depends(get_current_user_id),
    session_service = Depends(get_chat_session_service),
) -> ChatSessionDTO:
    """세션 제목 변경"""
    session = await session_service.update_session_title(session_id, user_id, request.title)
    return ChatSessionDTO.from_domain(session)

@router.delete(
    "/sessions/{session_id}",
    response_model=SessionResponseDTO,
    summary="세션 삭제"
)
async def delete_session(
    session_id: str = Path(..., description="세션 ID"),
    user_id: str = Depends(get_current_user_id),
    session_service = Depends(get_chat_session_service),
) -> SessionResponseDTO:
    """세션 삭제 (메시지 포함)"""
    await session_service.delete_session(session_id, user_id)
    return SessionResponseDTO(message="Session deleted", session_id=session_id)

@router.get(
    "/health",
    response_model=HealthDTO,
    summary="챗봇 설정 상태"
)
async def health(llm_settings = Depends(get_llm_settings)):
    """설정 검증 결과"""
    validation = llm_settings.validate_config()
    summary = llm_settings.get_config_summary()

    if not validation.is_valid:
        body = HealthDTO(
            status="error",
            message="Chatbot configuration is invalid",
            errors=validation.errors,
            warnings=validation.warnings,
            config=summary,
        )
        return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))

    if validation.warnings:
        return HealthDTO(
            status="warning",
            message="Chatbot is operational but has configuration warnings",
            warnings=validation.warnings,
            config=summary,
        )

    return HealthDTO(status="ok", message="Chatbot configuration is valid", config=summary)
