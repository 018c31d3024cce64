# webapp/main.py
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from webapp.routers import chat, wiki
from webapp.container import WikiChatContainer, create_container
from webapp.dependency import USER_ID_HEADER
from wiki_chat.exceptions import (
    AuthorizationException,
    ClientException,
    NotFoundException,
    PermissionDeniedException,
    RateLimitExceededException,
    ServerException,
    WikiChatException,
)

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s][%(levelname)5s][%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

def _setup_lifespan(container: WikiChatContainer):
    """애플리케이션 생명주기 설정"""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Setting up Wiki Chat application")
        database = container.database()
        await database.create_tables()

        cache = container.cache()
        cache.start_cleanup()
        try:
            yield
        finally:
            logger.info("Tearing down Wiki Chat application")
            await cache.stop_cleanup()
            await container.wiki_repository().aclose()
            await database.close()
    return lifespan

def _create_fastapi_app(lifespan_manager) -> FastAPI:
    """FastAPI 앱 인스턴스 생성"""
    return FastAPI(
        title="Wiki Chat API",
        description="A retrieval-augmented wiki chatbot streaming answers over Server-Sent Events.",
        version="1.0.0",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        lifespan=lifespan_manager,
        generate_unique_id_function=lambda route: route.name,
    )

def _setup_container_and_wiring(container: Optional[WikiChatContainer] = None) -> WikiChatContainer:
    """DI 컨테이너 설정 및 와이어링"""
    container = container or create_container()
    container.wire(modules=["webapp.dependency", "webapp.routers.chat", "webapp.routers.wiki"])
    return container

def get_trace_id():
    """trace ID 생성"""
    return str(uuid.uuid4())[:8]

def _error_response(status_code: int, exc: Exception, message, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "message": message,
            "code": exc.__class__.__name__,
            "trace_id": get_trace_id(),
            **extra,
        },
        headers=headers,
    )

def _reset_at(wait_time_ms: int) -> str:
    """제한이 풀리는 시각 (ISO 8601, UTC)"""
    reset_at = datetime.now(timezone.utc) + timedelta(milliseconds=wait_time_ms)
    return reset_at.isoformat(timespec="milliseconds")

def _request_context(request: Request) -> str:
    """오류 로그용 요청 정보 (작업, 사용자, 세션, 시각)"""
    session_id = request.path_params.get("session_id") or request.query_params.get("sessionId")
    return (
        f"operation={request.method} {request.url.path} "
        f"user={request.headers.get(USER_ID_HEADER) or '-'} "
        f"session={session_id or '-'} "
        f"at={datetime.now(timezone.utc).isoformat()}"
    )

def _register_exception_handlers(app: FastAPI) -> None:
    """예외 처리기 등록 (가장 구체적인 예외 클래스의 처리기가 선택됨)"""

    @app.exception_handler(ClientException)
    async def client_exception_handler(request: Request, exc: ClientException):
        logger.warning(f"Client exception: {exc.message}")
        return _error_response(400, exc, exc.message)

    @app.exception_handler(AuthorizationException)
    async def authorization_exception_handler(request: Request, exc: AuthorizationException):
        logger.warning(f"Authorization exception: {exc.message}")
        return _error_response(401, exc, exc.message)

    @app.exception_handler(PermissionDeniedException)
    async def permission_denied_exception_handler(request: Request, exc: PermissionDeniedException):
        logger.warning(f"Permission denied exception: {exc.message}")
        return _error_response(403, exc, exc.message)

    @app.exception_handler(RateLimitExceededException)
    async def rate_limit_exception_handler(request: Request, exc: RateLimitExceededException):
        logger.warning(f"Rate limit exception: {exc.message}")
        retry_after = exc.retry_after_seconds
        return _error_response(
            429,
            exc,
            exc.message,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": _reset_at(exc.wait_time_ms),
            },
            waitTimeMs=exc.wait_time_ms,
            retryAfter=retry_after,
        )

    @app.exception_handler(NotFoundException)
    async def not_found_exception_handler(request: Request, exc: NotFoundException):
        logger.warning(f"Not found exception: {exc.message}")
        return _error_response(404, exc, exc.message)

    @app.exception_handler(ServerException)
    async def server_exception_handler(request: Request, exc: ServerException):
        logger.error(f"Server exception: {exc.message} ({_request_context(request)})", exc_info=True)
        return _error_response(500, exc, exc.message)

    @app.exception_handler(WikiChatException)
    async def wikichat_exception_handler(request: Request, exc: WikiChatException):
        logger.error(f"WikiChat exception: {exc.message}", exc_info=True)
        return _error_response(503, exc, exc.message)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unexpected exception: {str(exc)} ({_request_context(request)})", exc_info=True)
        return _error_response(500, exc, "Internal server error occurred. Please try again.")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error: {exc.errors()}")
        return _error_response(400, exc, "Invalid request body", errors=jsonable_errors(exc))

def jsonable_errors(exc: RequestValidationError) -> list:
    """검증 오류 목록을 JSON 직렬화 가능한 형태로 변환"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]

def create_app(container: Optional[WikiChatContainer] = None) -> FastAPI:
    """애플리케이션 생성 및 설정"""
    # 컨테이너 설정
    container = _setup_container_and_wiring(container)

    # 생명주기 관리자 설정
    lifespan_manager = _setup_lifespan(container)

    # FastAPI 앱 생성
    app = _create_fastapi_app(lifespan_manager)
    app.container = container

    # 라우터 등록
    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
    app.include_router(wiki.router, prefix="/api/wiki", tags=["wiki"])

    # 미들웨어
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    _register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Wiki Chat API"}

    return app
