# wiki_chat/exceptions.py

class WikiChatException(Exception):
    """기본 예외 클래스"""
    def __init__(self, message):
        super().__init__(message)
        self.message = message

# 클라이언트 측 예외 (4xx)
class ClientException(WikiChatException):
    """클라이언트 측 오류"""

class InvalidRequestException(ClientException):
    """클라이언트로부터 잘못된 요청이 왔을 때"""

class AuthorizationException(ClientException):
    """인증 오류"""

class PermissionDeniedException(ClientException):
    """권한이 맞지 않을 때"""

class SessionPermissionException(PermissionDeniedException):
    """다른 사용자의 세션에 접근할 때"""

class RateLimitExceededException(ClientException):
    """요청 한도를 초과했을 때"""
    def __init__(self, message, wait_time_ms: int, remaining: int = 0):
        super().__init__(message)
        self.wait_time_ms = wait_time_ms
        self.remaining = remaining

    @property
    def retry_after_seconds(self) -> int:
        """Retry-After 헤더 값 (초 단위 올림)"""
        return max(1, -(-self.wait_time_ms // 1000))

# 서버 측 오류 (5xx)
class ServerException(WikiChatException):
    """서버 측 오류"""

class DatabaseException(ServerException):
    """데이터베이스에서 발생한 예외"""

class NotFoundException(DatabaseException):
    """데이터를 찾지 못했을 때"""

# 프로젝트 특화 예외들
class SessionNotFoundException(NotFoundException):
    """세션을 찾을 수 없을 때"""

class ContentRepositoryException(ServerException):
    """위키 콘텐츠 저장소 호출 실패"""

class GenerationServiceException(ServerException):
    """응답 생성 백엔드 오류"""
    def __init__(self, message, is_retryable: bool = True):
        super().__init__(message)
        self.is_retryable = is_retryable
