from typing import Optional, Dict, Any

from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


# =============================================================================
# HTTP 예외 클래스들
# =============================================================================

class BaseCustomException(HTTPException):
    """기본 커스텀 예외 클래스"""
    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error = error
        self.message = message
        self.details = details
        self.status_code = status_code  # status_code를 먼저 설정
        super().__init__(status_code=status_code, detail=self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """예외를 딕셔너리로 변환"""
        return {
            "error": self.error,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code
        }


class IngressValidationException(BaseCustomException):
    """/emit 요청 검증 실패 예외"""
    def __init__(
        self,
        message: str = "Invalid emit request",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="invalid_emit_request",
            message=message,
            details=details
        )


class AuthenticationException(BaseCustomException):
    """인증 실패 예외"""
    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="authentication_error",
            message=message,
            details=details
        )


# =============================================================================
# WebSocket 인증 예외
# =============================================================================

class AuthError(Exception):
    """연결 시도 자체를 종료시키는 인증 오류"""
    close_code: int = 4000
    reason: str = "Authentication failed"

    def __init__(self, detail: Optional[str] = None):
        # reason은 클라이언트에 전달되는 종료 사유, detail은 로그용
        self.detail = detail or self.reason
        super().__init__(self.detail)


class MissingCredential(AuthError):
    close_code = 4001
    reason = "Missing token"


class InvalidCredential(AuthError):
    close_code = 4002
    reason = "Invalid token"


class ServerMisconfigured(AuthError):
    close_code = 4003
    reason = "Server secret not configured"


# =============================================================================
# 런타임 예외 (세션을 종료시키지 않음)
# =============================================================================

class ProtocolError(Exception):
    """파싱할 수 없거나 처리할 수 없는 인바운드 프레임"""


class DeliveryError(Exception):
    """특정 수신자에게 전달 실패"""


class ExternalWriteError(Exception):
    """외부 메시지 저장소 호출 실패"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


# =============================================================================
# 에러 헬퍼 함수들
# =============================================================================

def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    """표준 에러 응답 생성"""
    return ErrorResponse(
        error=error,
        message=message,
        status_code=status_code,
        details=details
    )


def invalid_emit_key_error():
    """잘못된 emit 키 에러"""
    return AuthenticationException("Invalid or missing emit key")
