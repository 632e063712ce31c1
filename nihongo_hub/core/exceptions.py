"""
커스텀 예외 클래스 정의

서비스 계층에서 발생시키는 예외 타입들을 정의합니다.
HTTP 상태 코드 매핑은 nihongo_hub.api.exception_handlers 에서 담당합니다.
"""
from typing import Optional, Dict, Any


class BaseAppException(Exception):
    """애플리케이션 기본 예외 클래스"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# 입력 검증 (400)
# ============================================================================

class ValidationError(BaseAppException):
    """잘못된 입력값 또는 범위를 벗어난 값"""
    def __init__(self, message: str = "입력값이 올바르지 않습니다", **kwargs):
        kwargs.setdefault("error_code", "VALIDATION_ERROR")
        super().__init__(message, **kwargs)


# ============================================================================
# 인증 / 인가 (401, 403)
# ============================================================================

class UnauthenticatedError(BaseAppException):
    """인증 정보가 없거나 유효하지 않음"""
    def __init__(self, message: str = "인증이 필요합니다", **kwargs):
        kwargs.setdefault("error_code", "UNAUTHENTICATED")
        super().__init__(message, **kwargs)


class ForbiddenError(BaseAppException):
    """인증되었지만 해당 작업 권한이 없음 (예: 타인의 댓글 삭제)"""
    def __init__(self, message: str = "접근 권한이 없습니다", **kwargs):
        kwargs.setdefault("error_code", "FORBIDDEN")
        super().__init__(message, **kwargs)


# ============================================================================
# 리소스 (404)
# ============================================================================

class NotFoundError(BaseAppException):
    """요청한 리소스를 찾을 수 없음"""
    def __init__(self, message: str = "요청한 리소스를 찾을 수 없습니다", **kwargs):
        kwargs.setdefault("error_code", "RESOURCE_NOT_FOUND")
        super().__init__(message, **kwargs)


# ============================================================================
# 저장소 (500)
# ============================================================================

class StoreError(BaseAppException):
    """데이터베이스 처리 실패"""
    def __init__(self, message: str = "데이터베이스 처리 중 오류가 발생했습니다", **kwargs):
        kwargs.setdefault("error_code", "STORE_ERROR")
        super().__init__(message, **kwargs)


class StoreConnectionError(StoreError):
    """데이터베이스 연결 실패"""
    def __init__(self, message: str = "데이터베이스 연결에 실패했습니다", **kwargs):
        kwargs.setdefault("error_code", "STORE_CONNECTION_ERROR")
        super().__init__(message, **kwargs)
