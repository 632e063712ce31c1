"""
FastAPI 글로벌 예외 핸들러

서비스 예외를 공통 엔벨로프 {success: false, message, error_code, error?} 로 변환합니다.
error(내부 상세)는 프로덕션이 아닐 때만 포함합니다.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from nihongo_hub.config import settings
from nihongo_hub.core.exceptions import (
    BaseAppException,
    ValidationError,
    UnauthenticatedError,
    ForbiddenError,
    NotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)


# 예외 타입별 HTTP 상태 코드 매핑 (하위 클래스는 MRO 를 따라 찾음)
EXCEPTION_STATUS_MAP = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    UnauthenticatedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_code(exception: BaseAppException) -> int:
    """예외 객체에 대한 HTTP 상태 코드 (매핑에 없으면 500)"""
    for exception_type in type(exception).__mro__:
        if exception_type in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[exception_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str, error_code: Optional[str] = None, error: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error_code:
        body["error_code"] = error_code
    if error is not None and not settings.is_production:
        body["error"] = error
    return body


async def base_app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    """모든 BaseAppException 및 하위 클래스 처리"""
    status_code = get_http_status_code(exc)

    if status_code >= 500:
        logger.error(
            f"Server error [{exc.error_code}] {request.method} {request.url.path}: {exc.message} {exc.details}"
        )
        # 저장소 내부 메시지는 노출하지 않음
        content = error_body(
            "サーバー内部エラーが発生しました。しばらくしてから再試行してください。",
            exc.error_code,
            exc.details or None,
        )
    else:
        logger.warning(f"Client error [{exc.error_code}] {request.method} {request.url.path}: {exc.message}")
        content = error_body(exc.message, exc.error_code, exc.details or None)

    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 파라미터 / 본문 검증 오류 (400)"""
    logger.warning(f"Validation error {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            error_body("リクエストの検証に失敗しました", "VALIDATION_ERROR", exc.errors())
        )
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTPException 처리 (라우팅 404, 405 등)"""
    logger.info(f"HTTP exception {exc.status_code} {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """예상하지 못한 예외 처리"""
    logger.error(
        f"Unhandled exception {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "予期しないエラーが発生しました。",
            "INTERNAL_ERROR",
            f"{type(exc).__name__}: {exc}",
        )
    )
