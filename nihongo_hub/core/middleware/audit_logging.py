"""
요청 감사 로깅 미들웨어

요청마다 request_id 를 발급하고 시작/종료를 구조화 로그로 남긴다.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
import time
import logging
import uuid

logger = logging.getLogger(__name__)

# 간소화 로깅 대상 (헬스체크)
QUIET_PATHS = ("/health", "/api/health")

# 쓰기 요청 (작성자 추적 대상)
WRITE_METHODS = ("POST", "PUT", "PATCH", "DELETE")


class AuditLoggingMiddleware(BaseHTTPMiddleware):
    """
    감사 로깅 미들웨어

    - 요청 시작 / 종료 로깅 (상태 코드별 로그 레벨)
    - 응답 시간 측정, X-Request-ID / X-Process-Time 헤더 추가
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"
        quiet = path in QUIET_PATHS

        base_extra = {
            "request_id": request_id,
            "method": method,
            "path": path,
            "client_ip": client_ip,
        }

        if not quiet:
            logger.info("Request started", extra={"log_type": "request_start", **base_extra})

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {type(e).__name__}: {e}",
                extra={"log_type": "request_error", **base_extra}
            )
            raise

        process_time = time.perf_counter() - start_time
        status_code = response.status_code

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        elif quiet:
            level = logging.DEBUG
        else:
            level = logging.INFO

        message = "Request completed"
        if method in WRITE_METHODS and "authorization" in request.headers:
            # 토큰 값은 기록하지 않음
            message = "Authenticated write completed"

        logger.log(
            level,
            message,
            extra={
                "log_type": "request_end",
                "status_code": status_code,
                "process_time": process_time,
                **base_extra,
            }
        )

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        response.headers["X-Request-ID"] = request_id
        return response
