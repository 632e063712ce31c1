"""
Rate Limiting 미들웨어

slowapi를 사용한 쓰기 API 호출 제한 (원격 주소 기준)
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from nihongo_hub.config import settings
import logging

logger = logging.getLogger(__name__)

# 쓰기 엔드포인트 기본 제한 (댓글/답글/평가/리액션/게시글)
WRITE_LIMIT = f"{settings.rate_limit_per_minute} per minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[WRITE_LIMIT],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)


def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Rate Limit 초과 시 공통 엔벨로프로 429 응답"""
    client_host = request.client.host if request.client else "unknown"
    logger.warning(f"Rate limit exceeded: {client_host} - {request.method} {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "リクエストが多すぎます。しばらくしてから再試行してください。",
            "error_code": "RATE_LIMIT_EXCEEDED",
        }
    )
