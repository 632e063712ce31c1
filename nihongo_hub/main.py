"""
Nihongo Hub 토론 / 평가 백엔드 - 메인 애플리케이션
"""
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from nihongo_hub.config import settings
from nihongo_hub.core.middleware.rate_limit import limiter, custom_rate_limit_handler
from nihongo_hub.core.middleware.audit_logging import AuditLoggingMiddleware
from nihongo_hub.core.database import engine
from nihongo_hub.core.migration_runner import run_db_migrations
from nihongo_hub.api.v1.endpoints import discussions, knowhow, ranking, users
from nihongo_hub.core.exceptions import BaseAppException
from nihongo_hub.api.exception_handlers import (
    base_app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    unhandled_exception_handler
)
from nihongo_hub.core.logging_config import setup_logging, get_logger

setup_logging(
    log_level=settings.log_level,
    use_structured=settings.use_structured_logging
)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="슬라이드 토론, 난이도 평가, 활동 피드, 노하우 리액션 API",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Rate limiter 등록
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)

# 글로벌 예외 핸들러 등록
app.add_exception_handler(BaseAppException, base_app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins
logger.info(f"CORS 허용 출처: {cors_origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 감사 로깅 미들웨어
app.add_middleware(AuditLoggingMiddleware)

# API 라우터 등록
app.include_router(discussions.router, prefix="/api/discussions", tags=["슬라이드 토론"])
app.include_router(knowhow.router, prefix="/api/knowhow", tags=["노하우"])
app.include_router(ranking.router, prefix="/api/slides/ranking", tags=["난이도 랭킹"])
app.include_router(users.router, prefix="/api/users", tags=["사용자 활동"])


@app.on_event("startup")
async def startup_event():
    """애플리케이션 시작 시 실행"""
    logger.info(f"{settings.app_name} v{settings.app_version} 시작 (environment={settings.environment})")
    logger.info(f"디버그 모드: {settings.debug}, rate limit: {settings.rate_limit_enabled}")
    await run_db_migrations()


@app.on_event("shutdown")
async def shutdown_event():
    """애플리케이션 종료 시 실행"""
    await engine.dispose()
    logger.info(f"{settings.app_name} 종료")


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """헬스 체크 (DB 연결 포함)"""
    database = "ok"
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"헬스 체크 DB 연결 실패: {e}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "database": database
    }
