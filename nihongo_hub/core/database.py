"""
데이터베이스 연결 및 세션 관리
"""
import functools
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from nihongo_hub.config import settings
from nihongo_hub.core.exceptions import StoreError, StoreConnectionError

logger = logging.getLogger(__name__)

# SQLAlchemy Base 클래스
Base = declarative_base()


def _engine_options() -> dict:
    """드라이버별 엔진 옵션 (SQLite는 커넥션 풀 옵션을 받지 않음)"""
    if settings.is_sqlite:
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }


# 비동기 엔진 생성
engine = create_async_engine(
    settings.get_database_url(),
    echo=settings.debug,
    **_engine_options(),
)

# 비동기 세션 팩토리
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    데이터베이스 세션 의존성

    Usage:
        @router.get("/slides")
        async def list_slides(db: AsyncSession = Depends(get_db)):
            ...

    Raises:
        StoreError: 트랜잭션 커밋 중 오류 발생 시
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise StoreError(
                message="데이터베이스 트랜잭션 처리 중 오류가 발생했습니다",
                details={"error_type": type(e).__name__, "error": str(e)}
            ) from e
        except Exception:
            # 애플리케이션 예외는 롤백 후 그대로 전파
            await session.rollback()
            raise


T = TypeVar("T")


def translate_store_errors(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    서비스 메서드 경계에서 SQLAlchemy 예외를 StoreError로 변환하는 데코레이터

    - 세션(self.db)을 롤백하여 부분 적용 상태를 남기지 않음
    - 내부 오류 상세는 details에만 담고 메시지는 일반화
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            try:
                return await func(self, *args, **kwargs)
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"{operation} 실패: {type(e).__name__}: {e}")
                details = {"operation": operation, "error_type": type(e).__name__, "error": str(e)}
                if isinstance(e, DBAPIError) and e.connection_invalidated:
                    raise StoreConnectionError(details=details) from e
                raise StoreError(
                    message=f"{operation} 중 데이터베이스 오류가 발생했습니다",
                    details=details
                ) from e
        return wrapper
    return decorator


def dialect_insert(db: AsyncSession, table: Any):
    """
    현재 세션 드라이버에 맞는 INSERT 구문 생성 (ON CONFLICT 지원)

    PostgreSQL / SQLite 모두 insert(...).on_conflict_do_update() 를 제공한다.
    """
    dialect_name = db.get_bind().dialect.name
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert
        return sqlite_insert(table)
    from sqlalchemy.dialects.postgresql import insert as pg_insert
    return pg_insert(table)
