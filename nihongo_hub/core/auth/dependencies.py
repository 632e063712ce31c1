"""FastAPI 인증 의존성"""
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from nihongo_hub.core.database import get_db
from nihongo_hub.core.auth.jwt import verify_token
from nihongo_hub.core.exceptions import UnauthenticatedError
from nihongo_hub.models.user import User


async def _resolve_user(authorization: Optional[str], db: AsyncSession) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthenticatedError("Missing or invalid authorization header")

    token = authorization.replace("Bearer ", "", 1)
    payload = verify_token(token)

    if not payload:
        raise UnauthenticatedError("Invalid or expired token")

    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthenticatedError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise UnauthenticatedError("User not found")

    return user


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    JWT 토큰으로 현재 사용자 가져오기 (필수)

    Usage:
        @router.post("/slides/{slide_id}/comments")
        async def create(user: User = Depends(get_current_user)):
            ...

    Raises:
        UnauthenticatedError: 헤더 누락, 토큰 검증 실패, 사용자 없음
    """
    return await _resolve_user(authorization, db)


async def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    JWT 토큰이 있으면 사용자, 없으면 None

    헤더가 있는데 토큰이 잘못된 경우는 익명으로 취급하지 않고 401
    """
    if not authorization:
        return None
    return await _resolve_user(authorization, db)
