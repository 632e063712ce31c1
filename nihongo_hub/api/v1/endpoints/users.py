"""
사용자 활동 API 엔드포인트
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.config import settings
from nihongo_hub.core.database import get_db
from nihongo_hub.core.exceptions import NotFoundError
from nihongo_hub.models.user import User
from nihongo_hub.schemas.activity import ActivityRecord
from nihongo_hub.schemas.common import ApiResponse
from nihongo_hub.services.activity_service import ActivityService, FeedScope

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/{user_id}/activities",
    response_model=ApiResponse[List[ActivityRecord]],
    summary="사용자 활동 피드 (프로필용)",
)
async def list_user_activities(
    user_id: int,
    feed_filter: str = Query("all", alias="filter", description="all | comment | reply"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db)
):
    """해당 사용자가 작성한 업로드 / 댓글 / 답글 / 게시글 (공개 항목만, 최신순)"""
    result = await db.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError(f"User not found: {user_id}")

    feed = await ActivityService(db).compose_feed(
        FeedScope.user(user_id), feed_filter=feed_filter, page=page, limit=limit
    )
    return ApiResponse(data=feed.items, pagination=feed.pagination)
