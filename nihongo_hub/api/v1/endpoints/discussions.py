"""
슬라이드 토론 API 엔드포인트 (댓글, 답글, 평가, 활동 피드)
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.config import settings
from nihongo_hub.core.auth.dependencies import get_current_user, get_optional_user
from nihongo_hub.core.database import get_db
from nihongo_hub.core.middleware.rate_limit import limiter, WRITE_LIMIT
from nihongo_hub.models.discussion import CommentParentType
from nihongo_hub.models.rating import RatingTargetKind
from nihongo_hub.models.user import User
from nihongo_hub.schemas.activity import ActivityRecord
from nihongo_hub.schemas.common import ApiResponse
from nihongo_hub.schemas.discussion import CommentCreate, CommentResponse, ReplyCreate, ReplyResponse
from nihongo_hub.schemas.rating import FeedbackResult, FeedbackUpdate, RatingResult, RatingSubmit, RatingSummary
from nihongo_hub.schemas.slide import SlideDiscussionDetail, SlideSummary
from nihongo_hub.services.activity_service import ActivityService, FeedScope
from nihongo_hub.services.comment_service import CommentService
from nihongo_hub.services.rating_service import RatingService
from nihongo_hub.services.slide_service import SlideService

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================================
# 슬라이드
# ============================================================================

@router.get(
    "/slides",
    response_model=ApiResponse[List[SlideSummary]],
    summary="토론 대상 슬라이드 목록",
)
async def list_discussion_slides(
    page: int = Query(1, ge=1, description="페이지 번호"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="페이지 크기"),
    sortBy: str = Query("newest", description="newest | mostCommented | highestRated"),
    search: Optional[str] = Query(None, description="제목 검색어"),
    difficulty: Optional[str] = Query(None, description="난이도 (初級/中級/上級, N1-N5)"),
    db: AsyncSession = Depends(get_db)
):
    """공개 슬라이드 목록 (댓글 수, 난이도 평균 포함)"""
    result = await SlideService(db).list_slides(
        page=page, limit=limit, sort_by=sortBy, search=search, difficulty=difficulty
    )
    return ApiResponse(data=result.items, pagination=result.pagination)


@router.get(
    "/slides/{slide_id}",
    response_model=ApiResponse[SlideDiscussionDetail],
    summary="슬라이드 토론 상세",
)
async def get_slide_discussion(slide_id: int, db: AsyncSession = Depends(get_db)):
    """슬라이드 정보 + 페이지별 별점 + 최근 댓글 2건"""
    detail = await SlideService(db).get_slide_detail(slide_id)
    return ApiResponse(data=detail)


# ============================================================================
# 댓글 / 답글
# ============================================================================

@router.get(
    "/slides/{slide_id}/comments",
    response_model=ApiResponse[List[CommentResponse]],
    summary="슬라이드 댓글 목록",
)
async def list_slide_comments(
    slide_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sortBy: str = Query("newest", description="newest | oldest"),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """비공개 슬라이드의 댓글은 작성자만 조회 가능"""
    result = await CommentService(db).list_comments(
        slide_id, CommentParentType.SLIDE, page=page, limit=limit, sort_by=sortBy,
        viewer_id=user.id if user else None,
    )
    return ApiResponse(data=result.items, pagination=result.pagination)


@router.get(
    "/slides/{slide_id}/comments/search",
    response_model=ApiResponse[List[CommentResponse]],
    summary="슬라이드 댓글 검색",
)
async def search_slide_comments(
    slide_id: int,
    keyword: Optional[str] = Query(None, description="내용 검색어 (대소문자 무시)"),
    minRating: Optional[float] = Query(None, ge=0, le=100, description="작성자 난이도 평가 최솟값"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """키워드와 작성자 평가 점수로 댓글 필터링 (두 조건은 AND)"""
    result = await CommentService(db).search_comments(
        slide_id, keyword=keyword, min_rating=minRating, page=page, limit=limit,
        viewer_id=user.id if user else None,
    )
    return ApiResponse(data=result.items, pagination=result.pagination)


@router.post(
    "/slides/{slide_id}/comments",
    response_model=ApiResponse[CommentResponse],
    status_code=http_status.HTTP_201_CREATED,
    summary="슬라이드 댓글 / 수정 제안 작성",
)
@limiter.limit(WRITE_LIMIT)
async def create_slide_comment(
    request: Request,
    slide_id: int,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    comment = await CommentService(db).create_comment(
        slide_id, CommentParentType.SLIDE, user.id, body.content, body.type
    )
    return ApiResponse(data=comment, message="Comment created successfully")


@router.delete(
    "/comments/{comment_id}",
    response_model=ApiResponse[None],
    summary="댓글 삭제 (작성자만)",
)
async def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """댓글과 그 답글을 함께 삭제"""
    await CommentService(db).delete_comment(comment_id, user.id)
    return ApiResponse(message="Comment deleted successfully")


@router.get(
    "/comments/{comment_id}/replies",
    response_model=ApiResponse[List[ReplyResponse]],
    summary="답글 목록",
)
async def list_comment_replies(
    comment_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    replies = await CommentService(db).list_replies(comment_id, viewer_id=user.id if user else None)
    return ApiResponse(data=replies)


@router.post(
    "/comments/{comment_id}/replies",
    response_model=ApiResponse[ReplyResponse],
    status_code=http_status.HTTP_201_CREATED,
    summary="답글 작성",
)
@limiter.limit(WRITE_LIMIT)
async def create_comment_reply(
    request: Request,
    comment_id: int,
    body: ReplyCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reply = await CommentService(db).create_reply(comment_id, user.id, body.content)
    return ApiResponse(data=reply, message="Reply created successfully")


# ============================================================================
# 평가
# ============================================================================

@router.post(
    "/slides/{slide_id}/rate",
    response_model=ApiResponse[RatingResult],
    summary="슬라이드 난이도 평가 (0-100)",
)
@limiter.limit(WRITE_LIMIT)
async def rate_slide(
    request: Request,
    slide_id: int,
    body: RatingSubmit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    슬라이드 전체 난이도 평가

    같은 사용자가 다시 제출하면 기존 평가를 덮어씁니다.
    """
    result = await RatingService(db).submit_rating(
        user.id, slide_id, RatingTargetKind.SLIDE, body.score, feedback=body.feedback
    )
    return ApiResponse(data=result, message="Rating submitted successfully")


@router.patch(
    "/slides/{slide_id}/rate/feedback",
    response_model=ApiResponse[FeedbackResult],
    summary="슬라이드 평가 의견 수정",
)
@limiter.limit(WRITE_LIMIT)
async def update_rating_feedback(
    request: Request,
    slide_id: int,
    body: FeedbackUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """점수는 그대로 두고 의견만 수정. 본인 평가가 없으면 404"""
    result = await RatingService(db).update_feedback(user.id, slide_id, body.feedback)
    return ApiResponse(data=result, message="Feedback updated successfully")


@router.post(
    "/slides/{slide_id}/pages/{page_index}/rate",
    response_model=ApiResponse[RatingResult],
    summary="페이지 별점 평가 (0-5)",
)
@limiter.limit(WRITE_LIMIT)
async def rate_slide_page(
    request: Request,
    slide_id: int,
    page_index: int,
    body: RatingSubmit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await RatingService(db).submit_rating(
        user.id, slide_id, RatingTargetKind.PAGE, body.score,
        feedback=body.feedback, page_index=page_index
    )
    return ApiResponse(data=result, message="Rating submitted successfully")


@router.get(
    "/slides/{slide_id}/ratings",
    response_model=ApiResponse[RatingSummary],
    summary="슬라이드 / 페이지 평가 목록",
)
async def list_slide_ratings(
    slide_id: int,
    page_index: Optional[int] = Query(None, ge=1, description="지정하면 해당 페이지 별점 목록"),
    db: AsyncSession = Depends(get_db)
):
    kind = RatingTargetKind.PAGE if page_index is not None else RatingTargetKind.SLIDE
    summary = await RatingService(db).get_ratings(slide_id, kind, page_index=page_index)
    return ApiResponse(data=summary)


# ============================================================================
# 활동 피드
# ============================================================================

@router.get(
    "/slides/{slide_id}/activities",
    response_model=ApiResponse[List[ActivityRecord]],
    summary="슬라이드 활동 피드",
)
async def list_slide_activities(
    slide_id: int,
    feed_filter: str = Query("all", alias="filter", description="all | comment | reply"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db)
):
    """해당 슬라이드의 업로드 / 댓글 / 답글 (최신순)"""
    await SlideService(db).ensure_public_slide(slide_id)
    feed = await ActivityService(db).compose_feed(
        FeedScope.slide(slide_id), feed_filter=feed_filter, page=page, limit=limit
    )
    return ApiResponse(data=feed.items, pagination=feed.pagination)


@router.get(
    "/activities",
    response_model=ApiResponse[List[ActivityRecord]],
    summary="전체 활동 피드",
)
async def list_activities(
    feed_filter: str = Query("all", alias="filter", description="all | comment | reply | mine"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.max_page_size),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    업로드, 슬라이드 댓글, 노하우 댓글, 노하우 게시글을 합친 최신순 피드

    filter=mine 은 로그인이 필요합니다.
    """
    feed = await ActivityService(db).compose_feed(
        FeedScope.global_feed(),
        feed_filter=feed_filter,
        page=page,
        limit=limit,
        viewer_id=user.id if user else None,
    )
    return ApiResponse(data=feed.items, pagination=feed.pagination)
