"""
노하우 게시글 API 엔드포인트 (게시글, 댓글, 리액션)
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.config import settings
from nihongo_hub.core.auth.dependencies import get_current_user, get_optional_user
from nihongo_hub.core.database import get_db
from nihongo_hub.core.middleware.rate_limit import limiter, WRITE_LIMIT
from nihongo_hub.models.discussion import CommentKind, CommentParentType
from nihongo_hub.models.user import User
from nihongo_hub.schemas.common import ApiResponse
from nihongo_hub.schemas.discussion import CommentCreate, CommentResponse, ReplyCreate, ReplyResponse
from nihongo_hub.schemas.knowhow import ArticleCreate, ArticleResponse
from nihongo_hub.schemas.reaction import ReactionCounts, ReactionSet, ReactionState
from nihongo_hub.services.comment_service import CommentService
from nihongo_hub.services.knowhow_service import KnowhowService
from nihongo_hub.services.reaction_service import ReactionService

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================================
# 게시글
# ============================================================================

@router.get(
    "",
    response_model=ApiResponse[List[ArticleResponse]],
    summary="노하우 게시글 목록",
)
async def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.max_page_size),
    tag: Optional[str] = Query(None, description="태그 이름 검색"),
    author: Optional[str] = Query(None, description="작성자 이름 검색"),
    db: AsyncSession = Depends(get_db)
):
    result = await KnowhowService(db).list_articles(page=page, limit=limit, tag=tag, author=author)
    return ApiResponse(data=result.items, pagination=result.pagination)


@router.post(
    "/post",
    response_model=ApiResponse[ArticleResponse],
    status_code=http_status.HTTP_201_CREATED,
    summary="노하우 게시글 작성",
)
@limiter.limit(WRITE_LIMIT)
async def post_article(
    request: Request,
    body: ArticleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    article = await KnowhowService(db).create_article(user.id, body)
    return ApiResponse(data=article, message="Article posted successfully")


@router.get(
    "/{article_id}",
    response_model=ApiResponse[ArticleResponse],
    summary="노하우 게시글 상세",
)
async def get_article(
    article_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """비공개 게시글은 작성자 본인만 조회 가능"""
    article = await KnowhowService(db).get_article(article_id, viewer_id=user.id if user else None)
    return ApiResponse(data=article)


# ============================================================================
# 댓글 / 답글
# ============================================================================

@router.get(
    "/{article_id}/comments",
    response_model=ApiResponse[List[CommentResponse]],
    summary="게시글 댓글 목록",
)
async def list_article_comments(
    article_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """비공개 게시글의 댓글은 작성자만 조회 가능"""
    result = await CommentService(db).list_comments(
        article_id, CommentParentType.ARTICLE, page=page, limit=limit,
        viewer_id=user.id if user else None,
    )
    return ApiResponse(data=result.items, pagination=result.pagination)


@router.post(
    "/{article_id}/comments",
    response_model=ApiResponse[CommentResponse],
    status_code=http_status.HTTP_201_CREATED,
    summary="게시글 댓글 작성",
)
@limiter.limit(WRITE_LIMIT)
async def create_article_comment(
    request: Request,
    article_id: int,
    body: ReplyCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    comment = await CommentService(db).create_comment(
        article_id, CommentParentType.ARTICLE, user.id, body.content, CommentKind.COMMENT.value
    )
    return ApiResponse(data=comment, message="Comment created successfully")


@router.get(
    "/{article_id}/comments/{comment_id}/replies",
    response_model=ApiResponse[List[ReplyResponse]],
    summary="게시글 댓글의 답글 목록",
)
async def list_article_comment_replies(
    article_id: int,
    comment_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    replies = await CommentService(db).list_replies(
        comment_id, article_id=article_id, viewer_id=user.id if user else None
    )
    return ApiResponse(data=replies)


@router.post(
    "/{article_id}/comments/{comment_id}/replies",
    response_model=ApiResponse[ReplyResponse],
    status_code=http_status.HTTP_201_CREATED,
    summary="게시글 댓글에 답글 작성",
)
@limiter.limit(WRITE_LIMIT)
async def create_article_comment_reply(
    request: Request,
    article_id: int,
    comment_id: int,
    body: ReplyCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reply = await CommentService(db).create_reply(comment_id, user.id, body.content, article_id=article_id)
    return ApiResponse(data=reply, message="Reply created successfully")


# ============================================================================
# 리액션
# ============================================================================

@router.post(
    "/{article_id}/reactions",
    response_model=ApiResponse[ReactionState],
    summary="리액션 설정",
)
@limiter.limit(WRITE_LIMIT)
async def set_reaction(
    request: Request,
    article_id: int,
    body: ReactionSet,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """기존 리액션이 있으면 종류를 교체합니다 (사용자당 하나)"""
    state = await ReactionService(db).set_reaction(user.id, article_id, body.reaction_type)
    return ApiResponse(data=state, message="Reaction saved")


@router.delete(
    "/{article_id}/reactions",
    response_model=ApiResponse[ReactionState],
    summary="리액션 취소",
)
async def remove_reaction(
    article_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    removed = await ReactionService(db).remove_reaction(user.id, article_id)
    return ApiResponse(
        data=ReactionState(articleId=article_id, reactionType="none", removed=removed),
        message="Reaction removed" if removed else "No reaction to remove",
    )


@router.get(
    "/{article_id}/reactions",
    response_model=ApiResponse[ReactionCounts],
    summary="리액션 종류별 개수",
)
async def get_reaction_counts(article_id: int, db: AsyncSession = Depends(get_db)):
    counts = await ReactionService(db).get_counts(article_id)
    return ApiResponse(data=counts)


@router.get(
    "/{article_id}/reactions/user",
    response_model=ApiResponse[ReactionState],
    summary="내 리액션 조회",
)
async def get_my_reaction(
    article_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reaction_type = await ReactionService(db).get_user_reaction(user.id, article_id)
    return ApiResponse(data=ReactionState(articleId=article_id, reactionType=reaction_type))
