"""
댓글 / 답글 스레드 서비스

슬라이드와 노하우 게시글에 달리는 댓글(comment / proposal)과
그 아래 한 단계 답글을 관리한다.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select, func, delete, exists, or_
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.core.database import translate_store_errors
from nihongo_hub.core.exceptions import ValidationError, NotFoundError, ForbiddenError
from nihongo_hub.models.discussion import Comment, Reply, CommentKind, CommentParentType
from nihongo_hub.models.knowhow import Article
from nihongo_hub.models.rating import Rating, RatingTargetKind, SCORE_RANGES
from nihongo_hub.models.slide import Slide
from nihongo_hub.models.user import User
from nihongo_hub.schemas.common import Page, Pagination
from nihongo_hub.schemas.discussion import CommentResponse, ReplyResponse
from nihongo_hub.utils.pagination import validate_page_params
from nihongo_hub.utils.text_utils import avatar_initial, format_datetime_ja

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("newest", "oldest")


def _display_name(user: Optional[User]) -> str:
    if user is None or not user.full_name:
        return "匿名"
    return user.full_name


def build_comment_response(comment: Comment, user: Optional[User], reply_count: int = 0) -> CommentResponse:
    name = _display_name(user)
    return CommentResponse(
        id=comment.id,
        userId=comment.user_id,
        author=name,
        avatar=avatar_initial(name),
        university=(user.school_name if user and user.school_name else ""),
        content=comment.content,
        type=comment.kind,
        slideId=comment.slide_id,
        articleId=comment.article_id,
        replyCount=reply_count,
        createdAt=comment.created_at,
        timestamp=format_datetime_ja(comment.created_at),
    )


def build_reply_response(reply: Reply, user: Optional[User]) -> ReplyResponse:
    name = _display_name(user)
    return ReplyResponse(
        id=reply.id,
        commentId=reply.comment_id,
        userId=reply.user_id,
        author=name,
        avatar=avatar_initial(name),
        university=(user.school_name if user and user.school_name else ""),
        content=reply.content,
        createdAt=reply.created_at,
        timestamp=format_datetime_ja(reply.created_at),
    )


def _clean_content(content: Optional[str]) -> str:
    cleaned = (content or "").strip()
    if not cleaned:
        raise ValidationError("Content cannot be empty")
    return cleaned


def _parse_parent_type(parent_type) -> CommentParentType:
    try:
        return CommentParentType(parent_type)
    except ValueError:
        raise ValidationError(f"Invalid parent type: {parent_type}")


def _parent_column(parent_type: CommentParentType):
    return Comment.slide_id if parent_type == CommentParentType.SLIDE else Comment.article_id


class CommentService:
    """댓글 / 답글 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_parent(
        self,
        parent_id: int,
        parent_type: CommentParentType,
        viewer_id: Optional[int] = None
    ) -> None:
        """부모가 공개 상태인지 확인 (viewer_id 가 작성자면 비공개도 허용)"""
        model = Slide if parent_type == CommentParentType.SLIDE else Article
        visible = model.is_public.is_(True)
        if viewer_id is not None:
            visible = or_(visible, model.user_id == viewer_id)
        result = await self.db.execute(select(model.id).where(model.id == parent_id, visible))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"{parent_type.value.capitalize()} not found: {parent_id}")

    async def _get_user(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def _reply_counts(self, comment_ids: List[int]) -> Dict[int, int]:
        if not comment_ids:
            return {}
        result = await self.db.execute(
            select(Reply.comment_id, func.count(Reply.id))
            .where(Reply.comment_id.in_(comment_ids))
            .group_by(Reply.comment_id)
        )
        return {comment_id: count for comment_id, count in result.all()}

    async def _paginate_comments(self, query, page: int, limit: int, sort_by: str) -> Page[CommentResponse]:
        offset = validate_page_params(page, limit)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        if sort_by == "oldest":
            query = query.order_by(Comment.created_at.asc(), Comment.id.asc())
        else:
            query = query.order_by(Comment.created_at.desc(), Comment.id.desc())

        result = await self.db.execute(
            query.add_columns(User).outerjoin(User, User.id == Comment.user_id).offset(offset).limit(limit)
        )
        rows = result.all()

        counts = await self._reply_counts([comment.id for comment, _ in rows])
        items = [build_comment_response(comment, user, counts.get(comment.id, 0)) for comment, user in rows]

        return Page[CommentResponse](items=items, pagination=Pagination.build(page, limit, total))

    @translate_store_errors("댓글 작성")
    async def create_comment(
        self,
        parent_id: int,
        parent_type,
        author_id: int,
        content: str,
        kind: str = CommentKind.COMMENT.value
    ) -> CommentResponse:
        """
        댓글 작성

        Raises:
            ValidationError: 빈 내용, 잘못된 종류, 게시글에 proposal 작성
            NotFoundError: 부모(슬라이드/게시글)가 없거나 비공개
        """
        parsed_type = _parse_parent_type(parent_type)
        cleaned = _clean_content(content)
        try:
            comment_kind = CommentKind(kind or CommentKind.COMMENT.value)
        except ValueError:
            raise ValidationError(
                f"Invalid comment type: {kind}",
                details={"allowed": [k.value for k in CommentKind]}
            )
        if parsed_type == CommentParentType.ARTICLE and comment_kind != CommentKind.COMMENT:
            raise ValidationError("Articles only accept comments of type 'comment'")

        await self._ensure_parent(parent_id, parsed_type)

        comment = Comment(
            slide_id=parent_id if parsed_type == CommentParentType.SLIDE else None,
            article_id=parent_id if parsed_type == CommentParentType.ARTICLE else None,
            user_id=author_id,
            content=cleaned,
            kind=comment_kind.value,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)

        logger.info(
            f"댓글 작성: comment_id={comment.id}, {parsed_type.value}_id={parent_id}, "
            f"user_id={author_id}, kind={comment_kind.value}"
        )
        return build_comment_response(comment, await self._get_user(author_id))

    @translate_store_errors("댓글 목록 조회")
    async def list_comments(
        self,
        parent_id: int,
        parent_type,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "newest",
        viewer_id: Optional[int] = None
    ) -> Page[CommentResponse]:
        """부모별 댓글 목록 (답글 수 포함, 페이지네이션). 비공개 부모는 작성자만 조회 가능"""
        parsed_type = _parse_parent_type(parent_type)
        if sort_by not in SORT_OPTIONS:
            raise ValidationError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}")
        validate_page_params(page, limit)
        await self._ensure_parent(parent_id, parsed_type, viewer_id)

        query = select(Comment).where(_parent_column(parsed_type) == parent_id)
        return await self._paginate_comments(query, page, limit, sort_by)

    @translate_store_errors("댓글 검색")
    async def search_comments(
        self,
        slide_id: int,
        keyword: Optional[str] = None,
        min_rating: Optional[float] = None,
        page: int = 1,
        limit: int = 20,
        viewer_id: Optional[int] = None
    ) -> Page[CommentResponse]:
        """
        슬라이드 댓글 검색

        - keyword: 내용 부분 일치 (대소문자 무시)
        - min_rating: 작성자가 이 슬라이드에 준 난이도 평가가 이 값 이상인 댓글만
        두 조건은 AND 로 결합
        """
        validate_page_params(page, limit)
        if min_rating is not None:
            low, high = SCORE_RANGES[RatingTargetKind.SLIDE]
            if not (low <= min_rating <= high):
                raise ValidationError(f"min_rating must be between {low} and {high}")
        await self._ensure_parent(slide_id, CommentParentType.SLIDE, viewer_id)

        query = select(Comment).where(Comment.slide_id == slide_id)

        keyword = (keyword or "").strip()
        if keyword:
            query = query.where(Comment.content.icontains(keyword, autoescape=True))

        if min_rating is not None:
            query = query.where(
                exists().where(
                    Rating.rater_id == Comment.user_id,
                    Rating.slide_id == Comment.slide_id,
                    Rating.target_kind == RatingTargetKind.SLIDE.value,
                    Rating.score >= min_rating,
                )
            )

        logger.debug(f"댓글 검색: slide_id={slide_id}, keyword={keyword!r}, min_rating={min_rating}")
        return await self._paginate_comments(query, page, limit, "newest")

    @translate_store_errors("댓글 삭제")
    async def delete_comment(self, comment_id: int, requester_id: int) -> None:
        """
        댓글 삭제 (작성자만 가능, 답글도 함께 삭제)

        Raises:
            NotFoundError: 댓글 없음
            ForbiddenError: 작성자가 아님
        """
        result = await self.db.execute(select(Comment).where(Comment.id == comment_id))
        comment = result.scalar_one_or_none()
        if not comment:
            raise NotFoundError(f"Comment not found: {comment_id}")
        if comment.user_id != requester_id:
            raise ForbiddenError("You can only delete your own comments")

        reply_result = await self.db.execute(delete(Reply).where(Reply.comment_id == comment_id))
        await self.db.delete(comment)
        await self.db.commit()

        logger.info(
            f"댓글 삭제: comment_id={comment_id}, user_id={requester_id}, "
            f"답글 {reply_result.rowcount}건 함께 삭제"
        )

    async def _get_comment_for_reply(
        self,
        comment_id: int,
        article_id: Optional[int],
        viewer_id: Optional[int] = None
    ) -> Comment:
        result = await self.db.execute(select(Comment).where(Comment.id == comment_id))
        comment = result.scalar_one_or_none()
        if not comment:
            raise NotFoundError(f"Comment not found: {comment_id}")
        if article_id is not None and comment.article_id != article_id:
            raise NotFoundError(f"Comment {comment_id} not found in article {article_id}")
        parent_id = comment.slide_id if comment.parent_type == CommentParentType.SLIDE else comment.article_id
        await self._ensure_parent(parent_id, comment.parent_type, viewer_id)
        return comment

    @translate_store_errors("답글 작성")
    async def create_reply(
        self,
        comment_id: int,
        author_id: int,
        content: str,
        article_id: Optional[int] = None
    ) -> ReplyResponse:
        """답글 작성 (article_id 가 주어지면 댓글이 해당 게시글 소속인지 확인)"""
        cleaned = _clean_content(content)
        await self._get_comment_for_reply(comment_id, article_id)

        reply = Reply(comment_id=comment_id, user_id=author_id, content=cleaned)
        self.db.add(reply)
        await self.db.commit()
        await self.db.refresh(reply)

        logger.info(f"답글 작성: reply_id={reply.id}, comment_id={comment_id}, user_id={author_id}")
        return build_reply_response(reply, await self._get_user(author_id))

    @translate_store_errors("답글 목록 조회")
    async def list_replies(
        self,
        comment_id: int,
        article_id: Optional[int] = None,
        viewer_id: Optional[int] = None
    ) -> List[ReplyResponse]:
        """답글 목록 (오래된 순). 부모가 비공개면 작성자만 조회 가능"""
        await self._get_comment_for_reply(comment_id, article_id, viewer_id)

        result = await self.db.execute(
            select(Reply, User)
            .outerjoin(User, User.id == Reply.user_id)
            .where(Reply.comment_id == comment_id)
            .order_by(Reply.created_at.asc(), Reply.id.asc())
        )
        return [build_reply_response(reply, user) for reply, user in result.all()]
