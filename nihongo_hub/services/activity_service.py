"""
활동 피드 서비스

슬라이드 업로드, 슬라이드 댓글/답글, 노하우 댓글/답글, 노하우 게시글을
각 테이블에서 따로 최신순으로 가져온 뒤 하나의 시간순 피드로 병합한다.

- 소스별 조회 상한: min(page * limit, settings.feed_max_per_source)
- 병합 후 timestamp 내림차순 안정 정렬 (동률이면 소스 순서, 소스 내 id 내림차순)
- 전체 항목 수는 소스별 COUNT 의 합
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.config import settings
from nihongo_hub.core.database import translate_store_errors
from nihongo_hub.core.exceptions import ValidationError, UnauthenticatedError
from nihongo_hub.models.discussion import Comment, Reply
from nihongo_hub.models.knowhow import Article
from nihongo_hub.models.slide import Slide
from nihongo_hub.models.user import User
from nihongo_hub.schemas.activity import (
    ActivityFeedPage,
    KnowhowCommentActivity,
    KnowhowPostActivity,
    SlideCommentActivity,
    UploadActivity,
)
from nihongo_hub.schemas.common import Pagination
from nihongo_hub.utils.pagination import validate_page_params
from nihongo_hub.utils.text_utils import as_utc, make_excerpt

logger = logging.getLogger(__name__)

FEED_FILTERS = ("all", "comment", "reply", "mine")


@dataclass(frozen=True)
class FeedScope:
    """피드 범위 (global / user / slide)"""
    kind: str
    target_id: Optional[int] = None

    @classmethod
    def global_feed(cls) -> "FeedScope":
        return cls("global")

    @classmethod
    def user(cls, user_id: int) -> "FeedScope":
        return cls("user", user_id)

    @classmethod
    def slide(cls, slide_id: int) -> "FeedScope":
        return cls("slide", slide_id)


@dataclass
class _FeedSource:
    name: str
    query: object
    order_by: tuple
    to_record: Callable


def _author(full_name: Optional[str]) -> str:
    return full_name or "匿名"


def _visible(model, viewer_id: Optional[int]):
    """공개 항목 또는 열람자 본인 소유 항목"""
    if viewer_id is None:
        return model.is_public.is_(True)
    return or_(model.is_public.is_(True), model.user_id == viewer_id)


class ActivityService:
    """활동 피드 병합 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # 소스 정의
    # ------------------------------------------------------------------

    def _upload_source(self, viewer_id: Optional[int]) -> _FeedSource:
        query = (
            select(Slide, User.full_name)
            .outerjoin(User, User.id == Slide.user_id)
            .where(_visible(Slide, viewer_id))
        )

        def to_record(row):
            slide, full_name = row
            return UploadActivity(
                itemId=slide.id,
                targetId=slide.id,
                title=slide.title,
                excerpt=make_excerpt(slide.description, settings.excerpt_length),
                userId=slide.user_id,
                author=_author(full_name),
                timestamp=slide.created_at,
            )

        return _FeedSource("upload", query, (Slide.created_at.desc(), Slide.id.desc()), to_record)

    def _slide_comment_source(self, viewer_id: Optional[int]) -> _FeedSource:
        query = (
            select(Comment, Slide.title, User.full_name)
            .join(Slide, Slide.id == Comment.slide_id)
            .outerjoin(User, User.id == Comment.user_id)
            .where(_visible(Slide, viewer_id))
        )

        def to_record(row):
            comment, title, full_name = row
            return SlideCommentActivity(
                itemId=comment.id,
                targetId=comment.slide_id,
                title=title,
                excerpt=make_excerpt(comment.content, settings.excerpt_length),
                userId=comment.user_id,
                author=_author(full_name),
                timestamp=comment.created_at,
                commentKind=comment.kind,
            )

        return _FeedSource("slide_comment", query, (Comment.created_at.desc(), Comment.id.desc()), to_record)

    def _slide_reply_source(self, viewer_id: Optional[int]) -> _FeedSource:
        query = (
            select(Reply, Comment.slide_id, Comment.kind, Slide.title, User.full_name)
            .join(Comment, Comment.id == Reply.comment_id)
            .join(Slide, Slide.id == Comment.slide_id)
            .outerjoin(User, User.id == Reply.user_id)
            .where(_visible(Slide, viewer_id))
        )

        def to_record(row):
            reply, slide_id, kind, title, full_name = row
            return SlideCommentActivity(
                itemId=reply.id,
                targetId=slide_id,
                title=title,
                excerpt=make_excerpt(reply.content, settings.excerpt_length),
                userId=reply.user_id,
                author=_author(full_name),
                timestamp=reply.created_at,
                commentKind=kind,
                replyTo=reply.comment_id,
            )

        return _FeedSource("slide_reply", query, (Reply.created_at.desc(), Reply.id.desc()), to_record)

    def _knowhow_comment_source(self, viewer_id: Optional[int]) -> _FeedSource:
        query = (
            select(Comment, Article.title, User.full_name)
            .join(Article, Article.id == Comment.article_id)
            .outerjoin(User, User.id == Comment.user_id)
            .where(_visible(Article, viewer_id))
        )

        def to_record(row):
            comment, title, full_name = row
            return KnowhowCommentActivity(
                itemId=comment.id,
                targetId=comment.article_id,
                title=title,
                excerpt=make_excerpt(comment.content, settings.excerpt_length),
                userId=comment.user_id,
                author=_author(full_name),
                timestamp=comment.created_at,
            )

        return _FeedSource("knowhow_comment", query, (Comment.created_at.desc(), Comment.id.desc()), to_record)

    def _knowhow_reply_source(self, viewer_id: Optional[int]) -> _FeedSource:
        query = (
            select(Reply, Comment.article_id, Article.title, User.full_name)
            .join(Comment, Comment.id == Reply.comment_id)
            .join(Article, Article.id == Comment.article_id)
            .outerjoin(User, User.id == Reply.user_id)
            .where(_visible(Article, viewer_id))
        )

        def to_record(row):
            reply, article_id, title, full_name = row
            return KnowhowCommentActivity(
                itemId=reply.id,
                targetId=article_id,
                title=title,
                excerpt=make_excerpt(reply.content, settings.excerpt_length),
                userId=reply.user_id,
                author=_author(full_name),
                timestamp=reply.created_at,
                replyTo=reply.comment_id,
            )

        return _FeedSource("knowhow_reply", query, (Reply.created_at.desc(), Reply.id.desc()), to_record)

    def _knowhow_post_source(self, viewer_id: Optional[int]) -> _FeedSource:
        query = (
            select(Article, User.full_name)
            .outerjoin(User, User.id == Article.user_id)
            .where(_visible(Article, viewer_id))
        )

        def to_record(row):
            article, full_name = row
            return KnowhowPostActivity(
                itemId=article.id,
                targetId=article.id,
                title=article.title,
                excerpt=make_excerpt(article.content, settings.excerpt_length),
                userId=article.user_id,
                author=_author(full_name),
                timestamp=article.created_at,
            )

        return _FeedSource("knowhow_post", query, (Article.created_at.desc(), Article.id.desc()), to_record)

    # ------------------------------------------------------------------
    # 범위 / 필터 적용
    # ------------------------------------------------------------------

    def _select_sources(self, scope: FeedScope, feed_filter: str, viewer_id: Optional[int]) -> List[_FeedSource]:
        slide_sources = {
            "upload": self._upload_source(viewer_id),
            "slide_comment": self._slide_comment_source(viewer_id),
            "slide_reply": self._slide_reply_source(viewer_id),
        }
        knowhow_sources = {
            "knowhow_comment": self._knowhow_comment_source(viewer_id),
            "knowhow_reply": self._knowhow_reply_source(viewer_id),
            "knowhow_post": self._knowhow_post_source(viewer_id),
        }

        if scope.kind == "slide":
            # 슬라이드 범위는 해당 슬라이드의 업로드/댓글/답글만
            slide_sources["upload"].query = slide_sources["upload"].query.where(Slide.id == scope.target_id)
            slide_sources["slide_comment"].query = slide_sources["slide_comment"].query.where(
                Comment.slide_id == scope.target_id
            )
            slide_sources["slide_reply"].query = slide_sources["slide_reply"].query.where(
                Comment.slide_id == scope.target_id
            )
            sources = slide_sources
        else:
            sources = {**slide_sources, **knowhow_sources}

        if feed_filter == "comment":
            names = ("slide_comment", "knowhow_comment")
        elif feed_filter == "reply":
            names = ("slide_reply", "knowhow_reply")
        else:
            names = ("upload", "slide_comment", "slide_reply", "knowhow_comment", "knowhow_reply", "knowhow_post")

        selected = [sources[name] for name in names if name in sources]

        author_id = None
        if scope.kind == "user":
            author_id = scope.target_id
        elif feed_filter == "mine":
            author_id = viewer_id

        if author_id is not None:
            for source in selected:
                source.query = source.query.where(_author_column(source.name) == author_id)

        return selected

    # ------------------------------------------------------------------
    # 피드 조합
    # ------------------------------------------------------------------

    @translate_store_errors("활동 피드 조회")
    async def compose_feed(
        self,
        scope: FeedScope = FeedScope.global_feed(),
        feed_filter: str = "all",
        page: int = 1,
        limit: int = 10,
        viewer_id: Optional[int] = None
    ) -> ActivityFeedPage:
        """
        활동 피드 조회

        Args:
            scope: 피드 범위 (global / user / slide)
            feed_filter: all | comment (최상위 댓글만) | reply (답글만) | mine (열람자 본인 활동)
            page: 페이지 번호 (1부터)
            limit: 페이지 크기
            viewer_id: 열람자 ID (mine 필터에 필수)

        Raises:
            ValidationError: 잘못된 필터 또는 페이지 파라미터
            UnauthenticatedError: 로그인 없이 mine 필터 요청
        """
        if feed_filter not in FEED_FILTERS:
            raise ValidationError(
                f"Invalid filter: {feed_filter}",
                details={"allowed": list(FEED_FILTERS)}
            )
        offset = validate_page_params(page, limit)
        if feed_filter == "mine" and viewer_id is None:
            raise UnauthenticatedError("Login required for 'mine' filter")

        sources = self._select_sources(scope, feed_filter, viewer_id)
        cap = min(page * limit, settings.feed_max_per_source)

        merged = []
        total = 0
        for source in sources:
            count_query = select(func.count()).select_from(source.query.subquery())
            total += (await self.db.execute(count_query)).scalar() or 0

            result = await self.db.execute(source.query.order_by(*source.order_by).limit(cap))
            merged.extend(source.to_record(row) for row in result.all())

        # 소스 순서와 소스 내 순서가 유지되는 안정 정렬
        merged.sort(key=lambda record: as_utc(record.timestamp), reverse=True)
        items = merged[offset:offset + limit]

        logger.debug(
            f"활동 피드: scope={scope.kind}:{scope.target_id}, filter={feed_filter}, "
            f"page={page}, limit={limit}, sources={len(sources)}, total={total}"
        )

        return ActivityFeedPage(items=items, pagination=Pagination.build(page, limit, total))


def _author_column(source_name: str):
    if source_name == "upload":
        return Slide.user_id
    if source_name in ("slide_comment", "knowhow_comment"):
        return Comment.user_id
    if source_name in ("slide_reply", "knowhow_reply"):
        return Reply.user_id
    return Article.user_id
