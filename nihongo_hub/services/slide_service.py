"""
슬라이드 토론 목록 / 상세 서비스

슬라이드 자체의 생성과 삭제는 업로드 서비스 담당이라 여기서는 읽기만 한다.
"""
import logging
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.core.database import translate_store_errors
from nihongo_hub.core.exceptions import NotFoundError, ValidationError
from nihongo_hub.models.discussion import Comment
from nihongo_hub.models.slide import Slide, SlidePageStat
from nihongo_hub.models.user import User
from nihongo_hub.schemas.common import Page, Pagination
from nihongo_hub.schemas.slide import SlideSummary, SlideDiscussionDetail, PageStat
from nihongo_hub.services.comment_service import build_comment_response
from nihongo_hub.utils.pagination import validate_page_params
from nihongo_hub.utils.text_utils import format_datetime_ja

logger = logging.getLogger(__name__)

SLIDE_SORT_OPTIONS = ("newest", "mostCommented", "highestRated")
RECENT_COMMENT_COUNT = 2


def _build_summary(slide: Slide, user: Optional[User], comment_count: int) -> SlideSummary:
    return SlideSummary(
        id=slide.id,
        title=slide.title,
        author=(user.full_name if user and user.full_name else "匿名"),
        university=(user.school_name if user and user.school_name else ""),
        difficulty=slide.difficulty_level,
        difficultyScore=slide.difficulty_score,
        ratingCount=slide.rating_count or 0,
        commentCount=comment_count,
        pageCount=slide.page_count,
        thumbnail=slide.thumbnail_url,
        createdAt=slide.created_at,
        uploadDate=format_datetime_ja(slide.created_at),
    )


class SlideService:
    """토론 대상 슬라이드 조회"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @translate_store_errors("슬라이드 목록 조회")
    async def list_slides(
        self,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "newest",
        search: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> Page[SlideSummary]:
        """
        공개 슬라이드 목록 (댓글 수, 난이도 집계 포함)

        sort_by:
        - newest: 업로드 최신순
        - mostCommented: 댓글 많은 순
        - highestRated: 난이도 평균 높은 순 (평가 없는 슬라이드는 뒤로)
        """
        if sort_by not in SLIDE_SORT_OPTIONS:
            raise ValidationError(f"sortBy must be one of {', '.join(SLIDE_SORT_OPTIONS)}")
        offset = validate_page_params(page, limit)

        comment_counts = (
            select(Comment.slide_id.label("slide_id"), func.count(Comment.id).label("comment_count"))
            .where(Comment.slide_id.is_not(None))
            .group_by(Comment.slide_id)
            .subquery()
        )
        comment_count = func.coalesce(comment_counts.c.comment_count, 0)

        query = select(Slide).where(Slide.is_public.is_(True))
        if search and search.strip():
            query = query.where(Slide.title.icontains(search.strip(), autoescape=True))
        if difficulty:
            query = query.where(Slide.difficulty_level == difficulty)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            query.add_columns(User, comment_count)
            .outerjoin(User, User.id == Slide.user_id)
            .outerjoin(comment_counts, comment_counts.c.slide_id == Slide.id)
        )
        if sort_by == "mostCommented":
            query = query.order_by(comment_count.desc(), Slide.created_at.desc(), Slide.id.desc())
        elif sort_by == "highestRated":
            query = query.order_by(
                Slide.difficulty_score.is_(None),
                Slide.difficulty_score.desc(),
                Slide.id.desc(),
            )
        else:
            query = query.order_by(Slide.created_at.desc(), Slide.id.desc())

        result = await self.db.execute(query.offset(offset).limit(limit))
        items = [_build_summary(slide, user, count) for slide, user, count in result.all()]

        return Page[SlideSummary](items=items, pagination=Pagination.build(page, limit, total))

    @translate_store_errors("슬라이드 존재 확인")
    async def ensure_public_slide(self, slide_id: int) -> None:
        """공개 슬라이드가 없으면 NotFoundError"""
        result = await self.db.execute(
            select(Slide.id).where(Slide.id == slide_id, Slide.is_public.is_(True))
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Slide not found: {slide_id}")

    @translate_store_errors("슬라이드 토론 상세 조회")
    async def get_slide_detail(self, slide_id: int) -> SlideDiscussionDetail:
        """공개 슬라이드의 토론 상세 (기본 정보, 페이지별 별점, 최근 댓글 2건)"""
        result = await self.db.execute(
            select(Slide, User)
            .outerjoin(User, User.id == Slide.user_id)
            .where(Slide.id == slide_id, Slide.is_public.is_(True))
        )
        row = result.first()
        if row is None:
            raise NotFoundError(f"Slide not found: {slide_id}")
        slide, user = row

        comment_count = (
            await self.db.execute(select(func.count(Comment.id)).where(Comment.slide_id == slide_id))
        ).scalar() or 0

        recent = await self.db.execute(
            select(Comment, User)
            .outerjoin(User, User.id == Comment.user_id)
            .where(Comment.slide_id == slide_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .limit(RECENT_COMMENT_COUNT)
        )

        page_stats = await self.db.execute(
            select(SlidePageStat)
            .where(SlidePageStat.slide_id == slide_id)
            .order_by(SlidePageStat.page_index)
        )

        return SlideDiscussionDetail(
            slide=_build_summary(slide, user, comment_count),
            description=slide.description,
            fileUrl=slide.file_url,
            views=slide.view_count or 0,
            pageStats=[
                PageStat(pageIndex=stat.page_index, average=stat.rating_average, ratingCount=stat.rating_count)
                for stat in page_stats.scalars().all()
            ],
            recentComments=[build_comment_response(comment, author) for comment, author in recent.all()],
        )
