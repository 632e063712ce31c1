"""
평가(레이팅) 집계 서비스

슬라이드 난이도(0-100)와 페이지 별점(0-5)을 사용자별 한 건씩 저장하고,
쓰기마다 대상 전체를 다시 집계해 슬라이드 / 페이지 통계에 반영한다.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.core.database import dialect_insert, translate_store_errors
from nihongo_hub.core.exceptions import ValidationError, NotFoundError
from nihongo_hub.models.rating import Rating, RatingTargetKind, SCORE_RANGES, SLIDE_LEVEL_PAGE_INDEX
from nihongo_hub.models.slide import Slide, SlidePageStat
from nihongo_hub.models.user import User
from nihongo_hub.schemas.rating import (
    RatingResult,
    RatingItem,
    RatingSummary,
    FeedbackResult,
    RankingAuthor,
    DifficultyRankingItem,
    DifficultyRanking,
    OffsetPagination,
    DifficultyDistribution,
    DifficultyStats,
)
from nihongo_hub.utils.text_utils import utcnow

logger = logging.getLogger(__name__)


def round_half_up(value, places: int = 1) -> Optional[float]:
    """
    사사오입 반올림 (2.25 -> 2.3)

    내장 round() 는 은행가 반올림이라 DB 의 ROUND 와 결과가 달라진다.
    """
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_aggregate(value: Optional[float]) -> Optional[float]:
    """평균값을 소수점 첫째 자리로 반올림 (평가가 없으면 None)"""
    return round_half_up(value, 1)


def _parse_target_kind(target_kind) -> RatingTargetKind:
    try:
        return RatingTargetKind(target_kind)
    except ValueError:
        raise ValidationError(
            f"Invalid target kind: {target_kind}",
            details={"allowed": [kind.value for kind in RatingTargetKind]}
        )


def _resolve_page_index(kind: RatingTargetKind, page_index: Optional[int]) -> int:
    """대상 종류에 맞는 저장용 page_index (슬라이드 평가는 항상 0)"""
    if kind == RatingTargetKind.SLIDE:
        return SLIDE_LEVEL_PAGE_INDEX
    if page_index is None or page_index < 1:
        raise ValidationError("Page rating requires page_index >= 1")
    return page_index


def validate_score(kind: RatingTargetKind, score: float) -> None:
    """점수가 대상 종류의 허용 범위(양 끝 포함)에 있는지 검사"""
    low, high = SCORE_RANGES[kind]
    if score is None or not (low <= score <= high):
        raise ValidationError(
            f"Score must be between {low} and {high}",
            details={"target_kind": kind.value, "score": score}
        )


class RatingService:
    """슬라이드 / 페이지 평가 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_slide(self, slide_id: int, lock: bool = False) -> Slide:
        query = select(Slide).where(Slide.id == slide_id)
        if lock:
            # 같은 슬라이드에 대한 동시 제출은 재집계가 직렬화되도록 행 잠금
            query = query.with_for_update()
        result = await self.db.execute(query)
        slide = result.scalar_one_or_none()
        if not slide:
            raise NotFoundError(f"Slide not found: {slide_id}")
        return slide

    async def _compute_aggregate(
        self,
        slide_id: int,
        kind: RatingTargetKind,
        page_index: int
    ) -> Tuple[Optional[float], int]:
        result = await self.db.execute(
            select(func.avg(Rating.score), func.count(Rating.id)).where(
                Rating.slide_id == slide_id,
                Rating.target_kind == kind.value,
                Rating.page_index == page_index,
            )
        )
        average, count = result.one()
        return round_aggregate(average), int(count or 0)

    async def _store_page_stat(
        self,
        slide_id: int,
        page_index: int,
        average: Optional[float],
        count: int
    ) -> None:
        now = utcnow()
        stmt = dialect_insert(self.db, SlidePageStat.__table__).values(
            slide_id=slide_id,
            page_index=page_index,
            rating_average=average,
            rating_count=count,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["slide_id", "page_index"],
            set_={"rating_average": average, "rating_count": count, "updated_at": now},
        )
        await self.db.execute(stmt)

    @translate_store_errors("평가 제출")
    async def submit_rating(
        self,
        rater_id: int,
        slide_id: int,
        target_kind,
        score: float,
        feedback: Optional[str] = None,
        page_index: Optional[int] = None
    ) -> RatingResult:
        """
        평가 제출 (신규 또는 덮어쓰기)

        한 트랜잭션 안에서:
        1. 슬라이드 행 잠금 (SELECT ... FOR UPDATE)
        2. 평가 upsert (rater, kind, slide, page 조합당 한 행)
        3. 대상 전체 평균/개수 재계산 후 슬라이드 또는 페이지 통계에 반영

        Raises:
            ValidationError: 점수 범위 초과, 잘못된 page_index
            NotFoundError: 슬라이드 없음
        """
        kind = _parse_target_kind(target_kind)
        validate_score(kind, score)
        stored_page_index = _resolve_page_index(kind, page_index)

        slide = await self._get_slide(slide_id, lock=True)
        # rollback 후에는 slide 속성을 읽을 수 없으므로 먼저 꺼내 둔다
        page_count = slide.page_count
        if kind == RatingTargetKind.PAGE and page_count and stored_page_index > page_count:
            await self.db.rollback()
            raise ValidationError(
                f"page_index {stored_page_index} exceeds page count {page_count}",
                details={"page_count": page_count}
            )

        now = utcnow()
        stmt = dialect_insert(self.db, Rating.__table__).values(
            rater_id=rater_id,
            slide_id=slide_id,
            target_kind=kind.value,
            page_index=stored_page_index,
            score=float(score),
            feedback=feedback,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["rater_id", "target_kind", "slide_id", "page_index"],
            set_={"score": float(score), "feedback": feedback, "updated_at": now},
        )
        await self.db.execute(stmt)

        average, count = await self._compute_aggregate(slide_id, kind, stored_page_index)

        if kind == RatingTargetKind.SLIDE:
            slide.difficulty_score = average
            slide.rating_count = count
        else:
            await self._store_page_stat(slide_id, stored_page_index, average, count)

        await self.db.commit()

        logger.info(
            f"평가 저장: slide_id={slide_id}, kind={kind.value}, page={stored_page_index}, "
            f"rater_id={rater_id}, score={score} → aggregate={average} ({count}건)"
        )

        return RatingResult(
            slideId=slide_id,
            targetKind=kind.value,
            pageIndex=stored_page_index if kind == RatingTargetKind.PAGE else None,
            userScore=float(score),
            aggregate=average,
            ratingCount=count,
        )

    @translate_store_errors("평가 목록 조회")
    async def get_ratings(
        self,
        slide_id: int,
        target_kind=RatingTargetKind.SLIDE,
        page_index: Optional[int] = None
    ) -> RatingSummary:
        """대상의 개별 평가 목록 (평가자 이름 포함, 최근 수정순) + 현재 집계"""
        kind = _parse_target_kind(target_kind)
        stored_page_index = _resolve_page_index(kind, page_index)
        await self._get_slide(slide_id)

        result = await self.db.execute(
            select(Rating, User.full_name)
            .join(User, User.id == Rating.rater_id)
            .where(
                Rating.slide_id == slide_id,
                Rating.target_kind == kind.value,
                Rating.page_index == stored_page_index,
            )
            .order_by(Rating.updated_at.desc(), Rating.id.desc())
        )
        rows = result.all()

        items = [
            RatingItem(
                id=rating.id,
                raterId=rating.rater_id,
                raterName=full_name or "匿名",
                score=rating.score,
                feedback=rating.feedback,
                updatedAt=rating.updated_at,
            )
            for rating, full_name in rows
        ]
        average, count = await self._compute_aggregate(slide_id, kind, stored_page_index)

        return RatingSummary(
            slideId=slide_id,
            targetKind=kind.value,
            pageIndex=stored_page_index if kind == RatingTargetKind.PAGE else None,
            aggregate=average,
            ratingCount=count,
            ratings=items,
        )

    @translate_store_errors("평가 집계 조회")
    async def get_aggregate(
        self,
        slide_id: int,
        target_kind=RatingTargetKind.SLIDE,
        page_index: Optional[int] = None
    ) -> Tuple[Optional[float], int]:
        """현재 집계 (평균, 개수). 평가가 없으면 (None, 0)"""
        kind = _parse_target_kind(target_kind)
        stored_page_index = _resolve_page_index(kind, page_index)
        await self._get_slide(slide_id)
        return await self._compute_aggregate(slide_id, kind, stored_page_index)

    @translate_store_errors("평가 집계 재계산")
    async def reconcile_slide_aggregates(self) -> int:
        """
        모든 슬라이드의 저장된 집계를 원본 평가 행으로부터 다시 계산

        저장값과 계산값이 다른 슬라이드만 갱신한다.

        Returns:
            수정된 슬라이드 수
        """
        aggregates = await self.db.execute(
            select(Rating.slide_id, func.avg(Rating.score), func.count(Rating.id))
            .where(Rating.target_kind == RatingTargetKind.SLIDE.value)
            .group_by(Rating.slide_id)
        )
        computed = {
            slide_id: (round_aggregate(average), int(count))
            for slide_id, average, count in aggregates.all()
        }

        slides = (await self.db.execute(select(Slide).order_by(Slide.id))).scalars().all()

        fixed = 0
        for slide in slides:
            average, count = computed.get(slide.id, (None, 0))
            if slide.difficulty_score != average or (slide.rating_count or 0) != count:
                logger.warning(
                    f"집계 불일치 수정: slide_id={slide.id}, "
                    f"stored=({slide.difficulty_score}, {slide.rating_count}) → ({average}, {count})"
                )
                slide.difficulty_score = average
                slide.rating_count = count
                fixed += 1

        await self.db.commit()
        logger.info(f"평가 집계 재계산 완료: {fixed}/{len(slides)}개 슬라이드 수정")
        return fixed

    @translate_store_errors("평가 의견 수정")
    async def update_feedback(self, rater_id: int, slide_id: int, feedback: Optional[str]) -> FeedbackResult:
        """
        본인 슬라이드 평가의 의견만 수정 (점수와 집계는 그대로)

        Raises:
            NotFoundError: 이 슬라이드에 대한 본인 평가가 없음
        """
        result = await self.db.execute(
            select(Rating).where(
                Rating.rater_id == rater_id,
                Rating.slide_id == slide_id,
                Rating.target_kind == RatingTargetKind.SLIDE.value,
                Rating.page_index == SLIDE_LEVEL_PAGE_INDEX,
            )
        )
        rating = result.scalar_one_or_none()
        if not rating:
            raise NotFoundError(f"Rating not found: slide_id={slide_id}")

        rating.feedback = feedback
        rating.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"평가 의견 수정: slide_id={slide_id}, rater_id={rater_id}")
        return FeedbackResult(
            slideId=slide_id,
            userScore=rating.score,
            feedback=rating.feedback,
            updatedAt=rating.updated_at,
        )

    @translate_store_errors("난이도 랭킹 조회")
    async def get_difficulty_ranking(
        self,
        limit: int = 10,
        offset: int = 0,
        min_score: float = 0
    ) -> DifficultyRanking:
        """
        공개 슬라이드 난이도 랭킹

        difficulty_score >= min_score 인 슬라이드를 점수 내림차순, 같은 점수는 최신순으로.
        평가가 없는 슬라이드(점수 NULL)는 제외된다.

        Args:
            limit: 1-100
            offset: 0 이상
            min_score: 0-100
        """
        if not (1 <= limit <= 100):
            raise ValidationError("Limit must be between 1 and 100")
        if offset < 0:
            raise ValidationError("Offset must be non-negative")
        low, high = SCORE_RANGES[RatingTargetKind.SLIDE]
        if not (low <= min_score <= high):
            raise ValidationError(f"Min score must be between {low} and {high}")

        conditions = (Slide.is_public.is_(True), Slide.difficulty_score >= min_score)

        total = (await self.db.execute(select(func.count(Slide.id)).where(*conditions))).scalar() or 0

        result = await self.db.execute(
            select(Slide, User)
            .join(User, User.id == Slide.user_id)
            .where(*conditions)
            .order_by(Slide.difficulty_score.desc(), Slide.created_at.desc(), Slide.id.desc())
            .offset(offset)
            .limit(limit)
        )

        slides = [
            DifficultyRankingItem(
                id=slide.id,
                title=slide.title,
                description=slide.description,
                fileUrl=slide.file_url,
                difficultyLevel=slide.difficulty_level,
                difficultyScore=slide.difficulty_score,
                ratingCount=slide.rating_count or 0,
                viewCount=slide.view_count or 0,
                createdAt=slide.created_at,
                author=RankingAuthor(
                    id=user.id,
                    name=user.full_name or "匿名",
                    school=user.school_name or "",
                ),
            )
            for slide, user in result.all()
        ]

        return DifficultyRanking(
            slides=slides,
            pagination=OffsetPagination(total=total, limit=limit, offset=offset, hasMore=offset + limit < total),
        )

    @translate_store_errors("난이도 통계 조회")
    async def get_difficulty_stats(self) -> DifficultyStats:
        """공개 슬라이드의 난이도 평균 / 최대 / 최소와 구간별 분포"""
        score = Slide.difficulty_score

        def bucket(condition):
            return func.sum(case((condition, 1), else_=0))

        result = await self.db.execute(
            select(
                func.count(Slide.id),
                func.avg(score),
                func.max(score),
                func.min(score),
                bucket(score >= 80),
                bucket((score >= 60) & (score < 80)),
                bucket((score >= 40) & (score < 60)),
                bucket(score < 40),
            ).where(Slide.is_public.is_(True))
        )
        total, average, highest, lowest, very_difficult, difficult, moderate, easy = result.one()

        return DifficultyStats(
            totalSlides=total or 0,
            averageScore=round_half_up(average, 2),
            maxScore=highest,
            minScore=lowest,
            distribution=DifficultyDistribution(
                veryDifficult=very_difficult or 0,
                difficult=difficult or 0,
                moderate=moderate or 0,
                easy=easy or 0,
            ),
        )
