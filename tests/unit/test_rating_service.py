"""
평가 집계 서비스 단위 테스트
"""
import asyncio

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from nihongo_hub.core.database import Base
from nihongo_hub.core.exceptions import ValidationError, NotFoundError
from nihongo_hub.models import Rating, Slide, SlidePageStat, RatingTargetKind, User
from nihongo_hub.services.rating_service import RatingService, round_aggregate, round_half_up, validate_score


def test_round_aggregate():
    """평균은 소수점 첫째 자리로 반올림, 평가가 없으면 None"""
    assert round_aggregate(None) is None
    assert round_aggregate(90) == 90.0
    assert round_aggregate(3.6666) == 3.7
    assert round_aggregate(2.25) == 2.3
    assert round_aggregate(0.05) == 0.1
    assert round_half_up(66.665, 2) == 66.67


def test_validate_score_bounds_are_inclusive():
    """양 끝 값은 허용, 범위를 벗어나면 ValidationError"""
    validate_score(RatingTargetKind.SLIDE, 0)
    validate_score(RatingTargetKind.SLIDE, 100)
    validate_score(RatingTargetKind.PAGE, 5)

    with pytest.raises(ValidationError):
        validate_score(RatingTargetKind.SLIDE, 101)
    with pytest.raises(ValidationError):
        validate_score(RatingTargetKind.PAGE, 5.5)
    with pytest.raises(ValidationError):
        validate_score(RatingTargetKind.PAGE, -1)


@pytest.mark.asyncio
async def test_three_raters_average(db_session, seed):
    """80, 90, 100 점 → 평균 90.0, 3건"""
    service = RatingService(db_session)

    await service.submit_rating(seed.alice.id, seed.slide.id, "slide", 80)
    await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 90)
    result = await service.submit_rating(seed.carol.id, seed.slide.id, "slide", 100)

    assert result.aggregate == 90.0
    assert result.ratingCount == 3
    assert result.userScore == 100

    slide = (await db_session.execute(select(Slide).where(Slide.id == seed.slide.id))).scalar_one()
    await db_session.refresh(slide)
    assert slide.difficulty_score == 90.0
    assert slide.rating_count == 3


@pytest.mark.asyncio
async def test_resubmission_overwrites_previous_rating(db_session, seed):
    """같은 사용자가 다시 제출하면 행이 하나만 남고 마지막 점수로 덮어씀"""
    service = RatingService(db_session)

    await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 40, feedback="簡単")
    result = await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 70, feedback="やや難しい")

    assert result.aggregate == 70.0
    assert result.ratingCount == 1

    rows = (await db_session.execute(
        select(Rating).where(Rating.rater_id == seed.bob.id, Rating.slide_id == seed.slide.id)
    )).scalars().all()
    assert len(rows) == 1
    assert rows[0].score == 70
    assert rows[0].feedback == "やや難しい"


@pytest.mark.asyncio
async def test_same_submission_twice_is_idempotent(db_session, seed):
    """같은 점수를 두 번 제출해도 집계는 한 번 제출한 것과 같음"""
    service = RatingService(db_session)

    first = await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 65)
    second = await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 65)

    assert first.aggregate == second.aggregate == 65.0
    assert first.ratingCount == second.ratingCount == 1


@pytest.mark.asyncio
async def test_page_rating_updates_page_stat(db_session, seed):
    """페이지 별점은 slide_page_stats 에 집계되고 슬라이드 난이도에는 영향 없음"""
    service = RatingService(db_session)

    await service.submit_rating(seed.alice.id, seed.slide.id, "page", 4, page_index=2)
    result = await service.submit_rating(seed.bob.id, seed.slide.id, "page", 5, page_index=2)

    assert result.pageIndex == 2
    assert result.aggregate == 4.5
    assert result.ratingCount == 2

    stat = (await db_session.execute(
        select(SlidePageStat).where(SlidePageStat.slide_id == seed.slide.id, SlidePageStat.page_index == 2)
    )).scalar_one()
    assert stat.rating_average == 4.5
    assert stat.rating_count == 2

    average, count = await service.get_aggregate(seed.slide.id, "slide")
    assert average is None
    assert count == 0


@pytest.mark.asyncio
async def test_slide_and_page_ratings_are_separate_targets(db_session, seed):
    """같은 사용자의 슬라이드 평가와 페이지 평가는 서로 다른 행"""
    service = RatingService(db_session)

    await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 50)
    await service.submit_rating(seed.bob.id, seed.slide.id, "page", 3, page_index=1)

    count = (await db_session.execute(
        select(func.count(Rating.id)).where(Rating.rater_id == seed.bob.id)
    )).scalar()
    assert count == 2


@pytest.mark.asyncio
async def test_out_of_range_score_writes_nothing(db_session, seed):
    """범위를 벗어난 점수는 ValidationError, 행이 생기지 않음"""
    service = RatingService(db_session)

    with pytest.raises(ValidationError):
        await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 150)
    with pytest.raises(ValidationError):
        await service.submit_rating(seed.bob.id, seed.slide.id, "page", 6, page_index=1)

    count = (await db_session.execute(select(func.count(Rating.id)))).scalar()
    assert count == 0


@pytest.mark.asyncio
async def test_page_index_validation(db_session, seed):
    """페이지 평가는 1 이상, 슬라이드 페이지 수 이하만 허용"""
    service = RatingService(db_session)

    with pytest.raises(ValidationError):
        await service.submit_rating(seed.bob.id, seed.slide.id, "page", 3)
    with pytest.raises(ValidationError):
        await service.submit_rating(seed.bob.id, seed.slide.id, "page", 3, page_index=0)
    with pytest.raises(ValidationError):
        await service.submit_rating(seed.bob.id, seed.slide.id, "page", 3, page_index=11)

    # 거절 후에도 같은 세션으로 정상 제출 가능
    result = await service.submit_rating(seed.bob.id, seed.slide.id, "page", 3, page_index=10)
    assert result.pageIndex == 10
    assert result.ratingCount == 1


@pytest.mark.asyncio
async def test_unknown_target_kind_and_missing_slide(db_session, seed):
    """잘못된 대상 종류는 ValidationError, 없는 슬라이드는 NotFoundError"""
    service = RatingService(db_session)

    with pytest.raises(ValidationError):
        await service.submit_rating(seed.bob.id, seed.slide.id, "deck", 50)
    with pytest.raises(NotFoundError):
        await service.submit_rating(seed.bob.id, 9999, "slide", 50)


@pytest.mark.asyncio
async def test_get_ratings_lists_rater_names(db_session, seed):
    """개별 평가 목록에 평가자 이름 포함 (이름 없으면 匿名)"""
    service = RatingService(db_session)
    await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 60, feedback="文法が多い")
    await service.submit_rating(seed.carol.id, seed.slide.id, "slide", 30)

    summary = await service.get_ratings(seed.slide.id, "slide")

    assert summary.ratingCount == 2
    assert summary.aggregate == 45.0
    names = sorted(item.raterName for item in summary.ratings)
    assert names == ["Bob", "匿名"]


@pytest.mark.asyncio
async def test_reconcile_fixes_drifted_aggregates(db_session, seed):
    """저장된 집계가 원본과 다르면 재계산으로 바로잡음"""
    service = RatingService(db_session)
    await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 80)
    await service.submit_rating(seed.carol.id, seed.slide.id, "slide", 60)

    slide = (await db_session.execute(select(Slide).where(Slide.id == seed.slide.id))).scalar_one()
    slide.difficulty_score = 12.3
    slide.rating_count = 9
    private_slide = (await db_session.execute(select(Slide).where(Slide.id == seed.private_slide.id))).scalar_one()
    private_slide.rating_count = 4
    await db_session.commit()

    fixed = await service.reconcile_slide_aggregates()
    assert fixed == 2

    await db_session.refresh(slide)
    await db_session.refresh(private_slide)
    assert slide.difficulty_score == 70.0
    assert slide.rating_count == 2
    assert private_slide.difficulty_score is None
    assert private_slide.rating_count == 0

    assert await service.reconcile_slide_aggregates() == 0


@pytest.mark.asyncio
async def test_half_way_average_rounds_up(db_session, seed):
    """1, 2, 3.75 점 → 평균 2.25 는 2.3 으로 저장"""
    service = RatingService(db_session)

    await service.submit_rating(seed.alice.id, seed.slide.id, "slide", 1)
    await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 2)
    result = await service.submit_rating(seed.carol.id, seed.slide.id, "slide", 3.75)

    assert result.aggregate == 2.3
    assert await service.get_aggregate(seed.slide.id, "slide") == (2.3, 3)


@pytest.mark.asyncio
async def test_concurrent_first_ratings_are_both_counted(tmp_path):
    """
    두 사용자가 동시에 처음 평가해도 두 건 모두 집계에 반영

    세션마다 별도 커넥션이 필요하므로 파일 기반 SQLite 를 사용한다.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ratings.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async with factory() as session:
        owner = User(email="owner@example.com", full_name="Owner")
        first = User(email="first@example.com", full_name="First")
        second = User(email="second@example.com", full_name="Second")
        session.add_all([owner, first, second])
        await session.flush()
        slide = Slide(user_id=owner.id, title="同時評価", is_public=True, page_count=3)
        session.add(slide)
        await session.commit()
        slide_id, rater_ids = slide.id, (first.id, second.id)

    async def submit(rater_id, score):
        async with factory() as session:
            return await RatingService(session).submit_rating(rater_id, slide_id, "slide", score)

    try:
        await asyncio.gather(submit(rater_ids[0], 40), submit(rater_ids[1], 90))

        async with factory() as session:
            stored = (await session.execute(select(Slide).where(Slide.id == slide_id))).scalar_one()
            assert stored.rating_count == 2
            assert stored.difficulty_score == 65.0
            assert await RatingService(session).get_aggregate(slide_id, "slide") == (65.0, 2)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_update_feedback_keeps_score(db_session, seed):
    """의견만 바뀌고 점수 / 집계는 그대로, 평가가 없으면 NotFoundError"""
    service = RatingService(db_session)
    await service.submit_rating(seed.bob.id, seed.slide.id, "slide", 70, feedback="難しい")

    updated = await service.update_feedback(seed.bob.id, seed.slide.id, "後半だけ難しい")

    assert updated.feedback == "後半だけ難しい"
    assert updated.userScore == 70
    assert await service.get_aggregate(seed.slide.id, "slide") == (70.0, 1)

    with pytest.raises(NotFoundError):
        await service.update_feedback(seed.alice.id, seed.slide.id, "評価していない")
    with pytest.raises(NotFoundError):
        await service.update_feedback(seed.bob.id, seed.private_slide.id, "評価していない")


async def _scored_slides(session, seed, clock):
    """공개 슬라이드 4개(85, 70, 70, 30점) + 비공개 95점 + 평가 없는 시드 슬라이드"""
    slides = [
        Slide(user_id=seed.bob.id, title="敬語", is_public=True, difficulty_score=85, rating_count=2, created_at=clock(5)),
        Slide(user_id=seed.bob.id, title="受身", is_public=True, difficulty_score=70, rating_count=1, created_at=clock(6)),
        Slide(user_id=seed.alice.id, title="使役", is_public=True, difficulty_score=70, rating_count=1, created_at=clock(7)),
        Slide(user_id=seed.carol.id, title="挨拶", is_public=True, difficulty_score=30, rating_count=3, created_at=clock(8)),
    ]
    session.add_all(slides)
    seed_private = (await session.execute(select(Slide).where(Slide.id == seed.private_slide.id))).scalar_one()
    seed_private.difficulty_score = 95
    await session.commit()
    return slides


@pytest.mark.asyncio
async def test_difficulty_ranking_order_and_paging(db_session, seed, clock):
    """점수 내림차순, 동점은 최신순, 비공개 / 평가 없는 슬라이드 제외"""
    keigo, ukemi, shieki, aisatsu = await _scored_slides(db_session, seed, clock)
    service = RatingService(db_session)

    ranking = await service.get_difficulty_ranking()
    assert [item.id for item in ranking.slides] == [keigo.id, shieki.id, ukemi.id, aisatsu.id]
    assert ranking.pagination.total == 4
    assert ranking.pagination.hasMore is False
    assert ranking.slides[-1].author.name == "匿名"

    paged = await service.get_difficulty_ranking(limit=2, offset=1)
    assert [item.id for item in paged.slides] == [shieki.id, ukemi.id]
    assert paged.pagination.hasMore is True

    filtered = await service.get_difficulty_ranking(min_score=70)
    assert filtered.pagination.total == 3

    for kwargs in ({"limit": 0}, {"limit": 101}, {"offset": -1}, {"min_score": 101}):
        with pytest.raises(ValidationError):
            await service.get_difficulty_ranking(**kwargs)


@pytest.mark.asyncio
async def test_difficulty_stats(db_session, seed, clock):
    """공개 슬라이드 기준 평균 / 최대 / 최소와 구간 분포"""
    await _scored_slides(db_session, seed, clock)

    stats = await RatingService(db_session).get_difficulty_stats()

    assert stats.totalSlides == 5
    assert stats.averageScore == 63.75
    assert stats.maxScore == 85
    assert stats.minScore == 30
    assert stats.distribution.model_dump() == {"veryDifficult": 1, "difficult": 2, "moderate": 0, "easy": 1}


@pytest.mark.asyncio
async def test_difficulty_stats_without_ratings(db_session, seed):
    stats = await RatingService(db_session).get_difficulty_stats()

    assert stats.totalSlides == 1
    assert stats.averageScore is None
    assert stats.distribution.easy == 0
