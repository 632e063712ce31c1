"""
슬라이드 토론 목록 / 상세 서비스 단위 테스트
"""
import pytest

from nihongo_hub.core.exceptions import NotFoundError, ValidationError
from nihongo_hub.models import Comment, Slide
from nihongo_hub.services.rating_service import RatingService
from nihongo_hub.services.slide_service import SlideService


async def _add_slides(session, seed, clock):
    hard = Slide(user_id=seed.bob.id, title="敬語マスター", difficulty_level="N2", is_public=True, page_count=5, created_at=clock(5))
    easy = Slide(user_id=seed.bob.id, title="ひらがな入門", difficulty_level="N5", is_public=True, page_count=5, created_at=clock(6))
    session.add_all([hard, easy])
    await session.commit()
    return hard, easy


@pytest.mark.asyncio
async def test_list_slides_public_only_newest_first(db_session, seed, clock):
    hard, easy = await _add_slides(db_session, seed, clock)

    page = await SlideService(db_session).list_slides()

    assert [item.id for item in page.items] == [easy.id, hard.id, seed.slide.id]
    assert page.pagination.totalItems == 3
    assert seed.private_slide.id not in [item.id for item in page.items]


@pytest.mark.asyncio
async def test_list_slides_sorting(db_session, seed, clock):
    """mostCommented 는 댓글 수, highestRated 는 난이도 평균 (평가 없는 슬라이드는 마지막)"""
    hard, easy = await _add_slides(db_session, seed, clock)
    db_session.add_all([
        Comment(slide_id=hard.id, user_id=seed.alice.id, content="難しい", created_at=clock(10)),
        Comment(slide_id=hard.id, user_id=seed.carol.id, content="難しすぎる", created_at=clock(11)),
        Comment(slide_id=seed.slide.id, user_id=seed.bob.id, content="良い", created_at=clock(12)),
    ])
    await db_session.commit()

    ratings = RatingService(db_session)
    await ratings.submit_rating(seed.alice.id, hard.id, "slide", 90)
    await ratings.submit_rating(seed.alice.id, easy.id, "slide", 10)

    service = SlideService(db_session)

    commented = await service.list_slides(sort_by="mostCommented")
    assert [item.id for item in commented.items] == [hard.id, seed.slide.id, easy.id]
    assert [item.commentCount for item in commented.items] == [2, 1, 0]

    rated = await service.list_slides(sort_by="highestRated")
    assert [item.id for item in rated.items] == [hard.id, easy.id, seed.slide.id]
    assert rated.items[0].difficultyScore == 90.0
    assert rated.items[2].difficultyScore is None


@pytest.mark.asyncio
async def test_list_slides_search_and_difficulty(db_session, seed, clock):
    hard, _ = await _add_slides(db_session, seed, clock)
    service = SlideService(db_session)

    searched = await service.list_slides(search="敬語")
    assert [item.id for item in searched.items] == [hard.id]

    n4 = await service.list_slides(difficulty="N4")
    assert [item.id for item in n4.items] == [seed.slide.id]

    with pytest.raises(ValidationError):
        await service.list_slides(sort_by="random")


@pytest.mark.asyncio
async def test_slide_detail(db_session, seed, clock):
    """상세에는 댓글 수, 최근 댓글 2건, 페이지별 별점 포함"""
    for minutes in (10, 11, 12):
        db_session.add(Comment(slide_id=seed.slide.id, user_id=seed.bob.id, content=f"c{minutes}", created_at=clock(minutes)))
    await db_session.commit()
    await RatingService(db_session).submit_rating(seed.bob.id, seed.slide.id, "page", 4, page_index=3)

    detail = await SlideService(db_session).get_slide_detail(seed.slide.id)

    assert detail.slide.commentCount == 3
    assert detail.slide.author == "Alice"
    assert [comment.content for comment in detail.recentComments] == ["c12", "c11"]
    assert [(stat.pageIndex, stat.average, stat.ratingCount) for stat in detail.pageStats] == [(3, 4.0, 1)]


@pytest.mark.asyncio
async def test_slide_detail_hides_private_and_missing(db_session, seed):
    service = SlideService(db_session)

    with pytest.raises(NotFoundError):
        await service.get_slide_detail(seed.private_slide.id)
    with pytest.raises(NotFoundError):
        await service.get_slide_detail(9999)


@pytest.mark.asyncio
async def test_ensure_public_slide(db_session, seed):
    """공개 슬라이드만 통과, 비공개 / 없는 슬라이드는 NotFoundError"""
    service = SlideService(db_session)

    await service.ensure_public_slide(seed.slide.id)
    with pytest.raises(NotFoundError):
        await service.ensure_public_slide(seed.private_slide.id)
    with pytest.raises(NotFoundError):
        await service.ensure_public_slide(9999)
