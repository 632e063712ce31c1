"""
노하우 게시글 서비스 단위 테스트
"""
import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func

from nihongo_hub.core.exceptions import NotFoundError
from nihongo_hub.models import Article, Comment, Tag
from nihongo_hub.schemas.knowhow import ArticleCreate
from nihongo_hub.services.knowhow_service import KnowhowService


@pytest.mark.asyncio
async def test_create_article_normalizes_and_dedupes_tags(db_session, seed):
    """태그는 정규화 후 중복 제거, 기존 태그는 재사용"""
    service = KnowhowService(db_session)

    first = await service.create_article(
        seed.alice.id,
        ArticleCreate(title=" 会話練習 ", content="ロールプレイを使う", tags=["Speaking!", "speaking", "会話"]),
    )

    assert first.title == "会話練習"
    assert first.author == "Alice"
    assert first.school == "東京大学"
    assert sorted(tag.name for tag in first.tags) == ["speaking", "会話"]

    second = await service.create_article(
        seed.bob.id,
        ArticleCreate(title="発音", content="シャドーイング", tags=["SPEAKING"]),
    )
    assert [tag.name for tag in second.tags] == ["speaking"]

    tag_count = (await db_session.execute(select(func.count(Tag.id)))).scalar()
    assert tag_count == 2


def test_article_create_rejects_blank_tag():
    with pytest.raises(PydanticValidationError):
        ArticleCreate(title="タイトル", content="本文", tags=["  "])
    with pytest.raises(PydanticValidationError):
        ArticleCreate(title="タイトル", content="本文", tags=["x" * 51])


@pytest.mark.asyncio
async def test_private_article_visible_only_to_owner(db_session, seed):
    """비공개 게시글은 작성자만 조회 가능"""
    service = KnowhowService(db_session)
    created = await service.create_article(
        seed.bob.id,
        ArticleCreate(title="下書き", content="まだ途中", is_public=False),
    )

    own = await service.get_article(created.id, viewer_id=seed.bob.id)
    assert own.isPublic is False

    with pytest.raises(NotFoundError):
        await service.get_article(created.id, viewer_id=seed.alice.id)
    with pytest.raises(NotFoundError):
        await service.get_article(created.id)
    with pytest.raises(NotFoundError):
        await service.get_article(9999)


@pytest.mark.asyncio
async def test_get_article_counts_comments(db_session, seed):
    db_session.add_all([
        Comment(article_id=seed.article.id, user_id=seed.alice.id, content="参考になります"),
        Comment(article_id=seed.article.id, user_id=seed.carol.id, content="ありがとうございます"),
    ])
    await db_session.commit()

    article = await KnowhowService(db_session).get_article(seed.article.id)

    assert article.commentCount == 2
    assert article.author == "Bob"


@pytest.mark.asyncio
async def test_list_articles_filters(db_session, seed):
    """공개 글만 최신순, 태그/작성자 부분 일치 필터"""
    service = KnowhowService(db_session)
    await service.create_article(seed.alice.id, ArticleCreate(title="漢字", content="部首から", tags=["kanji"]))
    await service.create_article(seed.alice.id, ArticleCreate(title="非公開", content="メモ", is_public=False))

    all_public = await service.list_articles()
    assert [item.title for item in all_public.items] == ["漢字", "敬語の教え方"]
    assert all_public.pagination.totalItems == 2

    tagged = await service.list_articles(tag="KAN")
    assert [item.title for item in tagged.items] == ["漢字"]

    by_author = await service.list_articles(author="bo")
    assert [item.title for item in by_author.items] == ["敬語の教え方"]

    hidden = (await db_session.execute(select(func.count(Article.id)).where(Article.is_public.is_(False)))).scalar()
    assert hidden == 1
