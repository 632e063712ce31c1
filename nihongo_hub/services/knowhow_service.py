"""
노하우 게시글 서비스
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.core.database import dialect_insert, translate_store_errors
from nihongo_hub.core.exceptions import NotFoundError, ValidationError
from nihongo_hub.models.discussion import Comment
from nihongo_hub.models.knowhow import Article, Tag, article_tags
from nihongo_hub.models.user import User
from nihongo_hub.schemas.common import Page, Pagination
from nihongo_hub.schemas.knowhow import ArticleCreate, ArticleResponse, TagInfo
from nihongo_hub.utils.pagination import validate_page_params
from nihongo_hub.utils.text_utils import normalize_tag_name

logger = logging.getLogger(__name__)


def build_article_response(article: Article, user: Optional[User], comment_count: int = 0) -> ArticleResponse:
    return ArticleResponse(
        id=article.id,
        title=article.title,
        content=article.content,
        authorId=article.user_id,
        author=(user.full_name if user and user.full_name else "匿名"),
        school=(user.school_name if user and user.school_name else ""),
        authorAvatar=(user.avatar_url if user else None),
        isPublic=article.is_public,
        tags=[TagInfo(id=tag.id, name=tag.name) for tag in sorted(article.tags, key=lambda t: t.id)],
        commentCount=comment_count,
        createdAt=article.created_at,
        updatedAt=article.updated_at,
    )


class KnowhowService:
    """노하우 게시글 작성 / 조회"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_or_create_tags(self, raw_tags: List[str]) -> List[Tag]:
        names: List[str] = []
        for raw in raw_tags:
            name = normalize_tag_name(raw)
            if name and name not in names:
                names.append(name)
        if not names:
            return []

        for name in names:
            stmt = dialect_insert(self.db, Tag.__table__).values(name=name, type="keyword")
            await self.db.execute(stmt.on_conflict_do_nothing(index_elements=["name"]))

        result = await self.db.execute(select(Tag).where(Tag.name.in_(names)))
        return list(result.scalars().all())

    async def _comment_counts(self, article_ids: List[int]) -> Dict[int, int]:
        if not article_ids:
            return {}
        result = await self.db.execute(
            select(Comment.article_id, func.count(Comment.id))
            .where(Comment.article_id.in_(article_ids))
            .group_by(Comment.article_id)
        )
        return {article_id: count for article_id, count in result.all()}

    @translate_store_errors("노하우 게시글 작성")
    async def create_article(self, user_id: int, data: ArticleCreate) -> ArticleResponse:
        """
        게시글 작성 (게시글 + 태그 연결을 한 트랜잭션으로)

        태그는 정규화 후 중복 제거, 없는 태그는 새로 생성
        """
        title = data.title.strip()
        content = data.content.strip()
        if not title or not content:
            raise ValidationError("Title and content are required")

        tags = await self._get_or_create_tags(data.tags)

        article = Article(
            user_id=user_id,
            title=title,
            content=content,
            is_public=data.is_public,
        )
        article.tags = tags
        self.db.add(article)
        await self.db.commit()
        await self.db.refresh(article)

        user = (await self.db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        logger.info(f"노하우 게시글 작성: article_id={article.id}, user_id={user_id}, tags={[t.name for t in tags]}")
        return build_article_response(article, user)

    @translate_store_errors("노하우 게시글 조회")
    async def get_article(self, article_id: int, viewer_id: Optional[int] = None) -> ArticleResponse:
        """게시글 상세 (비공개 글은 작성자에게만)"""
        result = await self.db.execute(
            select(Article, User)
            .outerjoin(User, User.id == Article.user_id)
            .where(Article.id == article_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError(f"Article not found: {article_id}")

        article, user = row
        if not article.is_public and article.user_id != viewer_id:
            raise NotFoundError(f"Article not found: {article_id}")

        counts = await self._comment_counts([article.id])
        return build_article_response(article, user, counts.get(article.id, 0))

    @translate_store_errors("노하우 게시글 목록 조회")
    async def list_articles(
        self,
        page: int = 1,
        limit: int = 10,
        tag: Optional[str] = None,
        author: Optional[str] = None
    ) -> Page[ArticleResponse]:
        """
        공개 게시글 목록 (최신순)

        - tag: 태그 이름 부분 일치 (대소문자 무시)
        - author: 작성자 이름 부분 일치 (대소문자 무시)
        """
        offset = validate_page_params(page, limit)

        query = select(Article).where(Article.is_public.is_(True))

        if tag and tag.strip():
            tagged = (
                select(article_tags.c.article_id)
                .join(Tag, Tag.id == article_tags.c.tag_id)
                .where(Tag.name.icontains(tag.strip(), autoescape=True))
            )
            query = query.where(Article.id.in_(tagged))

        if author and author.strip():
            authored = select(User.id).where(User.full_name.icontains(author.strip(), autoescape=True))
            query = query.where(Article.user_id.in_(authored))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(
            query.add_columns(User)
            .outerjoin(User, User.id == Article.user_id)
            .order_by(Article.created_at.desc(), Article.id.desc())
            .offset(offset)
            .limit(limit)
        )
        rows = result.all()

        counts = await self._comment_counts([article.id for article, _ in rows])
        items = [build_article_response(article, user, counts.get(article.id, 0)) for article, user in rows]

        return Page[ArticleResponse](items=items, pagination=Pagination.build(page, limit, total))
