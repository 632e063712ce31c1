"""
노하우 게시글 리액션 서비스
"""
import logging

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.core.database import dialect_insert, translate_store_errors
from nihongo_hub.core.exceptions import ValidationError, NotFoundError
from nihongo_hub.models.knowhow import Article
from nihongo_hub.models.reaction import Reaction, ReactionKind
from nihongo_hub.schemas.reaction import ReactionCounts, ReactionState
from nihongo_hub.utils.text_utils import utcnow

logger = logging.getLogger(__name__)

NO_REACTION = "none"


class ReactionService:
    """게시글당 사용자 한 명에 리액션 하나"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_article(self, article_id: int) -> None:
        result = await self.db.execute(select(Article.id).where(Article.id == article_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Article not found: {article_id}")

    @translate_store_errors("리액션 설정")
    async def set_reaction(self, user_id: int, article_id: int, kind: str) -> ReactionState:
        """
        리액션 설정 (기존 리액션이 있으면 종류만 교체)

        Raises:
            ValidationError: 지원하지 않는 리액션 종류
            NotFoundError: 게시글 없음
        """
        try:
            reaction_kind = ReactionKind(kind)
        except ValueError:
            raise ValidationError(
                f"Invalid reaction type: {kind}",
                details={"allowed": [k.value for k in ReactionKind]}
            )

        await self._ensure_article(article_id)

        now = utcnow()
        stmt = dialect_insert(self.db, Reaction.__table__).values(
            user_id=user_id,
            article_id=article_id,
            reaction_type=reaction_kind.value,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "article_id"],
            set_={"reaction_type": reaction_kind.value, "updated_at": now},
        )
        await self.db.execute(stmt)
        await self.db.commit()

        logger.info(f"리액션 설정: article_id={article_id}, user_id={user_id}, type={reaction_kind.value}")
        return ReactionState(articleId=article_id, reactionType=reaction_kind.value)

    @translate_store_errors("리액션 삭제")
    async def remove_reaction(self, user_id: int, article_id: int) -> bool:
        """사용자의 리액션 삭제. 삭제된 행이 있었으면 True"""
        await self._ensure_article(article_id)

        result = await self.db.execute(
            delete(Reaction).where(Reaction.user_id == user_id, Reaction.article_id == article_id)
        )
        await self.db.commit()

        removed = (result.rowcount or 0) > 0
        logger.info(f"리액션 삭제: article_id={article_id}, user_id={user_id}, removed={removed}")
        return removed

    @translate_store_errors("리액션 집계 조회")
    async def get_counts(self, article_id: int) -> ReactionCounts:
        """종류별 리액션 수 (6종 모두, 없으면 0)"""
        await self._ensure_article(article_id)

        result = await self.db.execute(
            select(Reaction.reaction_type, func.count(Reaction.id))
            .where(Reaction.article_id == article_id)
            .group_by(Reaction.reaction_type)
        )
        counts = {kind.value: 0 for kind in ReactionKind}
        for reaction_type, count in result.all():
            if reaction_type in counts:
                counts[reaction_type] = count
        return ReactionCounts(**counts)

    @translate_store_errors("사용자 리액션 조회")
    async def get_user_reaction(self, user_id: int, article_id: int) -> str:
        """사용자의 현재 리액션 종류 (없으면 'none')"""
        await self._ensure_article(article_id)

        result = await self.db.execute(
            select(Reaction.reaction_type).where(
                Reaction.user_id == user_id,
                Reaction.article_id == article_id,
            )
        )
        return result.scalar_one_or_none() or NO_REACTION
