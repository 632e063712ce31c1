"""
노하우 게시글 리액션 데이터베이스 모델
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
import enum

from nihongo_hub.core.database import Base
from nihongo_hub.utils.text_utils import utcnow


class ReactionKind(str, enum.Enum):
    """리액션 종류"""
    LOVE = "love"
    LIKE = "like"
    HAHA = "haha"
    WOW = "wow"
    SAD = "sad"
    ANGRY = "angry"


class Reaction(Base):
    """리액션 테이블 ((user_id, article_id) 당 한 행)"""
    __tablename__ = "know_how_reactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    article_id = Column(Integer, ForeignKey("know_how_articles.id", ondelete="CASCADE"), nullable=False)
    reaction_type = Column(String(10), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('uq_know_how_reactions_user_article', 'user_id', 'article_id', unique=True),
        Index('ix_know_how_reactions_article', 'article_id'),
    )
