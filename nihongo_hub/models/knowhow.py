"""
노하우 게시글 관련 데이터베이스 모델
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from nihongo_hub.core.database import Base
from nihongo_hub.utils.text_utils import utcnow


# 게시글 ↔ 태그 (다대다)
article_tags = Table(
    "know_how_tags",
    Base.metadata,
    Column("article_id", Integer, ForeignKey("know_how_articles.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """태그 테이블 (이름은 정규화된 값으로 유일)"""
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    type = Column(String(20), default="keyword", nullable=False)


class Article(Base):
    """노하우 게시글 테이블"""
    __tablename__ = "know_how_articles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # 관계 (비동기 세션에서 지연 로딩을 피하기 위해 selectin)
    tags = relationship("Tag", secondary=article_tags, lazy="selectin")
