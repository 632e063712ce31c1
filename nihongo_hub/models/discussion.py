"""
댓글 / 답글 데이터베이스 모델

데이터 불변식:
- 댓글의 부모는 슬라이드 또는 노하우 게시글 중 정확히 하나 (CHECK 제약)
- 답글은 댓글 아래 한 단계만 존재하며, 부모 댓글이 삭제되면 함께 삭제됨
  (FK ON DELETE CASCADE + 서비스 계층의 명시적 삭제)
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from nihongo_hub.core.database import Base
from nihongo_hub.utils.text_utils import utcnow


class CommentKind(str, enum.Enum):
    """댓글 종류"""
    COMMENT = "comment"
    PROPOSAL = "proposal"  # 내용 수정 제안


class CommentParentType(str, enum.Enum):
    """댓글이 달리는 대상"""
    SLIDE = "slide"
    ARTICLE = "article"


class Comment(Base):
    """댓글 테이블 (슬라이드 댓글 + 노하우 댓글)"""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    slide_id = Column(Integer, ForeignKey("slides.id", ondelete="CASCADE"), nullable=True)
    article_id = Column(Integer, ForeignKey("know_how_articles.id", ondelete="CASCADE"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False)
    kind = Column(String(20), nullable=False, default=CommentKind.COMMENT.value)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    # 관계
    replies = relationship(
        "Reply",
        back_populates="comment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "(slide_id IS NOT NULL AND article_id IS NULL) OR (slide_id IS NULL AND article_id IS NOT NULL)",
            name="ck_comments_single_parent",
        ),
        CheckConstraint("kind IN ('comment', 'proposal')", name="ck_comments_kind"),
        Index('ix_comments_slide_created', 'slide_id', 'created_at'),
        Index('ix_comments_article_created', 'article_id', 'created_at'),
    )

    @property
    def parent_type(self) -> CommentParentType:
        return CommentParentType.SLIDE if self.slide_id is not None else CommentParentType.ARTICLE


class Reply(Base):
    """답글 테이블 (댓글 아래 한 단계만)"""
    __tablename__ = "replies"

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    # 관계
    comment = relationship("Comment", back_populates="replies")
