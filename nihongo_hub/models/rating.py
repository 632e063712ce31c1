"""
평가(레이팅) 데이터베이스 모델
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Float, Index, CheckConstraint
from sqlalchemy.sql import func
import enum

from nihongo_hub.core.database import Base
from nihongo_hub.utils.text_utils import utcnow


class RatingTargetKind(str, enum.Enum):
    """평가 대상 종류"""
    SLIDE = "slide"  # 슬라이드 전체 난이도 (0-100)
    PAGE = "page"    # 특정 페이지 별점 (0-5)


# 대상 종류별 허용 점수 범위 (양 끝 포함)
SCORE_RANGES = {
    RatingTargetKind.SLIDE: (0, 100),
    RatingTargetKind.PAGE: (0, 5),
}

# 슬라이드 전체 평가 행의 page_index 값
SLIDE_LEVEL_PAGE_INDEX = 0


class Rating(Base):
    """
    평가 테이블

    (rater_id, target_kind, slide_id, page_index) 조합당 최대 한 행.
    재제출은 기존 행을 덮어쓴다 (INSERT ... ON CONFLICT DO UPDATE).
    """
    __tablename__ = "slide_ratings"

    id = Column(Integer, primary_key=True, index=True)
    rater_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    slide_id = Column(Integer, ForeignKey("slides.id", ondelete="CASCADE"), nullable=False)
    target_kind = Column(String(10), nullable=False)
    page_index = Column(Integer, nullable=False, default=SLIDE_LEVEL_PAGE_INDEX)

    score = Column(Float, nullable=False)
    feedback = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index(
            'uq_slide_ratings_rater_target',
            'rater_id', 'target_kind', 'slide_id', 'page_index',
            unique=True,
        ),
        Index('ix_slide_ratings_target', 'slide_id', 'target_kind', 'page_index'),
        CheckConstraint("target_kind IN ('slide', 'page')", name="ck_slide_ratings_target_kind"),
    )
