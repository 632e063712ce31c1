"""
슬라이드 관련 데이터베이스 모델

슬라이드 생성(업로드)과 삭제는 업로드 서비스 담당.
이 서비스는 조회와 집계 점수 갱신만 수행한다.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Float, Index
from sqlalchemy.sql import func
import enum

from nihongo_hub.core.database import Base
from nihongo_hub.utils.text_utils import utcnow


class DifficultyLevel(str, enum.Enum):
    """슬라이드 난이도 분류"""
    BEGINNER = "初級"
    INTERMEDIATE = "中級"
    ADVANCED = "上級"
    N1 = "N1"
    N2 = "N2"
    N3 = "N3"
    N4 = "N4"
    N5 = "N5"


class Slide(Base):
    """슬라이드 테이블"""
    __tablename__ = "slides"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    difficulty_level = Column(String(10), nullable=True)  # DifficultyLevel 값
    is_public = Column(Boolean, default=True, nullable=False)
    thumbnail_url = Column(String(500), nullable=True)
    file_url = Column(String(500), nullable=True)
    page_count = Column(Integer, nullable=True)
    view_count = Column(Integer, default=0, nullable=False)

    # 집계 값 (slide_ratings 로부터 파생, 쓰기마다 재계산)
    difficulty_score = Column(Float, nullable=True)
    rating_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class SlidePageStat(Base):
    """페이지별 별점 집계 테이블 (slide_ratings 의 page 행으로부터 파생)"""
    __tablename__ = "slide_page_stats"

    slide_id = Column(Integer, ForeignKey("slides.id", ondelete="CASCADE"), primary_key=True)
    page_index = Column(Integer, primary_key=True)

    rating_average = Column(Float, nullable=True)
    rating_count = Column(Integer, default=0, nullable=False)

    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('ix_slide_page_stats_slide_id', 'slide_id'),
    )
