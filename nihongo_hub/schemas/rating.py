"""
평가(레이팅) Pydantic 스키마
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class RatingSubmit(BaseModel):
    """
    평가 제출 요청

    점수 범위는 대상 종류에 따라 다르므로 (슬라이드 0-100, 페이지 0-5)
    서비스 계층에서 검증한다.
    """
    score: float = Field(..., description="점수 (슬라이드: 난이도 0-100, 페이지: 별점 0-5)")
    feedback: Optional[str] = Field(None, description="자유 의견", max_length=2000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "score": 80,
                "feedback": "後半の文法説明が難しい"
            }
        }
    )


class RatingResult(BaseModel):
    """평가 제출 결과 (갱신된 집계)"""
    slideId: int
    targetKind: str
    pageIndex: Optional[int] = None
    userScore: float = Field(..., description="이번에 제출한 점수")
    aggregate: Optional[float] = Field(None, description="평균 점수 (소수점 첫째 자리 반올림)")
    ratingCount: int = Field(..., description="집계에 포함된 평가 수", ge=0)


class RatingItem(BaseModel):
    """개별 평가"""
    id: int
    raterId: int
    raterName: str
    score: float
    feedback: Optional[str] = None
    updatedAt: Optional[datetime] = None


class RatingSummary(BaseModel):
    """대상의 개별 평가 목록 + 집계"""
    slideId: int
    targetKind: str
    pageIndex: Optional[int] = None
    aggregate: Optional[float] = None
    ratingCount: int = 0
    ratings: list[RatingItem] = Field(default_factory=list)


class FeedbackUpdate(BaseModel):
    """평가 의견만 수정 (점수와 집계는 그대로)"""
    feedback: Optional[str] = Field(None, description="자유 의견", max_length=2000)


class FeedbackResult(BaseModel):
    slideId: int
    userScore: float
    feedback: Optional[str] = None
    updatedAt: Optional[datetime] = None


class RankingAuthor(BaseModel):
    id: int
    name: str
    school: str = ""


class DifficultyRankingItem(BaseModel):
    """난이도 랭킹 항목"""
    id: int
    title: str
    description: Optional[str] = None
    fileUrl: Optional[str] = None
    difficultyLevel: Optional[str] = None
    difficultyScore: float
    ratingCount: int = 0
    viewCount: int = 0
    createdAt: datetime
    author: RankingAuthor


class OffsetPagination(BaseModel):
    """offset 기반 페이지네이션 (랭킹 전용)"""
    total: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)
    hasMore: bool


class DifficultyRanking(BaseModel):
    slides: list[DifficultyRankingItem] = Field(default_factory=list)
    pagination: OffsetPagination


class DifficultyDistribution(BaseModel):
    """난이도 구간별 슬라이드 수 (80 이상 / 60-80 / 40-60 / 40 미만)"""
    veryDifficult: int = 0
    difficult: int = 0
    moderate: int = 0
    easy: int = 0


class DifficultyStats(BaseModel):
    """공개 슬라이드 난이도 통계"""
    totalSlides: int = 0
    averageScore: Optional[float] = Field(None, description="평균 난이도 (소수점 둘째 자리 반올림)")
    maxScore: Optional[float] = None
    minScore: Optional[float] = None
    distribution: DifficultyDistribution
