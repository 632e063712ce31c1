"""
슬라이드 토론 목록/상세 Pydantic 스키마
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from nihongo_hub.schemas.discussion import CommentResponse

SlideSort = Literal["newest", "mostCommented", "highestRated"]


class SlideSummary(BaseModel):
    """토론 목록용 슬라이드 요약"""
    id: int
    title: str
    author: str
    university: str = ""
    difficulty: Optional[str] = None
    difficultyScore: Optional[float] = Field(None, description="난이도 평균 (0-100)")
    ratingCount: int = 0
    commentCount: int = 0
    pageCount: Optional[int] = None
    thumbnail: Optional[str] = None
    createdAt: datetime
    uploadDate: str = Field("", description="표시용 업로드 일시")


class PageStat(BaseModel):
    """페이지별 별점 집계"""
    pageIndex: int
    average: Optional[float] = None
    ratingCount: int = 0


class SlideDiscussionDetail(BaseModel):
    """슬라이드 토론 상세 (기본 정보 + 최근 댓글)"""
    slide: SlideSummary
    description: Optional[str] = None
    fileUrl: Optional[str] = None
    views: int = 0
    pageStats: List[PageStat] = Field(default_factory=list)
    recentComments: List[CommentResponse] = Field(default_factory=list)
