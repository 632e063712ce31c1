"""
활동 피드 Pydantic 스키마

피드 항목은 종류별 생성자를 갖는 태그드 유니온으로 표현한다.
모든 종류가 공통 필드만 갖고, 종류에 따라 필요한 필드만 추가한다.
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from nihongo_hub.schemas.common import Pagination

FeedFilter = Literal["all", "comment", "reply", "mine"]


class _ActivityBase(BaseModel):
    """피드 항목 공통 필드"""
    itemId: int = Field(..., description="원본 엔티티 ID (type과 함께 유일)")
    targetId: int = Field(..., description="이동 대상 ID (슬라이드 또는 게시글)")
    title: str = Field(..., description="표시 제목")
    excerpt: Optional[str] = Field(None, description="본문 발췌")
    userId: int
    author: str
    timestamp: datetime


class UploadActivity(_ActivityBase):
    """슬라이드 업로드"""
    type: Literal["upload"] = "upload"


class SlideCommentActivity(_ActivityBase):
    """슬라이드 댓글 (replyTo 가 있으면 답글)"""
    type: Literal["slide_comment"] = "slide_comment"
    commentKind: str = "comment"
    replyTo: Optional[int] = None


class KnowhowCommentActivity(_ActivityBase):
    """노하우 게시글 댓글 (replyTo 가 있으면 답글)"""
    type: Literal["knowhow_comment"] = "knowhow_comment"
    replyTo: Optional[int] = None


class KnowhowPostActivity(_ActivityBase):
    """노하우 게시글 작성"""
    type: Literal["knowhow_post"] = "knowhow_post"


# 피드 항목 유니온 타입 (type 필드로 구분)
ActivityRecord = Annotated[
    Union[UploadActivity, SlideCommentActivity, KnowhowCommentActivity, KnowhowPostActivity],
    Field(discriminator="type"),
]


class ActivityFeedPage(BaseModel):
    """활동 피드 페이지 (병합 후 페이지네이션된 항목)"""
    items: List[ActivityRecord]
    pagination: Pagination
