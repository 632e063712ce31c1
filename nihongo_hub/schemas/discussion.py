"""
댓글 / 답글 Pydantic 스키마
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, ConfigDict

CommentSort = Literal["newest", "oldest"]


class CommentCreate(BaseModel):
    """댓글 작성 요청"""
    content: str = Field(..., description="댓글 내용", max_length=5000)
    type: str = Field("comment", description="댓글 종류 (comment | proposal)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "content": "3ページの例文がとても分かりやすかったです。",
                "type": "comment"
            }
        }
    )


class ReplyCreate(BaseModel):
    """답글 작성 요청"""
    content: str = Field(..., description="답글 내용", max_length=5000)


class AuthorInfo(BaseModel):
    """작성자 표시 정보"""
    userId: int
    author: str = Field(..., description="표시 이름 (없으면 匿名)")
    avatar: str = Field(..., description="이름 첫 글자")
    university: str = Field("", description="소속 학교")


class CommentResponse(AuthorInfo):
    """댓글 응답"""
    id: int
    content: str
    type: str
    slideId: Optional[int] = None
    articleId: Optional[int] = None
    replyCount: int = 0
    createdAt: datetime
    timestamp: str = Field(..., description="표시용 일시 (YYYY年MM月DD日 HH:MM)")


class ReplyResponse(AuthorInfo):
    """답글 응답"""
    id: int
    commentId: int
    content: str
    createdAt: datetime
    timestamp: str
