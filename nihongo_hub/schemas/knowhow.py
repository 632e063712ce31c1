"""
노하우 게시글 Pydantic 스키마
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


class ArticleCreate(BaseModel):
    """노하우 게시글 작성 요청"""
    title: str = Field(..., description="제목", max_length=100)
    content: str = Field(..., description="본문")
    tags: List[str] = Field(default_factory=list, description="태그 목록 (각 50자 이하)")
    is_public: bool = Field(True, description="공개 여부")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, tags: List[str]) -> List[str]:
        for index, tag in enumerate(tags):
            if not tag.strip():
                raise ValueError(f"Tag at index {index} cannot be empty")
            if len(tag) > 50:
                raise ValueError(f"Tag at index {index} must be 50 characters or less")
        return tags

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "日本語教育の工夫",
                "content": "学生の学習意欲を高めるために...",
                "tags": ["日本語", "教学"],
                "is_public": True
            }
        }
    )


class TagInfo(BaseModel):
    id: int
    name: str


class ArticleResponse(BaseModel):
    """노하우 게시글 응답"""
    id: int
    title: str
    content: str
    authorId: int
    author: str
    school: str = ""
    authorAvatar: Optional[str] = None
    isPublic: bool
    tags: List[TagInfo] = Field(default_factory=list)
    commentCount: int = 0
    createdAt: datetime
    updatedAt: Optional[datetime] = None
