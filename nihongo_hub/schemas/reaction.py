"""
리액션 Pydantic 스키마
"""
from typing import Optional

from pydantic import BaseModel, Field


class ReactionSet(BaseModel):
    """리액션 설정 요청"""
    reaction_type: str = Field(..., description="love | like | haha | wow | sad | angry")


class ReactionCounts(BaseModel):
    """종류별 리액션 수 (없는 종류는 0)"""
    love: int = 0
    like: int = 0
    haha: int = 0
    wow: int = 0
    sad: int = 0
    angry: int = 0


class ReactionState(BaseModel):
    """사용자의 현재 리액션 (요청 본문은 snake_case, 응답은 camelCase)"""
    articleId: int
    reactionType: str = Field(..., description="리액션 종류 또는 none")
    removed: Optional[bool] = None
