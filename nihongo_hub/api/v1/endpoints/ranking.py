"""
슬라이드 난이도 랭킹 API 엔드포인트 (難解ランキング)
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nihongo_hub.core.database import get_db
from nihongo_hub.schemas.common import ApiResponse
from nihongo_hub.schemas.rating import DifficultyRanking, DifficultyStats
from nihongo_hub.services.rating_service import RatingService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/difficult",
    response_model=ApiResponse[DifficultyRanking],
    summary="난이도 랭킹",
)
async def get_difficult_ranking(
    limit: int = Query(10, ge=1, le=100, description="최대 개수"),
    offset: int = Query(0, ge=0, description="건너뛸 개수"),
    minScore: float = Query(0, ge=0, le=100, description="최소 난이도 점수"),
    db: AsyncSession = Depends(get_db)
):
    """공개 슬라이드를 난이도 평균이 높은 순으로 (평가 없는 슬라이드 제외)"""
    ranking = await RatingService(db).get_difficulty_ranking(limit=limit, offset=offset, min_score=minScore)
    return ApiResponse(data=ranking)


@router.get(
    "/difficult/stats",
    response_model=ApiResponse[DifficultyStats],
    summary="난이도 분포 통계",
)
async def get_difficulty_stats(db: AsyncSession = Depends(get_db)):
    stats = await RatingService(db).get_difficulty_stats()
    return ApiResponse(data=stats)
