"""
공통 응답 스키마 (응답 엔벨로프, 페이지네이션)
"""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field, ConfigDict

T = TypeVar("T")


def total_pages_for(total_items: int, limit: int) -> int:
    """전체 페이지 수 = ceil(total_items / limit), 항목이 없으면 0"""
    if total_items <= 0:
        return 0
    return (total_items + limit - 1) // limit


class Pagination(BaseModel):
    """페이지네이션 메타데이터"""
    currentPage: int = Field(..., description="현재 페이지 (1부터)", ge=1)
    totalPages: int = Field(..., description="전체 페이지 수", ge=0)
    totalItems: int = Field(..., description="조건에 맞는 전체 항목 수", ge=0)
    itemsPerPage: int = Field(..., description="페이지 크기", ge=1)
    hasNextPage: bool = Field(..., description="다음 페이지 존재 여부")
    hasPreviousPage: bool = Field(..., description="이전 페이지 존재 여부")

    @classmethod
    def build(cls, page: int, limit: int, total_items: int) -> "Pagination":
        return cls(
            currentPage=page,
            totalPages=total_pages_for(total_items, limit),
            totalItems=total_items,
            itemsPerPage=limit,
            hasNextPage=page * limit < total_items,
            hasPreviousPage=page > 1,
        )


class ApiResponse(BaseModel, Generic[T]):
    """
    공통 응답 엔벨로프

    성공/실패 모두 {success, data?, message?, pagination?} 형태로 반환
    """
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    pagination: Optional[Pagination] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "data": [],
                "pagination": {
                    "currentPage": 1,
                    "totalPages": 0,
                    "totalItems": 0,
                    "itemsPerPage": 20,
                    "hasNextPage": False,
                    "hasPreviousPage": False
                }
            }
        }
    )


class Page(BaseModel, Generic[T]):
    """서비스 계층이 반환하는 페이지 결과 (항목 + 메타데이터)"""
    items: list[T]
    pagination: Pagination
