"""
페이지네이션 파라미터 검증
"""
from nihongo_hub.config import settings
from nihongo_hub.core.exceptions import ValidationError


def validate_page_params(page: int, limit: int) -> int:
    """
    page >= 1, 1 <= limit <= settings.max_page_size 검사

    Returns:
        offset ((page - 1) * limit)
    """
    if page is None or page < 1:
        raise ValidationError("page must be >= 1", details={"page": page})
    if limit is None or limit < 1 or limit > settings.max_page_size:
        raise ValidationError(
            f"limit must be between 1 and {settings.max_page_size}",
            details={"limit": limit}
        )
    return (page - 1) * limit
