"""
텍스트 / 시간 처리 유틸리티
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

# 사전 컴파일된 정규식
TAG_SPECIAL_CHARS_PATTERN = re.compile(r"[^\w\s\-]")
MULTIPLE_SPACES_PATTERN = re.compile(r"\s+")


def utcnow() -> datetime:
    """타임존 정보가 포함된 현재 UTC 시각"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """naive 시각은 UTC 로 간주해 aware UTC 로 통일 (SQLite 는 tzinfo 없이 돌려줌)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def make_excerpt(text: Optional[str], length: int = 100) -> Optional[str]:
    """
    피드/목록 표시용 본문 발췌

    Args:
        text: 원본 본문
        length: 최대 길이 (문자 수)

    Returns:
        앞에서부터 length 글자까지 자른 문자열 (없으면 None)
    """
    if text is None:
        return None
    return text[:length]


def normalize_tag_name(tag_name: str) -> str:
    """
    태그 이름 정규화

    - 앞뒤 공백 제거, 소문자 변환
    - 영숫자(유니코드 포함), 공백, 하이픈 외 문자 제거
    - 연속 공백을 단일 공백으로

    Args:
        tag_name: 사용자가 입력한 태그

    Returns:
        정규화된 태그 이름 (비어 있을 수 있음)
    """
    cleaned = TAG_SPECIAL_CHARS_PATTERN.sub("", tag_name.strip().lower())
    cleaned = MULTIPLE_SPACES_PATTERN.sub(" ", cleaned)
    return cleaned.strip()


def format_datetime_ja(value: Optional[datetime]) -> str:
    """일본어 표기 날짜/시각 (YYYY年MM月DD日 HH:MM)"""
    if value is None:
        return ""
    return f"{value.year}年{value.month:02d}月{value.day:02d}日 {value.hour:02d}:{value.minute:02d}"


def avatar_initial(name: Optional[str]) -> str:
    """아바타 자리에 표시할 이름 첫 글자 (이름이 없으면 'A')"""
    return name[0].upper() if name else "A"
