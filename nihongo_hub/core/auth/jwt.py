"""JWT 토큰 생성 및 검증

토큰 발급은 외부 인증 서버 담당이며, 이 서비스는 같은 비밀키로 서명된
액세스 토큰을 검증해서 user_id 를 꺼내는 역할만 한다.
create_access_token 은 운영 스크립트와 테스트에서 토큰을 만들 때 사용한다.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from nihongo_hub.config import settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    JWT 액세스 토큰 생성

    Args:
        data: 토큰에 담을 데이터 (user_id, email 등)
        expires_delta: 만료 시간 (기본: settings.access_token_expire_minutes)

    Returns:
        JWT 토큰 문자열
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str) -> Optional[dict]:
    """
    JWT 토큰 검증 및 페이로드 추출

    Returns:
        토큰 페이로드 또는 None (서명 불일치, 만료, access 타입 아님)
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None

    if payload.get("type", "access") != "access":
        return None
    return payload
