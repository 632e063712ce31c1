"""
사용자 관련 데이터베이스 모델
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
import uuid

from nihongo_hub.core.database import Base
from nihongo_hub.utils.text_utils import utcnow


class User(Base):
    """
    사용자 테이블

    계정 생성/로그인은 외부 인증 서버 담당이며,
    여기서는 토큰의 user_id로 조회하고 표시 이름을 가져오는 용도로만 사용
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(100))
    school_name = Column(String(200))
    avatar_url = Column(String(500))

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
