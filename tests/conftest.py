"""
pytest 공통 픽스처 및 설정
"""
import os

# 설정 객체가 import 시점에 만들어지므로 앱 import 전에 환경 변수 지정
os.environ["ENV_FILE"] = ".env.test"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTO_RUN_MIGRATIONS", "false")

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from nihongo_hub.main import app
from nihongo_hub.core.auth.jwt import create_access_token
from nihongo_hub.core.database import Base, get_db
from nihongo_hub.models import Article, Slide, User

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """기준 시각 + minutes 분"""
    return BASE_TIME + timedelta(minutes=minutes)


@dataclass
class Seed:
    alice: User
    bob: User
    carol: User
    slide: Slide
    private_slide: Slide
    article: Article


@pytest_asyncio.fixture
async def engine():
    """테스트마다 새 인메모리 SQLite 엔진"""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory) -> Seed:
    """
    기본 데이터

    - alice: 공개 슬라이드(10페이지) 작성자
    - bob: 비공개 슬라이드, 공개 노하우 게시글 작성자
    - carol: 이름 없는 사용자 (匿名 표시)
    """
    async with session_factory() as session:
        alice = User(email="alice@example.com", full_name="Alice", school_name="東京大学", created_at=at(0))
        bob = User(email="bob@example.com", full_name="Bob", school_name="大阪大学", created_at=at(0))
        carol = User(email="carol@example.com", full_name=None, created_at=at(0))
        session.add_all([alice, bob, carol])
        await session.flush()

        slide = Slide(
            user_id=alice.id,
            title="て形の使い方",
            description="て形の作り方と使い方をまとめたスライド",
            difficulty_level="N4",
            is_public=True,
            page_count=10,
            created_at=at(1),
        )
        private_slide = Slide(
            user_id=bob.id,
            title="下書きスライド",
            is_public=False,
            page_count=3,
            created_at=at(2),
        )
        article = Article(
            user_id=bob.id,
            title="敬語の教え方",
            content="尊敬語と謙譲語を場面ごとに練習させると定着しやすい。",
            is_public=True,
            created_at=at(3),
        )
        session.add_all([slide, private_slide, article])
        await session.commit()

        return Seed(alice=alice, bob=bob, carol=carol, slide=slide, private_slide=private_slide, article=article)


@pytest_asyncio.fixture
async def async_client(session_factory):
    """get_db 를 테스트 엔진 세션으로 오버라이드한 AsyncClient"""
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


def auth_headers_for(user: User) -> dict:
    """사용자용 Bearer 인증 헤더"""
    token = create_access_token({"user_id": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers(seed):
    return auth_headers_for(seed.alice)


@pytest.fixture
def bob_headers(seed):
    return auth_headers_for(seed.bob)


@pytest.fixture
def make_headers():
    """임의 사용자의 인증 헤더 생성 함수"""
    return auth_headers_for


@pytest.fixture
def clock():
    """기준 시각 + n 분 (정렬 검증용 created_at 지정)"""
    return at
