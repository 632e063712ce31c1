"""
애플리케이션 기동 시 Alembic 마이그레이션을 자동으로 실행하는 유틸리티
"""
from pathlib import Path
from typing import Final

from alembic import command
from alembic.config import Config
from fastapi.concurrency import run_in_threadpool

from nihongo_hub.config import settings
from nihongo_hub.core.logging_config import get_logger

logger = get_logger(__name__)

# 프로젝트 루트 (alembic.ini 위치)
PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[2]
ALEMBIC_INI_PATH: Final[Path] = PROJECT_ROOT / "alembic.ini"
ALEMBIC_SCRIPT_LOCATION: Final[Path] = PROJECT_ROOT / "alembic"


def build_alembic_config() -> Config:
    """실행 환경에 맞는 Alembic 설정 생성"""
    config = Config(str(ALEMBIC_INI_PATH))
    config.set_main_option("script_location", str(ALEMBIC_SCRIPT_LOCATION))
    config.set_main_option("sqlalchemy.url", settings.get_database_url())
    return config


async def run_db_migrations() -> None:
    """
    Alembic upgrade head 실행 (AUTO_RUN_MIGRATIONS=true 일 때만)

    alembic 은 동기 API 라서 스레드풀에서 실행
    """
    if not settings.auto_run_migrations:
        logger.info("AUTO_RUN_MIGRATIONS=false - 자동 마이그레이션을 건너뜁니다")
        return

    config = build_alembic_config()

    def _upgrade():
        logger.info("데이터베이스 마이그레이션 시작")
        command.upgrade(config, "head")
        logger.info("데이터베이스 마이그레이션 완료")

    try:
        await run_in_threadpool(_upgrade)
    except Exception as exc:
        logger.exception(f"Alembic 마이그레이션 실행 실패: {exc}")
        raise
