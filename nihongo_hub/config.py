"""
애플리케이션 설정 관리
"""
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List
import os
import re


class Settings(BaseSettings):
    """애플리케이션 설정 클래스"""

    # 애플리케이션
    app_name: str = "Nihongo Hub Discussion API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "info"
    use_structured_logging: bool = True  # 구조화된 로깅 사용 여부 (가독성 향상)
    environment: str = "development"  # development, staging, production
    auto_run_migrations: bool = False  # 앱 기동 시 alembic upgrade 실행 여부

    # 서버
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = ""
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "nihongo_hub"
    database_user: str = "postgres"
    database_password: str = ""

    def get_database_url(self) -> str:
        """
        환경에 맞는 Database URL 반환
        - 로컬: SSL 없음
        - 프로덕션: SSL 필수
        """
        if self.database_url:
            base_url = self.database_url

            # SQLite(로컬/테스트)는 SSL 파라미터와 무관
            if base_url.startswith("sqlite"):
                return base_url

            if self.is_production:
                if "ssl=" not in base_url:
                    separator = "&" if "?" in base_url else "?"
                    return f"{base_url}{separator}ssl=require"
                return base_url

            if "sslmode=" in base_url:
                base_url = re.sub(r'[?&]ssl(mode)?=[^&]+', '', base_url)
                base_url = base_url.replace("?&", "?").rstrip("?&")
            return base_url

        base_url = (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )
        if self.is_production:
            return f"{base_url}?ssl=require"
        return base_url

    def get_database_url_sync(self) -> str:
        """
        Alembic 등 동기 드라이버에서 사용할 수 있는 Database URL
        (비동기 드라이버 접두사 제거)
        """
        url = self.get_database_url()
        return url.replace("+asyncpg", "").replace("+aiosqlite", "")

    @property
    def is_sqlite(self) -> bool:
        return self.get_database_url().startswith("sqlite")

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60
    rate_limit_storage_uri: str = "memory://"

    # 페이지네이션
    default_page_size: int = 20
    max_page_size: int = 100

    # 활동 피드
    # 소스(업로드/댓글/노하우 댓글/노하우 게시글)별로 가져오는 최대 행 수
    feed_max_per_source: int = 500
    feed_default_limit: int = 10
    excerpt_length: int = 100

    # JWT (토큰 발급은 외부 인증 서버 담당, 여기서는 검증만 수행)
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # 프론트엔드 (여러 URL을 쉼표로 구분 가능)
    frontend_url: str = ""

    def get_frontend_urls(self) -> List[str]:
        """프론트엔드 URL 리스트 반환 (쉼표로 구분된 경우)"""
        if not self.frontend_url:
            return []
        return [url.strip() for url in self.frontend_url.split(",") if url.strip()]

    @property
    def is_production(self) -> bool:
        """프로덕션 환경 여부"""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """개발 환경 여부"""
        return self.environment.lower() in ["development", "local", "dev", "test"]

    @property
    def cors_origins(self) -> List[str]:
        """환경에 따른 CORS 허용 출처 반환"""
        frontend_urls = self.get_frontend_urls()
        if self.is_production:
            return frontend_urls
        dev_origins = ["http://localhost:5173", "http://localhost:3000"]
        return list(set(frontend_urls + dev_origins)) if frontend_urls else ["*"]

    model_config = ConfigDict(
        # 로컬: .env.local (기본값), 서버: ENV_FILE=.env.production
        env_file=os.getenv("ENV_FILE", ".env.local"),
        env_file_encoding='utf-8',
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
