"""
Puzzle Trainer Backend - Configuration

Storage service settings, read from the environment (or .env).
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


class Settings(BaseSettings):
    """Storage service settings."""

    # ─── Database ───
    database_url: str = "postgresql+asyncpg://localhost:5432/chess_trainer"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_echo: Optional[bool] = None  # defaults to on outside production

    # ─── App ───
    cors_origins: str = "http://localhost:3000"
    env: str = "development"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def database_url_async(self) -> str:
        """DATABASE_URL with an async driver filled in when none is named."""
        url = self.database_url or ""
        for prefix, async_prefix in ASYNC_DRIVERS.items():
            if url.startswith(prefix):
                return async_prefix + url[len(prefix):]
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url_async.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def echo_sql(self) -> bool:
        return self.db_echo if self.db_echo is not None else not self.is_production

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()
