"""
Chess Puzzle Trainer - Engine Configuration

Loads session settings from environment variables (prefix TRAINER_)
with Pydantic validation.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # ─── Backend ───
    api_base_url: str = "http://localhost:8000"
    achievements_url: str = "http://localhost:3000/api/achievements/check"
    request_timeout: float = 10.0

    # ─── Pacing (seconds) ───
    opening_delay: float = 0.3
    reply_delay: float = 0.3

    # ─── Session behaviour ───
    auto_advance: bool = True

    # ─── Scoring ───
    mistake_penalty_seconds: float = 3.0
    set_completion_bonus_seconds: float = 1.0
    fast_solve_seconds: float = 5.0

    # ─── Logging ───
    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = {
        "env_prefix": "TRAINER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
