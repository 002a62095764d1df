"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    CHECKPOINT_DIR: str = Field(default="data/checkpoints")
    APP_CONFIG_PATH: str = Field(default="app_config.json")

    TOTAL_QUESTIONS: int = Field(default=6, ge=1)
    REMOTE_TIMEOUT_S: float = Field(default=8.0, gt=0.0)
    MIN_ANSWER_CHARS: int = Field(default=10, ge=0)
    BRIEF_ANSWER_SCORE: int = Field(default=2, ge=0, le=10)
    TICK_SECONDS: float = Field(default=1.0, gt=0.0)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
