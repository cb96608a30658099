"""Application settings and configuration management."""
from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interviews.db")

    LLM_BASE_URL: str = "https://api.groq.com/openai/v1"
    LLM_ENDPOINT: str = "/chat/completions"
    LLM_MODEL: str = "llama-3.1-8b-instant"
    LLM_API_KEY_ENV: Optional[str] = "GROQ_API_KEY"
    LLM_TIMEOUT_S: float = Field(default=60.0, ge=0.1)
    LLM_MAX_RETRIES: int = Field(default=1, ge=0)
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 512
    LLM_CONFIG_PATH: Optional[str] = None

    SHORT_ANSWER_CHARS: int = 30
    DECISION_WINDOW: int = 12
    DEFAULT_NUM_QUESTIONS: int = 5
    SUMMARY_CHARS: int = 1000

    LOG_LEVEL: str = "INFO"
    ENABLE_FILE_LOGS: bool = True
    LOG_FILE: str = "logs/interview.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
