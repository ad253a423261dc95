"""Configuration management for the KMPDU voting session core."""
import logging
import sys
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Service configuration
    SERVICE_NAME: str = "kmpdu-voting"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Portal API configuration
    API_BASE_URL: str = "https://kpdu.onrender.com"
    API_TOKEN: Optional[str] = None
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Upper bound on the remote vote-cast call before the offline path is taken
    VOTE_CAST_TIMEOUT_SECONDS: float = 5.0

    # Redis configuration (per-member vote history)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    VOTE_HISTORY_KEY_PREFIX: str = "kmpdu_vote_history"

    # Election defaults
    DEFAULT_ELECTION_ID: str = "el_default"
    FORCED_WINNER_MIN_SHARE: float = Field(default=0.6, gt=0, lt=1)

    @property
    def redis_url(self) -> str:
        """Generate Redis connection URL."""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def log_level(self) -> int:
        if self.DEBUG:
            return logging.DEBUG
        return getattr(logging, self.LOG_LEVEL.upper(), logging.INFO)


settings = Settings()


def configure_logging(level: Optional[int] = None) -> None:
    """Configure root logging for entry points (scripts, embedding apps)."""
    logging.basicConfig(
        level=level if level is not None else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
