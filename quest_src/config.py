from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import List, Optional

PLACEHOLDER_JWT_SECRETS = {"changeme", "secret", "CHANGE_ME_IN_ENV"}

class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRY_HOURS: int = 24
    REDIS_URL: str = "redis://localhost:6379/0"
    APP_TIMEZONE: str = "Asia/Jakarta"
    CLOCK_SOURCE: str = "timeapi"
    TIME_API_URL: str = "https://timeapi.io/api/time/current/zone"
    CLOCK_TIMEOUT_SECONDS: float = 5.0
    DAILY_RESET_HOUR: int = 0
    DAILY_RESET_MINUTE: int = 5
    RESET_QUEUE_NAME: str = "arq:quest-reset"
    REDIS_CONN_TIMEOUT_SECONDS: int = 5
    SYSTEM_API_KEY: Optional[str] = None
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        extra="ignore"
    )

Config = Settings()
