from pydantic_settings import BaseSettings

from .core.shortener import Strategy


class Settings(BaseSettings):
    """Application settings"""

    ENVIRONMENT: str = "development"

    # Database
    DATABASE_URL: str = "sqlite:///./shortlinks.db"

    # Short codes
    SHORT_CODE_LENGTH: int = 7
    CODE_STRATEGY: Strategy = Strategy.SECURE_RANDOM
    MAX_CODE_ATTEMPTS: int = 10

    # Click records kept per link (older ones are trimmed)
    CLICK_RETENTION: int = 100

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/15 minutes"
    RATE_LIMIT_SHORTEN: str = "20/15 minutes"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Domain
    BASE_URL: str = "http://localhost:8000"

    class Config:
        env_file = ".env"


settings = Settings()
