"""Application configuration."""

from pydantic_settings import BaseSettings
from typing import List, Optional

PLACEHOLDER_API_KEY = "your_apollo_api_key_here"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Apollo
    APOLLO_API_KEY: Optional[str] = None
    APOLLO_BASE_URL: str = "https://api.apollo.io/api/v1"
    APOLLO_TIMEOUT_SECONDS: float = 15.0

    # Rate limiting against Apollo
    ENRICH_REQUEST_DELAY_SECONDS: float = 1.5
    RATE_LIMIT_MAX_RETRIES: int = 2
    RATE_LIMIT_BACKOFF_BASE_SECONDS: float = 2.0

    # Domain resolution - comma separated, e.g. ".com,.io,.ai"
    DOMAIN_GUESS_SUFFIXES: str = ".com,.io,.ai"

    # Streaming
    ENRICH_CANCEL_ON_DISCONNECT: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def domain_guess_suffixes(self) -> List[str]:
        suffixes = [s.strip().lower() for s in self.DOMAIN_GUESS_SUFFIXES.split(",") if s.strip()]
        return [s if s.startswith(".") else f".{s}" for s in suffixes]

    @property
    def apollo_configured(self) -> bool:
        return has_usable_api_key(self.APOLLO_API_KEY)


def has_usable_api_key(api_key: Optional[str]) -> bool:
    """True when the key is set and is not the .env.example placeholder."""
    return bool(api_key and api_key.strip() and api_key.strip() != PLACEHOLDER_API_KEY)


settings = Settings()
