from functools import lru_cache
from typing import Literal

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scrapelens.core.errors import ConfigError

REQUIRED_SETTINGS = ("DATABASE_URL", "APIFY_TOKEN", "APIFY_DATASET_ID", "OPENAI_API_KEY")


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Database
    DATABASE_URL: str

    # Scraping provider (Apify dataset)
    APIFY_TOKEN: str
    APIFY_DATASET_ID: str

    # Analyzer (any OpenAI-compatible chat-completion endpoint, e.g. OpenRouter)
    OPENAI_API_KEY: str
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    AI_MODEL: str = "gpt-4o-mini"
    APP_URL: str = ""
    APP_TITLE: str = "Scrapelens Analysis"

    # CORS for the analysis trigger
    CORS_ORIGIN: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"
    SLACK_WEBHOOK_URL: str | None = None

    # Pipeline tuning
    INGEST_LIMIT: int = 100
    ANALYSIS_BATCH_SIZE: int = 20
    ANALYSIS_PACING_MS: int = 120
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_MS: int = 300
    RETRY_JITTER_MS: int = 200
    DASHBOARD_LIMIT: int = 200

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # None = auto based on ENV

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @field_validator(*REQUIRED_SETTINGS)
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @property
    def is_production(self) -> bool:
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        return self.ENV == "dev"

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, failing with the missing variable names."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        names = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        missing = [name for name in names if name in REQUIRED_SETTINGS] or names
        raise ConfigError(f"Server misconfigured: {', '.join(missing)} not set") from exc


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, constructed once on first use."""
    return load_settings()
