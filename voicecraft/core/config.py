"""
Runtime settings for the writing assistant.

Every field can be overridden by an environment variable of the same name
(case-insensitive) or by a local .env file.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Assistant settings; see the field groups below."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service identity
    app_name: str = "Voicecraft Writing Assistant"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Postgres connection, used unless DATABASE_URL is set
    database_url_override: Optional[str] = Field(default=None, validation_alias="database_url")
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_database: str = "voicecraft"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"

    # Engine pool
    database_pool_size: int = 20
    database_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL for the profile and account context tables."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_database}"
        )

    # Gemini credentials
    gemini_api_key: str = ""

    # Models per task; fallbacks are tried once when the primary call fails
    gemini_model_default: str = "gemini-2.5-flash"
    gemini_model_pro: str = "gemini-2.5-pro"
    gemini_model_fallback: str = "gemini-2.5-flash-lite"
    gemini_model_translation: str = "gemini-2.5-flash"
    gemini_model_translation_fallback: str = "gemini-2.5-flash-lite"
    gemini_model_brand_validation: str = "gemini-2.5-flash"
    gemini_model_style_profile: str = "gemini-2.5-flash-lite"

    # Sampling and transport defaults for every model call
    llm_temperature: float = 0.7
    llm_top_p: float = 0.95
    llm_max_tokens: int = 2048
    llm_timeout: int = 60
    llm_max_retries: int = 3

    # Style profiles
    # Unset means derived from the environment (see properties below)
    style_profile_cache_days: Optional[int] = None
    style_analysis_prompt_size: Optional[int] = None
    style_profile_fetch_limit: int = 25
    style_profile_min_posts: int = 5
    style_profile_min_post_length: int = 10
    style_profile_max_samples: int = 20

    @property
    def profile_cache_days(self) -> int:
        """Days before a style profile is considered stale."""
        if self.style_profile_cache_days is not None:
            return self.style_profile_cache_days
        return 7 if self.environment == "production" else 30

    @property
    def analysis_prompt_size(self) -> int:
        """Maximum number of posts sent to the style analysis prompt."""
        if self.style_analysis_prompt_size is not None:
            return self.style_analysis_prompt_size
        return 25 if self.environment == "production" else 15

    # Account context cache
    account_context_ttl_seconds: int = 300  # 5 minutes

    # Translation
    translation_chunk_size: int = 5000
    translation_max_tokens: int = 8192

    # Social source (Neynar / Farcaster)
    neynar_api_key: str = ""
    neynar_base_url: str = "https://api.neynar.com/v2"
    neynar_timeout: float = 15.0

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"

    # LangFuse tracing, off while the public key is empty
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_host: str = "https://cloud.langfuse.com"

    # Sentry reporting, off while the DSN is empty
    sentry_dsn: str = ""
    sentry_environment: str = "development"
    sentry_traces_sample_rate: float = 0.1


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()


settings = get_settings()
