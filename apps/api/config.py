"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal

from middleware.embedding import validate_frame_ancestors
from services.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Runtime
    APP_ENV: Literal["development", "test", "production"] = "development"
    APP_MODE: Literal["demo", "authenticated"] = "authenticated"
    FORCE_DEMO_MODE: bool = False
    IFRAME_MODE: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./idea_planner.db"
    AUTO_CREATE_DB_SCHEMA: bool = True

    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Identity provider
    AUTH_PROVIDER_PUBLISHABLE_KEY: str = ""
    AUTH_PROVIDER_SECRET_KEY: str = "change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24

    # Embedding
    FRAME_ANCESTORS: List[str] = ["'self'"]
    SEND_X_FRAME_OPTIONS: bool = True
    CROSS_ORIGIN_EMBEDDER_POLICY: str = "credentialless"
    PARENT_ORIGINS: List[str] = ["http://localhost:3000"]
    EMBED_REFERRER_HOSTS: List[str] = []

    # Popup relay timeouts
    POPUP_SIGNIN_TIMEOUT_SECONDS: float = 300.0
    POPUP_SIGNOUT_TIMEOUT_SECONDS: float = 5.0
    POPUP_TOKEN_TIMEOUT_SECONDS: float = 5.0

    # Product limits
    FREE_IDEA_LIMIT: int = 3
    CHANNEL_SAMPLE_VIDEO_COUNT: int = 5
    INSIGHTS_QUERY_LIMIT: int = 10

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()


INSECURE_SECRET_VALUES = {
    "",
    "change_me_in_production",
    "your_secret_key_here",
    "sk_test_placeholder",
}


def is_demo_mode(config: Settings = settings) -> bool:
    return config.APP_MODE == "demo"


def validate_startup_settings(config: Settings = settings) -> None:
    """Fail fast on configuration that would expose routes without real auth."""
    if config.APP_MODE == "authenticated":
        publishable = (config.AUTH_PROVIDER_PUBLISHABLE_KEY or "").strip()
        secret = (config.AUTH_PROVIDER_SECRET_KEY or "").strip()
        if not publishable:
            raise ConfigurationError(
                "AUTH_PROVIDER_PUBLISHABLE_KEY is not configured. "
                "Set APP_MODE=demo to run without an identity provider."
            )
        if secret in INSECURE_SECRET_VALUES or len(secret) < 24:
            raise ConfigurationError(
                "AUTH_PROVIDER_SECRET_KEY is missing or insecure. Configure a strong non-default secret (>=24 chars)."
            )

    validate_frame_ancestors(config.FRAME_ANCESTORS, config.APP_ENV == "production")
    if "*" in config.PARENT_ORIGINS and (config.APP_ENV == "production" or not is_demo_mode(config)):
        raise ConfigurationError(
            "PARENT_ORIGINS must be an explicit allow-list outside demo mode and in production."
        )
