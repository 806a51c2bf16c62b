"""Application configuration management."""

from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing at startup."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application
    app_name: str = Field(default="FINORA", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # "json" or "console"
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Monitoring & Error Tracking
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")
    sentry_traces_sample_rate: float = Field(default=0.1, alias="SENTRY_TRACES_SAMPLE_RATE")

    # Prometheus Metrics
    enable_metrics: bool = Field(default=True, alias="ENABLE_METRICS")

    # Gemini (generative model provider)
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-3.1-pro-preview", alias="GEMINI_MODEL")

    # Sessions
    session_cookie_name: str = Field(default="finora_session", alias="SESSION_COOKIE_NAME")

    # CORS
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"], alias="ALLOWED_ORIGINS"
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    def require_gemini_api_key(self) -> str:
        """Return the Gemini API key or fail with a configuration error."""
        if not self.gemini_api_key or not self.gemini_api_key.strip():
            raise ConfigurationError(
                "GEMINI_API_KEY is not set; the advisor cannot reach the model provider"
            )
        return self.gemini_api_key.strip()


# Global settings instance
settings = Settings()
