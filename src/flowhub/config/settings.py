"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="FLOWHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core service settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="'json' or 'text'")

    # Redis settings
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (stores and Celery results)",
    )

    # Celery broker
    broker_url: str = Field(
        default="redis://localhost:6379/1",
        description="Celery broker URL",
    )
    celery_task_time_limit: int = Field(
        default=300,
        description="Celery hard task time limit in seconds",
    )
    celery_task_soft_time_limit: int = Field(
        default=270,
        description="Celery soft task time limit in seconds",
    )

    # Outbound HTTP
    http_timeout_s: float = Field(
        default=30.0,
        description="Timeout for every vendor and proxy request",
    )

    # Flow execution
    max_flow_steps: int = Field(
        default=1000,
        description="Maximum nodes dequeued per flow run",
    )
    signature_tolerance_s: int = Field(
        default=300,
        description="Allowed clock skew for timestamped webhook signatures",
    )

    # Vendor defaults
    aws_default_region: str = Field(default="us-east-1", description="Region when a node sets none")
    clockodo_application: str = Field(
        default="flowhub",
        description="Application name sent in X-Clockodo-External-Application",
    )

    # Remote proxies: when set, proxy calls are POSTed to
    # {proxy_base_url}/functions/v1/{name} instead of running in-process
    proxy_base_url: str | None = Field(default=None, description="Remote proxy host")
    proxy_service_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the remote proxy host",
    )

    @field_validator("max_flow_steps", "http_timeout_s")
    @classmethod
    def validate_positive(cls, v):
        """Limits must be positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
