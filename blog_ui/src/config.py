"""Configuration management for the user renderer.

Uses Pydantic Settings for environment-based configuration.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RendererConfig(BaseSettings):
    """Renderer configuration."""

    users_url: str = Field(
        default="http://localhost:3000/users", description="Endpoint returning the user list"
    )
    request_timeout: float = Field(default=10.0, description="HTTP timeout (seconds)", gt=0)
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON logs instead of console output")

    model_config = SettingsConfigDict(
        env_prefix="BLOG_UI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper


@lru_cache()
def get_config() -> RendererConfig:
    """Get cached renderer configuration."""
    return RendererConfig()
