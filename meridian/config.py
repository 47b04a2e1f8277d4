"""
Configuration management for Meridian.
"""

from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings, read from the environment and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Backend
    meridian_adapter: Literal["memory", "github"] = Field(
        default="memory", description="Which repository backend to wire up"
    )

    # GitHub
    github_token: Optional[str] = Field(default=None)
    github_owner: Optional[str] = Field(default=None)
    github_repo: Optional[str] = Field(default=None)
    github_milestone_id: Optional[str] = Field(
        default=None,
        description="Milestone assigned to issues that have no GitHub milestone",
    )
    github_api_url: str = Field(default="https://api.github.com")
    github_timeout_seconds: float = Field(default=30.0, gt=0)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # MCP
    mcp_transport: Literal["stdio", "sse", "streamable-http"] = Field(default="stdio")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")

    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_adapter(self) -> None:
        """Raise ``ConfigurationError`` if the selected backend is incomplete."""
        if self.meridian_adapter != "github":
            return
        missing = [
            name
            for name, value in (
                ("GITHUB_TOKEN", self.github_token),
                ("GITHUB_OWNER", self.github_owner),
                ("GITHUB_REPO", self.github_repo),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "MERIDIAN_ADAPTER=github requires " + ", ".join(missing)
            )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings


def reset_settings() -> Settings:
    """Re-read settings from the current process environment."""
    global settings
    settings = Settings()
    return settings
