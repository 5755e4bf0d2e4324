"""
Configuration management for the Codebase Agent.
All settings loaded from environment variables / .env file.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings – loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AI Codebase Agent"
    app_description: str = "Generate complete software codebases from a single prompt"
    app_version: str = "1.0.0"
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # API server
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_workers: int = Field(default=4)
    api_reload: bool = Field(default=True)

    # CORS – stored as comma-separated string in env; parsed to list
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return []

    # Database – accepted for compatibility, nothing is persisted
    database_url: str = Field(default="")

    # Code generation model
    anthropic_api_key: str = Field(default="")
    codegen_model: str = Field(default="claude-sonnet-4-20250514")
    codegen_max_tokens: int = Field(default=8000)
    codegen_file_max_tokens: int = Field(default=4000)
    codegen_temperature: float = Field(default=0.1)

    # Planning / review pipe
    pipe_api_url: str = Field(default="https://api.langbase.com")
    pipe_api_key: str = Field(default="")
    pipe_timeout: float = Field(default=120.0)

    # Sandbox workspaces
    sandbox_api_url: str = Field(default="https://api.daytona.io/app")
    sandbox_api_key: str = Field(default="")
    sandbox_timeout: float = Field(default=60.0)
    sandbox_command_timeout_ms: int = Field(default=300_000)
    sandbox_cpu: str = Field(default="2")
    sandbox_memory: str = Field(default="4Gi")
    sandbox_storage: str = Field(default="10Gi")
    sandbox_node_version: str = Field(default="18")
    sandbox_python_version: str = Field(default="3.11")

    # Transport retries (connection errors / rate limits only)
    remote_max_retries: int = Field(default=3)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")
    log_file: str | None = Field(default=None)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


settings = Settings()


def get_settings() -> Settings:
    return settings
