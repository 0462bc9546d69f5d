"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class RunnerConfig(BaseModel):
    """Agent runner loop configuration."""

    max_iterations: int = Field(
        default=6, ge=1, alias="HELMSMAN_AI_MAX_ITERATIONS", description="Maximum model turns per run"
    )
    default_system_prompt: str = Field(
        default="You are a Helmsman agent. Follow policies, cite sources, and escalate when unsure.",
        alias="HELMSMAN_AI_DEFAULT_SYSTEM_PROMPT",
        description="Base system prompt prepended to every agent's instructions",
    )
    tool_timeout_ms: int = Field(
        default=10_000, ge=1, alias="HELMSMAN_AI_TOOL_TIMEOUT_MS", description="Default tool deadline in milliseconds"
    )
    tool_abort_grace_ms: int = Field(
        default=250,
        ge=0,
        alias="HELMSMAN_AI_TOOL_ABORT_GRACE_MS",
        description="Time granted to a tool handler to observe cancellation after a timeout",
    )

    model_config = {"populate_by_name": True}


class StoreLimitsConfig(BaseModel):
    """Bounds for the in-memory reference stores."""

    max_sessions: int = Field(default=500, ge=1, alias="HELMSMAN_AI_MAX_SESSIONS")
    max_messages_per_session: int = Field(default=200, ge=1, alias="HELMSMAN_AI_MAX_MESSAGES_PER_SESSION")
    max_steps_per_session: int = Field(default=200, ge=1, alias="HELMSMAN_AI_MAX_STEPS_PER_SESSION")
    memory_max_entries: int = Field(default=100, ge=1, alias="HELMSMAN_AI_MEMORY_MAX_ENTRIES")
    memory_ttl_minutes: float = Field(default=60.0, gt=0, alias="HELMSMAN_AI_MEMORY_TTL_MINUTES")
    memory_summary_window: int = Field(default=10, ge=1, alias="HELMSMAN_AI_MEMORY_SUMMARY_WINDOW")
    memory_summarize_every: int = Field(default=20, ge=0, alias="HELMSMAN_AI_MEMORY_SUMMARIZE_EVERY")
    max_approvals: int = Field(default=1000, ge=1, alias="HELMSMAN_AI_MAX_APPROVALS")

    model_config = {"populate_by_name": True}


class LogfireConfig(BaseModel):
    """Pydantic Logfire monitoring configuration."""

    enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED", description="Enable Logfire tracing")
    token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN", description="Logfire write token")
    service_name: str = Field(default="helmsman-ai", alias="LOGFIRE_SERVICE_NAME")
    service_version: str = Field(default="0.0.0", alias="LOGFIRE_SERVICE_VERSION")
    environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="HELMSMAN_AI_LOG_LEVEL",
    )
    log_format: str = Field(default="detailed", description="simple, detailed or json", alias="LOG_FORMAT")
    log_file_dir: str = Field(default="logs", alias="LOG_FILE_DIR")
    enable_file_logging: bool = Field(default=False, alias="ENABLE_FILE_LOGGING")

    # =====================================================================
    # Runner
    # =====================================================================
    max_iterations: int = Field(default=6, ge=1, alias="HELMSMAN_AI_MAX_ITERATIONS")
    default_system_prompt: Optional[str] = Field(default=None, alias="HELMSMAN_AI_DEFAULT_SYSTEM_PROMPT")
    tool_timeout_ms: int = Field(default=10_000, ge=1, alias="HELMSMAN_AI_TOOL_TIMEOUT_MS")
    tool_abort_grace_ms: int = Field(default=250, ge=0, alias="HELMSMAN_AI_TOOL_ABORT_GRACE_MS")

    # =====================================================================
    # Store limits
    # =====================================================================
    max_sessions: int = Field(default=500, ge=1, alias="HELMSMAN_AI_MAX_SESSIONS")
    max_messages_per_session: int = Field(default=200, ge=1, alias="HELMSMAN_AI_MAX_MESSAGES_PER_SESSION")
    max_steps_per_session: int = Field(default=200, ge=1, alias="HELMSMAN_AI_MAX_STEPS_PER_SESSION")
    memory_max_entries: int = Field(default=100, ge=1, alias="HELMSMAN_AI_MEMORY_MAX_ENTRIES")
    memory_ttl_minutes: float = Field(default=60.0, gt=0, alias="HELMSMAN_AI_MEMORY_TTL_MINUTES")
    memory_summary_window: int = Field(default=10, ge=1, alias="HELMSMAN_AI_MEMORY_SUMMARY_WINDOW")
    memory_summarize_every: int = Field(default=20, ge=0, alias="HELMSMAN_AI_MEMORY_SUMMARIZE_EVERY")
    max_approvals: int = Field(default=1000, ge=1, alias="HELMSMAN_AI_MAX_APPROVALS")

    # =====================================================================
    # Logfire
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(default="helmsman-ai", alias="LOGFIRE_SERVICE_NAME")
    logfire_service_version: str = Field(default="0.0.0", alias="LOGFIRE_SERVICE_VERSION")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def runner(self) -> RunnerConfig:
        """Get runner configuration from environment variables."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        return RunnerConfig.model_validate(data)

    @property
    def stores(self) -> StoreLimitsConfig:
        """Get in-memory store limits from environment variables."""
        return StoreLimitsConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logfire(self) -> LogfireConfig:
        """Get Logfire configuration from environment variables."""
        return LogfireConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
