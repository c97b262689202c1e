"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
Operator-mutable settings (AI endpoint, model, chat channel, admins) are not
here; they live in the JSON-backed runtime store (see bobbot.storage).
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BotSettings(BaseSettings):
    """Discord bot configuration."""

    name: str = Field(default="Bob", description="Bot display name")
    command_prefix: str = Field(default="!", description="Command prefix for bot commands")
    token: str = Field(default="", description="Discord bot token")
    superuser_id: str = Field(
        default="",
        description="Discord user ID of the operator. Always an admin, and the default "
                    "recipient of reasoning DMs when nobody has opted in.",
    )
    dev_guild_id: int | None = Field(
        default=None,
        description="If set, syncs slash commands to this guild instantly (dev mode). "
                    "If None, syncs globally (up to 1 hour propagation).",
    )
    trigger_word: str = Field(
        default="bob",
        description="Case-insensitive word that triggers a reply in the chat channel "
                    "even without an @mention.",
    )


class LLMSettings(BaseSettings):
    """Model endpoint transport configuration.

    The endpoint URL and model name are operator-mutable at runtime and are
    read from the runtime settings store on every call, not from here.
    """

    api_key: str = Field(
        default="no-key",
        description="API key sent to the OpenAI-compatible endpoint. Local servers "
                    "usually accept any value.",
    )
    timeout_seconds: float = Field(default=120.0, gt=0, description="Per-request timeout")
    temperature: float | None = Field(default=None, description="Sampling temperature")
    max_tokens: int | None = Field(default=None, description="Maximum tokens in response")

    model_config = SettingsConfigDict(env_prefix="LLM_")


class AgentSettings(BaseSettings):
    """Limits and sizes for the agent orchestration runtime."""

    memory_window: int = Field(
        default=20, ge=1, description="Messages kept per conversation (oldest evicted first)"
    )
    max_total_tool_calls: int = Field(
        default=5, ge=1, description="Tool calls allowed in one generation call"
    )
    max_calls_per_signature: int = Field(
        default=2, ge=1,
        description="Times the same tool may be called with identical arguments in one call",
    )
    thought_cache_size: int = Field(
        default=100, ge=1, description="Answers whose reasoning is kept for on-demand lookup"
    )
    page_size: int = Field(default=10, ge=1, description="Items per page in paginated reports")
    max_paged_sessions: int = Field(
        default=500, ge=1, description="Paged sessions kept before the oldest is dropped"
    )
    max_display_chars: int = Field(
        default=1990, ge=16, description="Longest answer sent in one chat message"
    )
    reasoning_chunk_size: int = Field(
        default=1900, ge=16, description="Longest reasoning chunk sent in one DM"
    )
    tool_workers: int = Field(
        default=4, ge=1, description="Worker threads used to run synchronous tools"
    )

    model_config = SettingsConfigDict(env_prefix="AGENT_")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding settings.json and the personality.txt override",
    )

    # Sub-configurations
    bot: BotSettings = Field(default_factory=BotSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
