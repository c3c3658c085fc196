"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscordConfig(BaseModel):
    """Discord gateway configuration."""
    token: str = ""  # Bot token from the Discord developer portal


class RelayConfig(BaseModel):
    """Message relay limits and timings."""

    max_message_length: int = Field(default=2000, ge=1)
    flush_threshold: int = Field(default=1990, ge=1)
    platform_message_limit: int = Field(default=2000, ge=1)
    cooldown_ms: int = Field(default=10_000, ge=0)
    cooldown_sweep_interval_ms: int = Field(default=60_000, ge=1)
    purge_page_size: int = Field(default=100, ge=1, le=100)
    purge_delete_delay_ms: int = Field(default=1000, ge=0)
    clear_command: str = "!cleardm"
    tool_name_prefix: str = ""  # Stripped from raw tool names before showing notices

    @model_validator(mode="after")
    def check_flush_threshold(self) -> "RelayConfig":
        if self.flush_threshold >= self.platform_message_limit:
            raise ValueError(
                f"flush_threshold ({self.flush_threshold}) must be below "
                f"platform_message_limit ({self.platform_message_limit})"
            )
        return self


class AgentConfig(BaseModel):
    """Conversational agent configuration."""
    model: str = "openai/gpt-4o-mini"
    max_steps: int = Field(default=10, ge=1)
    max_tokens: int = Field(default=4096, ge=1)
    temperature: float = 0.7
    stream: bool = True
    system_prompt: str = (
        "You are a helpful assistant chatting with a user over Discord direct messages. "
        "Keep answers concise and use tools when they help."
    )


class ProviderConfig(BaseModel):
    """LLM provider credentials."""
    api_key: str = ""
    api_base: str | None = None
    extra_headers: dict[str, str] | None = None


class WebFetchConfig(BaseModel):
    """web_fetch tool configuration."""
    enabled: bool = True
    max_chars: int = Field(default=20_000, ge=100)
    timeout_s: float = Field(default=15.0, gt=0)


class ToolsConfig(BaseModel):
    """Agent tool configuration."""
    web_fetch: WebFetchConfig = Field(default_factory=WebFetchConfig)
    current_time: bool = True


class LoggingConfig(BaseModel):
    """Log sink configuration."""
    level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: str | None = None  # Optional log file path, rotated daily
    retention_days: int = Field(default=7, ge=1)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip().upper()
        return "INFO"


class Config(BaseSettings):
    """Root configuration for dmrelay."""

    model_config = SettingsConfigDict(env_prefix="DMRELAY_", env_nested_delimiter="__")

    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
