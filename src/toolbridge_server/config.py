"""Configuration module for toolbridge-server using pydantic-settings."""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant; use tools when needed."


class ToolBridgeSettings(BaseSettings):
    """Main configuration settings for toolbridge-server.

    All settings can be overridden via environment variables with the
    TOOLBRIDGE_ prefix. For example, TOOLBRIDGE_OLLAMA_HOST will override the
    ollama_host setting. List and mapping settings are read as JSON, e.g.
    TOOLBRIDGE_PROVIDER_ARGS='["dist/index.js"]'.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Ollama
    ollama_host: str = "http://localhost:11434"
    model: str = "llama3.1:8b"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    chat_options: dict[str, Any] = Field(default_factory=dict)

    # Tool provider process
    provider_command: str = "node"
    provider_args: list[str] = Field(default_factory=list)
    provider_env: dict[str, str] = Field(default_factory=dict)
    provider_required_env: list[str] = Field(default_factory=list)
    provider_cwd: str | None = None
    provider_request_timeout: float = 60.0
    provider_startup_timeout: float = 30.0

    # Tool catalog
    catalog_mode: Literal["discover", "static"] = "discover"
    static_tools: list[dict[str, Any]] = Field(default_factory=list)

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="TOOLBRIDGE_")

    @property
    def resolved_provider_cwd(self) -> Path | None:
        """Get the working directory for the provider process, if any."""
        if self.provider_cwd is None:
            return None
        return Path(self.provider_cwd)
