"""Configuration module for chat-agent-server using pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChatAgentServerSettings(BaseSettings):
    """Main configuration settings for chat-agent-server.

    All settings can be overridden via environment variables with the
    CHAT_AGENT_ prefix. For example, CHAT_AGENT_OLLAMA_HOST will override the
    ollama_host setting.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Ollama
    ollama_host: str = "http://localhost:11434"
    default_model: str = "llama3.2:latest"

    # Data directories (relative to data_dir)
    data_dir: str = "."
    sessions_dir: str = "chat_sessions"

    # Agent loop
    max_steps: int = 10

    # MCP
    mcp_discovery_enabled: bool = True
    mcp_connect_timeout: float = 10.0

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CHAT_AGENT_")

    @property
    def resolved_sessions_dir(self) -> Path:
        """Get the full path to the sessions directory."""
        return Path(self.data_dir) / self.sessions_dir
