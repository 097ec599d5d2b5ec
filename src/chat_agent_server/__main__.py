"""CLI entry point for chat-agent-server.

This module provides the command-line interface for starting the server.
It can be invoked as `chat-agent-server` (via the script entry point) or
`python -m chat_agent_server`.
"""

import argparse
import logging
import sys

import uvicorn

from chat_agent_server import __version__, create_app
from chat_agent_server.config import ChatAgentServerSettings


def main() -> None:
    """Main entry point for the chat-agent-server CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="chat-agent-server",
        description="Chat agent server with MCP tools and human-confirmed tool calls",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"chat-agent-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via CHAT_AGENT_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via CHAT_AGENT_PORT)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via CHAT_AGENT_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Default model for new sessions (can be set via CHAT_AGENT_DEFAULT_MODEL)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Base directory for all data (default: ., can be set via CHAT_AGENT_DATA_DIR)",
    )

    parser.add_argument(
        "--no-mcp",
        action="store_true",
        help="Do not connect to MCP servers at startup",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via CHAT_AGENT_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.model is not None:
        settings_kwargs["default_model"] = args.model
    if args.data_dir is not None:
        settings_kwargs["data_dir"] = args.data_dir
    if args.no_mcp:
        settings_kwargs["mcp_discovery_enabled"] = False
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = ChatAgentServerSettings(**settings_kwargs)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
