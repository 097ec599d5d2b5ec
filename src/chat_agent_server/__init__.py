"""chat-agent-server: chat agent server with MCP tools and human-confirmed tool calls.

This package provides a REST API and SSE streaming interface for chatting
with an Ollama model that can call built-in and MCP-discovered tools, some
of which only run after a human approves them.
"""

from chat_agent_server.app import create_app

__version__ = "0.1.0"

__all__ = ["create_app", "__version__"]
