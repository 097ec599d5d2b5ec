"""Ollama integration layer.

This package provides the async client used to stream chat completions,
including tool calls, from an Ollama server.
"""

from chat_agent_server.ollama.client import OllamaClient

__all__ = ["OllamaClient"]
