"""Async Ollama client wrapper.

This module provides an async wrapper around the ollama.AsyncClient for
communicating with the Ollama API. All operations are async and the client
is designed to be created once at startup and reused.
"""

import logging
from typing import Any, AsyncIterator

import ollama

logger = logging.getLogger(__name__)


class OllamaClient:
    """Async client for interacting with the Ollama API.

    All chat operations use streaming; tool definitions are passed through
    to the model so it can request tool calls.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(self, host: str) -> None:
        """Initialize the Ollama client.

        Args:
            host: The Ollama server URL
        """
        self.host = host
        self._client = ollama.AsyncClient(host=host)
        logger.info(f"OllamaClient initialized with host: {host}")

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def chat_stream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        options: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream chat responses from Ollama.

        Args:
            model: The model name to use for the chat
            messages: List of message dicts in Ollama format
            tools: Optional function-calling tool schemas
            options: Optional model parameters (temperature, etc.)

        Yields:
            dict: Response chunks. Each chunk contains "message" (role,
                content, and optionally tool_calls) and "done"; the final
                chunk also carries eval_count and prompt_eval_count.

        Raises:
            Exception: If the Ollama API request fails
        """
        try:
            logger.debug(
                f"Starting chat stream with model: {model} "
                f"({len(messages)} messages, {len(tools or [])} tools)"
            )

            async for chunk in await self._client.chat(
                model=model,
                messages=messages,
                tools=tools or None,
                stream=True,
                options=options,
            ):
                if hasattr(chunk, "model_dump"):
                    chunk_dict = chunk.model_dump()
                elif isinstance(chunk, dict):
                    chunk_dict = chunk
                else:
                    chunk_dict = vars(chunk)

                yield chunk_dict

            logger.debug("Chat stream completed")

        except Exception as e:
            logger.error(f"Chat stream failed: {e}")
            raise

    async def close(self) -> None:
        """Close the client.

        ollama.AsyncClient uses httpx internally, which handles its own
        cleanup; nothing needs releasing here yet.
        """
        logger.debug("OllamaClient closed")
