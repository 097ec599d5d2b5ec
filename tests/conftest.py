"""Pytest configuration and shared fixtures for chat-agent-server tests.

This module provides common fixtures used across all test modules,
including test app creation and async client setup.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chat_agent_server import create_app
from chat_agent_server.config import ChatAgentServerSettings


@pytest.fixture
def test_settings(tmp_path):
    """Create test settings with an isolated temporary data directory.

    MCP discovery is off so that no test reaches out to remote servers.
    """
    return ChatAgentServerSettings(
        host="127.0.0.1",
        port=8000,
        ollama_host="http://localhost:11434",
        default_model="llama3.2:latest",
        data_dir=str(tmp_path),
        sessions_dir="chat_sessions",
        mcp_discovery_enabled=False,
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance."""
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
