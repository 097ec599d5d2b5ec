"""Pytest configuration for integration tests.

This module provides integration-test-specific fixtures that ensure
proper test isolation and mocking for API endpoint tests.
"""

from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture(autouse=True)
def mock_ollama_client():
    """Mock OllamaClient for all integration tests.

    This fixture patches the OllamaClient class before the app is created,
    ensuring the lifespan uses our mock instead of creating a real client.
    Tests replace `chat_stream` with an async generator to script replies.
    """
    with patch("chat_agent_server.app.OllamaClient") as mock_client_class:
        mock_instance = AsyncMock()
        mock_instance.host = "http://localhost:11434"
        mock_instance.check_connection.return_value = True

        mock_client_class.return_value = mock_instance

        yield mock_instance


@pytest.fixture(autouse=True)
def clean_session_dir(test_settings):
    """Ensure sessions directory is clean before and after each test."""
    sessions_dir = test_settings.resolved_sessions_dir

    if sessions_dir.exists():
        for session_file in sessions_dir.glob("*.json"):
            session_file.unlink()

    yield

    if sessions_dir.exists():
        for session_file in sessions_dir.glob("*.json"):
            session_file.unlink()
