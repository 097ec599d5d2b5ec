"""Unit tests for the OllamaClient wrapper."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from chat_agent_server.ollama import OllamaClient


@pytest.fixture
def mock_ollama_async_client():
    """Create a mock ollama.AsyncClient."""
    with patch("chat_agent_server.ollama.client.ollama.AsyncClient") as mock_class:
        mock_instance = AsyncMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def ollama_client(mock_ollama_async_client):
    """Create an OllamaClient with mocked AsyncClient."""
    return OllamaClient(host="http://localhost:11434")


async def _chunks(*items):
    for item in items:
        yield item


class FakeChunk:
    """Pydantic-like response chunk as returned by the ollama library."""

    def __init__(self, data):
        self._data = data

    def model_dump(self):
        return self._data


@pytest.mark.asyncio
async def test_client_initialization():
    """Test that OllamaClient initializes correctly."""
    with patch("chat_agent_server.ollama.client.ollama.AsyncClient") as mock_class:
        client = OllamaClient(host="http://test:11434")
        assert client.host == "http://test:11434"
        mock_class.assert_called_once_with(host="http://test:11434")


@pytest.mark.asyncio
async def test_check_connection_success(ollama_client, mock_ollama_async_client):
    """Test successful connection check."""
    mock_ollama_async_client.list.return_value = {"models": []}

    result = await ollama_client.check_connection()

    assert result is True
    mock_ollama_async_client.list.assert_called_once()


@pytest.mark.asyncio
async def test_check_connection_failure(ollama_client, mock_ollama_async_client):
    """Test connection check when Ollama is unreachable."""
    mock_ollama_async_client.list.side_effect = Exception("Connection refused")

    result = await ollama_client.check_connection()

    assert result is False


@pytest.mark.asyncio
async def test_chat_stream_yields_dicts(ollama_client, mock_ollama_async_client):
    """Test that model chunks and plain dict chunks both come out as dicts."""
    first = FakeChunk({"message": {"role": "assistant", "content": "Hel"}, "done": False})
    last = {"message": {"role": "assistant", "content": "lo"}, "done": True, "eval_count": 3}
    mock_ollama_async_client.chat.return_value = _chunks(first, last)

    chunks = [
        c
        async for c in ollama_client.chat_stream(
            model="llama3.2:latest", messages=[{"role": "user", "content": "Hi"}]
        )
    ]

    assert chunks == [
        {"message": {"role": "assistant", "content": "Hel"}, "done": False},
        last,
    ]


@pytest.mark.asyncio
async def test_chat_stream_passes_tools(ollama_client, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = _chunks({"message": {}, "done": True})
    tools = [{"type": "function", "function": {"name": "add", "description": "", "parameters": {}}}]
    messages = [{"role": "user", "content": "1+1"}]

    async for _ in ollama_client.chat_stream(model="m", messages=messages, tools=tools):
        pass

    mock_ollama_async_client.chat.assert_awaited_once_with(
        model="m", messages=messages, tools=tools, stream=True, options=None
    )


@pytest.mark.asyncio
async def test_chat_stream_without_tools_sends_none(ollama_client, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = _chunks({"message": {}, "done": True})

    async for _ in ollama_client.chat_stream(model="m", messages=[], tools=[]):
        pass

    assert mock_ollama_async_client.chat.await_args.kwargs["tools"] is None


@pytest.mark.asyncio
async def test_chat_stream_falls_back_to_vars(ollama_client, mock_ollama_async_client):
    chunk = SimpleNamespace(message={"content": "x"}, done=True)
    mock_ollama_async_client.chat.return_value = _chunks(chunk)

    chunks = [c async for c in ollama_client.chat_stream(model="m", messages=[])]

    assert chunks == [{"message": {"content": "x"}, "done": True}]


@pytest.mark.asyncio
async def test_chat_stream_error_propagates(ollama_client, mock_ollama_async_client):
    mock_ollama_async_client.chat.side_effect = Exception("model not found")

    with pytest.raises(Exception, match="model not found"):
        async for _ in ollama_client.chat_stream(model="missing", messages=[]):
            pass


@pytest.mark.asyncio
async def test_close(ollama_client):
    """Test that close completes without error."""
    await ollama_client.close()
