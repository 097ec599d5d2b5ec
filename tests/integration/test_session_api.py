"""Integration tests for session API endpoints."""

import asyncio

import pytest

from chat_agent_server.sessions import ChatSession
from chat_agent_server.sessions.session import text_message
from chat_agent_server.sessions.types import Message, ToolInvocationPart


@pytest.mark.asyncio
async def test_create_session(async_client):
    """Test creating a new session."""
    response = await async_client.post("/api/v1/sessions", json={"model": "qwen2.5:7b"})

    assert response.status_code == 201
    data = response.json()
    assert len(data["session_id"]) == 10
    assert data["model"] == "qwen2.5:7b"
    assert data["message_count"] == 0
    assert data["created_at"].endswith("Z")


@pytest.mark.asyncio
async def test_create_session_uses_default_model(async_client, test_settings):
    response = await async_client.post("/api/v1/sessions", json={})

    assert response.status_code == 201
    assert response.json()["model"] == test_settings.default_model


@pytest.mark.asyncio
async def test_create_session_with_system_prompt(async_client):
    response = await async_client.post(
        "/api/v1/sessions",
        json={"model": "llama3.2:latest", "system_prompt": "You are terse."},
    )

    assert response.status_code == 201
    session_id = response.json()["session_id"]
    assert response.json()["message_count"] == 1

    detail = await async_client.get(f"/api/v1/sessions/{session_id}")
    messages = detail.json()["messages"]
    assert messages[0]["role"] == "system"
    assert messages[0]["content"] == "You are terse."


@pytest.mark.asyncio
async def test_list_sessions_empty(async_client):
    response = await async_client.get("/api/v1/sessions")

    assert response.status_code == 200
    assert response.json() == {"sessions": []}


@pytest.mark.asyncio
async def test_list_sessions_includes_preview(async_client, test_settings):
    created = await async_client.post("/api/v1/sessions", json={})
    session_id = created.json()["session_id"]

    sessions_dir = test_settings.resolved_sessions_dir
    session = ChatSession.load(session_id, sessions_dir)
    session.add_message(text_message("user", "What is 12 times 7?"))
    session.save(sessions_dir)

    response = await async_client.get("/api/v1/sessions")

    assert response.status_code == 200
    sessions = response.json()["sessions"]
    assert len(sessions) == 1
    assert sessions[0]["session_id"] == session_id
    assert sessions[0]["preview"] == "What is 12 times 7?"


@pytest.mark.asyncio
async def test_get_session_with_tool_calls(async_client, test_settings):
    created = await async_client.post("/api/v1/sessions", json={})
    session_id = created.json()["session_id"]

    sessions_dir = test_settings.resolved_sessions_dir
    session = ChatSession.load(session_id, sessions_dir)
    session.add_message(text_message("user", "Weather in Oslo?"))
    session.add_message(
        Message(
            role="assistant",
            parts=[
                ToolInvocationPart(
                    tool_name="get_weather_information",
                    tool_call_id="call1",
                    args={"city": "Oslo"},
                )
            ],
            message_id="m2",
            created_at="2024-05-01T12:00:00Z",
            model="llama3.2:latest",
        )
    )
    session.save(sessions_dir)

    response = await async_client.get(f"/api/v1/sessions/{session_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["message_count"] == 2
    assert data["messages"][1]["tool_calls"] == [
        {
            "tool_name": "get_weather_information",
            "tool_call_id": "call1",
            "args": {"city": "Oslo"},
            "state": "awaiting-execution",
            "result": None,
        }
    ]


@pytest.mark.asyncio
async def test_get_session_not_found(async_client):
    response = await async_client.get("/api/v1/sessions/nonexistent")

    assert response.status_code == 404
    assert response.json()["detail"]["error"]["code"] == "session_not_found"


@pytest.mark.asyncio
async def test_delete_session(async_client):
    created = await async_client.post("/api/v1/sessions", json={})
    session_id = created.json()["session_id"]

    response = await async_client.delete(f"/api/v1/sessions/{session_id}")
    assert response.status_code == 204

    response = await async_client.get(f"/api/v1/sessions/{session_id}")
    assert response.status_code == 404



@pytest.mark.asyncio
async def test_delete_session_forgets_its_lock(async_client, test_app):
    created = await async_client.post("/api/v1/sessions", json={})
    session_id = created.json()["session_id"]
    test_app.state.session_locks[session_id] = asyncio.Lock()
    test_app.state.session_locks["other00000"] = asyncio.Lock()

    response = await async_client.delete(f"/api/v1/sessions/{session_id}")

    assert response.status_code == 204
    assert session_id not in test_app.state.session_locks
    assert "other00000" in test_app.state.session_locks

@pytest.mark.asyncio
async def test_delete_session_not_found(async_client):
    response = await async_client.delete("/api/v1/sessions/nonexistent")

    assert response.status_code == 404
