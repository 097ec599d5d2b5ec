"""Integration tests for scheduled task endpoints."""

import asyncio

import pytest

from chat_agent_server.sessions import ChatSession
from chat_agent_server.sessions.session import text_message
from chat_agent_server.sessions.types import Message, ToolInvocationPart
from chat_agent_server.tools import DENIAL_RESULT


@pytest.mark.asyncio
async def test_list_schedules_empty(async_client):
    response = await async_client.get("/api/v1/schedules")

    assert response.status_code == 200
    assert response.json() == {"tasks": []}


@pytest.mark.asyncio
async def test_list_and_cancel(async_client, test_app):
    scheduler = test_app.state.scheduler
    task = scheduler.schedule("sess000001", "check orders", "delayed", delay_seconds=600)
    scheduler.schedule("sess000002", "other", "delayed", delay_seconds=600)

    response = await async_client.get("/api/v1/schedules", params={"session_id": "sess000001"})

    assert response.status_code == 200
    tasks = response.json()["tasks"]
    assert [t["task_id"] for t in tasks] == [task.task_id]
    assert tasks[0]["when_type"] == "delayed"

    response = await async_client.delete(f"/api/v1/schedules/{task.task_id}")
    assert response.status_code == 204

    response = await async_client.get("/api/v1/schedules")
    assert len(response.json()["tasks"]) == 1


@pytest.mark.asyncio
async def test_cancel_unknown_task(async_client):
    response = await async_client.delete("/api/v1/schedules/missing")

    assert response.status_code == 404
    assert response.json()["detail"]["error"]["code"] == "schedule_not_found"


@pytest.mark.asyncio
async def test_due_task_appends_message(async_client, test_app):
    created = await async_client.post("/api/v1/sessions", json={})
    session_id = created.json()["session_id"]

    test_app.state.scheduler.schedule(session_id, "check orders", "delayed", delay_seconds=0)
    await asyncio.sleep(0.1)

    detail = await async_client.get(f"/api/v1/sessions/{session_id}")
    messages = detail.json()["messages"]
    assert messages[-1]["role"] == "user"
    assert messages[-1]["content"] == "Running scheduled task: check orders"



@pytest.mark.asyncio
async def test_due_task_denies_unanswered_tool_call(async_client, test_app, test_settings):
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
        )
    )
    session.save(sessions_dir)

    test_app.state.scheduler.schedule(session_id, "check orders", "delayed", delay_seconds=0)
    await asyncio.sleep(0.1)

    messages = (await async_client.get(f"/api/v1/sessions/{session_id}")).json()["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant", "user"]
    assert messages[1]["tool_calls"][0]["state"] == "completed"
    assert messages[1]["tool_calls"][0]["result"] == DENIAL_RESULT
    assert messages[-1]["content"] == "Running scheduled task: check orders"

@pytest.mark.asyncio
async def test_due_task_for_deleted_session_is_dropped(async_client, test_app, test_settings):
    test_app.state.scheduler.schedule("gone000000", "check orders", "delayed", delay_seconds=0)
    await asyncio.sleep(0.1)

    assert not (test_settings.resolved_sessions_dir / "gone000000.json").exists()
    assert test_app.state.scheduler.list_tasks() == []
