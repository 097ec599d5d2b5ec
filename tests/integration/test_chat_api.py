"""Integration tests for the non-streaming chat API endpoint.

These cover the full confirmation round trip: the model asks for a gated
tool, the request ends with the call pending, and the next request carries
the user's decision.
"""

import pytest
from httpx import AsyncClient


def replay(*replies):
    """Build a chat_stream replacement that plays back one reply per call."""
    remaining = list(replies)
    calls = []

    async def chat_stream(*args, **kwargs):
        calls.append(kwargs)
        for chunk in remaining.pop(0):
            yield chunk

    chat_stream.calls = calls
    return chat_stream


def text_reply(text):
    return [
        {"model": "llama3.2:latest", "message": {"role": "assistant", "content": text}, "done": False},
        {
            "model": "llama3.2:latest",
            "message": {"role": "assistant", "content": ""},
            "done": True,
            "eval_count": 5,
            "prompt_eval_count": 20,
        },
    ]


def tool_reply(name, arguments, call_id):
    return [
        {
            "model": "llama3.2:latest",
            "message": {
                "role": "assistant",
                "content": "",
                "tool_calls": [
                    {"id": call_id, "function": {"name": name, "arguments": arguments}}
                ],
            },
            "done": True,
        }
    ]


async def create_session(client: AsyncClient) -> str:
    response = await client.post("/api/v1/sessions", json={"model": "llama3.2:latest"})
    assert response.status_code == 201
    return response.json()["session_id"]


class TestChatNonStreaming:
    @pytest.mark.asyncio
    async def test_chat_with_new_message(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)
        mock_ollama_client.chat_stream = replay(text_reply("Hello there!"))

        response = await async_client.post(f"/api/v1/chat/{session_id}", json={"message": "Hi!"})

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == session_id
        assert data["message"]["role"] == "assistant"
        assert data["message"]["content"] == "Hello there!"
        assert data["message"]["model"] == "llama3.2:latest"
        assert data["tool_calls_executed"] == []
        assert data["pending_confirmations"] == []

        detail = await async_client.get(f"/api/v1/sessions/{session_id}")
        assert [m["role"] for m in detail.json()["messages"]] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_system_prompt_is_built_per_request(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)
        stream = replay(text_reply("ok"))
        mock_ollama_client.chat_stream = stream

        await async_client.post(f"/api/v1/chat/{session_id}", json={"message": "Hi"})

        system = stream.calls[0]["messages"][0]
        assert system["role"] == "system"
        assert "SHOPIFY CONTEXT:" in system["content"]
        tool_names = {t["function"]["name"] for t in stream.calls[0]["tools"]}
        assert {"get_local_time", "get_weather_information", "schedule_task"} <= tool_names

    @pytest.mark.asyncio
    async def test_confirmation_round_trip_approved(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)
        mock_ollama_client.chat_stream = replay(
            tool_reply("get_weather_information", {"city": "Oslo"}, "call1"),
            text_reply("It is sunny in Oslo."),
        )

        first = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Weather in Oslo?"}
        )

        assert first.status_code == 200
        pending = first.json()["pending_confirmations"]
        assert [p["tool_call_id"] for p in pending] == ["call1"]
        assert pending[0]["state"] == "awaiting-execution"

        second = await async_client.post(
            f"/api/v1/chat/{session_id}",
            json={"tool_decisions": [{"tool_call_id": "call1", "decision": "approved"}]},
        )

        assert second.status_code == 200
        data = second.json()
        assert data["pending_confirmations"] == []
        assert data["tool_calls_executed"][0]["result"] == "The weather in Oslo is sunny"
        assert data["tool_calls_executed"][0]["state"] == "completed"
        assert data["message"]["content"] == "It is sunny in Oslo."

    @pytest.mark.asyncio
    async def test_confirmation_round_trip_denied(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)
        mock_ollama_client.chat_stream = replay(
            tool_reply("get_weather_information", {"city": "Oslo"}, "call1"),
            text_reply("Alright, I won't check."),
        )
        await async_client.post(f"/api/v1/chat/{session_id}", json={"message": "Weather in Oslo?"})

        response = await async_client.post(
            f"/api/v1/chat/{session_id}",
            json={"tool_decisions": [{"tool_call_id": "call1", "decision": "denied"}]},
        )

        executed = response.json()["tool_calls_executed"]
        assert executed[0]["result"] == {
            "kind": "user-denied-tool-execution",
            "message": "Error: User denied access to tool execution",
        }

    @pytest.mark.asyncio
    async def test_new_message_denies_unanswered_call(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)
        mock_ollama_client.chat_stream = replay(
            tool_reply("get_weather_information", {"city": "Oslo"}, "call1"),
            text_reply("What time is it there, then?"),
        )
        await async_client.post(f"/api/v1/chat/{session_id}", json={"message": "Weather in Oslo?"})

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Forget the weather."}
        )

        assert response.status_code == 200
        assert response.json()["pending_confirmations"] == []
        executed = response.json()["tool_calls_executed"]
        assert executed[0]["tool_call_id"] == "call1"
        assert executed[0]["result"]["kind"] == "user-denied-tool-execution"

        messages = (await async_client.get(f"/api/v1/sessions/{session_id}")).json()["messages"]
        earlier_calls = [c for m in messages[:-1] for c in m.get("tool_calls") or []]
        assert earlier_calls
        assert all(c["state"] == "completed" for c in earlier_calls)

    @pytest.mark.asyncio
    async def test_inline_tool_is_reported_as_executed(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)
        mock_ollama_client.chat_stream = replay(
            tool_reply("get_local_time", {"location": "Oslo"}, "t1"),
            text_reply("It is noon."),
        )

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Time in Oslo?"}
        )

        executed = response.json()["tool_calls_executed"]
        assert [e["tool_name"] for e in executed] == ["get_local_time"]

    @pytest.mark.asyncio
    async def test_schedule_task_tool(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)
        mock_ollama_client.chat_stream = replay(
            tool_reply(
                "schedule_task",
                {"description": "check orders", "when_type": "delayed", "delay_in_seconds": 600},
                "s1",
            ),
            text_reply("Scheduled."),
        )

        await async_client.post(f"/api/v1/chat/{session_id}", json={"message": "Remind me"})

        response = await async_client.get("/api/v1/schedules", params={"session_id": session_id})
        tasks = response.json()["tasks"]
        assert [t["description"] for t in tasks] == ["check orders"]

    @pytest.mark.asyncio
    async def test_chat_with_nonexistent_session(self, async_client):
        response = await async_client.post("/api/v1/chat/nonexistent", json={"message": "Hi"})

        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "session_not_found"

    @pytest.mark.asyncio
    async def test_chat_with_empty_session(self, async_client):
        session_id = await create_session(async_client)

        response = await async_client.post(f"/api/v1/chat/{session_id}", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "empty_history"

    @pytest.mark.asyncio
    async def test_chat_ollama_error(self, async_client, mock_ollama_client):
        session_id = await create_session(async_client)

        async def failing_stream(*args, **kwargs):
            raise Exception("Ollama connection failed")
            yield  # pragma: no cover

        mock_ollama_client.chat_stream = failing_stream

        response = await async_client.post(f"/api/v1/chat/{session_id}", json={"message": "Hi"})

        assert response.status_code == 502
        error = response.json()["detail"]["error"]
        assert error["code"] == "ollama_error"
        assert "Ollama connection failed" in error["message"]

    @pytest.mark.asyncio
    async def test_invalid_decision_is_rejected(self, async_client):
        session_id = await create_session(async_client)

        response = await async_client.post(
            f"/api/v1/chat/{session_id}",
            json={"tool_decisions": [{"tool_call_id": "call1", "decision": "maybe"}]},
        )

        assert response.status_code == 422
