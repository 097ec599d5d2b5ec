"""Chat API endpoints.

This module provides endpoints for chat interactions with sessions,
including non-streaming and streaming responses via SSE. Each request first
resolves tool calls the user has approved or denied, then lets the model
respond.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from chat_agent_server.dependencies import (
    get_mcp_manager,
    get_ollama_client,
    get_scheduler,
    get_session_lock,
)
from chat_agent_server.mcp import MCPConnectionManager, get_mcp_instructions
from chat_agent_server.models.chat import (
    ChatRequest,
    ChatResponse,
    ErrorEvent,
    message_response,
    tool_call_response,
)
from chat_agent_server.ollama.client import OllamaClient
from chat_agent_server.scheduling import TaskScheduler
from chat_agent_server.services.chat import ChatAgent, ChatError
from chat_agent_server.services.prompts import build_system_prompt
from chat_agent_server.sessions.session import ChatSession
from chat_agent_server.tools import (
    build_registry,
    pending_confirmations,
    scheduling_tools,
    static_tools,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])

CHAT_ERROR_STATUS = {
    "empty_history": 400,
    "ollama_error": 502,
    "incomplete_response": 502,
    "session_save_error": 500,
}


def _load_session(session_id: str, sessions_dir: Path) -> ChatSession:
    """Load a session, converting failures to HTTP errors.

    Raises:
        HTTPException: 404 if session not found, 500 if it cannot be loaded
    """
    try:
        return ChatSession.load(session_id, sessions_dir)
    except FileNotFoundError:
        raise HTTPException(
            status_code=404,
            detail={
                "error": {
                    "code": "session_not_found",
                    "message": f"Session {session_id} not found",
                    "details": {"session_id": session_id},
                }
            },
        )
    except Exception as e:
        logger.error(f"Failed to load session {session_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail={
                "error": {
                    "code": "session_load_error",
                    "message": f"Failed to load session: {str(e)}",
                    "details": {},
                }
            },
        )


def _saver(sessions_dir: Path):
    def save(session: ChatSession) -> None:
        try:
            session.save(sessions_dir)
        except Exception as e:
            logger.error(f"Failed to save session {session.session_id}: {e}")
            raise ChatError("session_save_error", f"Failed to save session: {str(e)}")

    return save


def _build_agent(
    request: Request,
    session: ChatSession,
    ollama_client: OllamaClient,
    mcp_manager: MCPConnectionManager,
    scheduler: TaskScheduler,
) -> ChatAgent:
    settings = request.app.state.settings
    registry = build_registry(
        static_tools(),
        mcp_manager.get_tools(),
        scheduling_tools(scheduler, session.session_id),
    )
    system_prompt = build_system_prompt(
        now=datetime.now(timezone.utc),
        mcp_instructions=get_mcp_instructions(),
        shop_context=request.app.state.shop_context,
    )
    return ChatAgent(
        ollama_client=ollama_client,
        session=session,
        registry=registry,
        system_prompt=system_prompt,
        save=_saver(settings.resolved_sessions_dir),
        max_steps=settings.max_steps,
    )


def _decisions(request_body: ChatRequest) -> list[tuple[str, str]]:
    return [(d.tool_call_id, d.decision) for d in request_body.tool_decisions]


@router.post("/{session_id}", response_model=ChatResponse)
async def chat_non_streaming(
    session_id: str,
    request_body: ChatRequest,
    request: Request,
    ollama_client: OllamaClient = Depends(get_ollama_client),
    mcp_manager: MCPConnectionManager = Depends(get_mcp_manager),
    scheduler: TaskScheduler = Depends(get_scheduler),
) -> ChatResponse:
    """Send a message and/or tool decisions and receive the complete result.

    Raises:
        HTTPException: 404 if session not found, 400 on empty history,
            502 if Ollama fails
    """
    sessions_dir = request.app.state.settings.resolved_sessions_dir

    async with get_session_lock(request, session_id):
        session = _load_session(session_id, sessions_dir)
        agent = _build_agent(request, session, ollama_client, mcp_manager, scheduler)

        try:
            async for _ in agent.run(
                message=request_body.message,
                decisions=_decisions(request_body),
            ):
                pass
        except ChatError as e:
            raise HTTPException(
                status_code=CHAT_ERROR_STATUS.get(e.code, 500),
                detail={
                    "error": {
                        "code": e.code,
                        "message": e.message,
                        "details": e.details,
                    }
                },
            )

    last = session.last_message
    return ChatResponse(
        session_id=session_id,
        message=message_response(last) if last and last.role == "assistant" else None,
        tool_calls_executed=[tool_call_response(p) for p in agent.executed],
        pending_confirmations=[
            tool_call_response(p)
            for p in pending_confirmations(session.messages, agent.registry)
        ],
    )


@router.post("/{session_id}/stream")
async def chat_streaming(
    session_id: str,
    request_body: ChatRequest,
    request: Request,
    ollama_client: OllamaClient = Depends(get_ollama_client),
    mcp_manager: MCPConnectionManager = Depends(get_mcp_manager),
    scheduler: TaskScheduler = Depends(get_scheduler),
) -> EventSourceResponse:
    """Stream a chat response via Server-Sent Events (SSE).

    SSE Events:
        - tool_execution_started / tool_execution_finished: A confirmed tool
          call is being resolved
        - content_delta: Each text chunk from the LLM
        - tool_result: A tool ran inline during generation
        - tool_confirmation_required: A tool call waits for a human decision
        - message_complete: Metadata of the final assistant message
        - error: If an error occurs during streaming
        - done: Stream is complete

    Raises:
        HTTPException: 404 if session not found
    """
    sessions_dir = request.app.state.settings.resolved_sessions_dir

    # Fail fast with a proper status code before the stream starts
    _load_session(session_id, sessions_dir)

    async def event_generator():
        """Generate SSE events from the chat agent."""
        async with get_session_lock(request, session_id):
            try:
                session = _load_session(session_id, sessions_dir)
                agent = _build_agent(request, session, ollama_client, mcp_manager, scheduler)

                async for event, payload in agent.run(
                    message=request_body.message,
                    decisions=_decisions(request_body),
                    is_disconnected=request.is_disconnected,
                ):
                    yield {"event": event, "data": payload.model_dump_json()}

            except ChatError as e:
                logger.error(f"Chat failed for session {session_id}: {e.message}")
                error_event = ErrorEvent(code=e.code, message=e.message, details=e.details)
                yield {"event": "error", "data": error_event.model_dump_json()}
            except Exception as e:
                logger.error(f"Error during streaming for session {session_id}: {e}")
                error_event = ErrorEvent(
                    code="stream_error",
                    message=f"Failed to generate response: {str(e)}",
                    details={"session_id": session_id},
                )
                yield {"event": "error", "data": error_event.model_dump_json()}

    return EventSourceResponse(event_generator())
