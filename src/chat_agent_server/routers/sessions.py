"""Sessions router for chat session CRUD operations.

This module provides REST API endpoints for:
- Creating new sessions
- Listing all sessions
- Retrieving a session with its transcript
- Deleting sessions
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from chat_agent_server.dependencies import drop_session_lock, get_session_manager
from chat_agent_server.models.chat import message_response
from chat_agent_server.models.sessions import (
    CreateSessionRequest,
    SessionDetailResponse,
    SessionListItem,
    SessionListResponse,
    SessionResponse,
)
from chat_agent_server.sessions import ChatSession, SessionCreationOptions, SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


def _session_response(session: ChatSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        model=session.model,
        created_at=session.metadata.created_at,
        updated_at=session.metadata.updated_at,
        message_count=session.metadata.message_count,
    )


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": {
                "code": "session_not_found",
                "message": f"Session {session_id} not found",
                "details": {"session_id": session_id},
            }
        },
    )


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new session",
)
async def create_session(
    body: CreateSessionRequest,
    request: Request,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> SessionResponse:
    """Create a new chat session.

    Uses the configured default model when none is given.
    """
    model = body.model or request.app.state.settings.default_model
    session = session_manager.create_session(
        SessionCreationOptions(model=model, system_prompt=body.system_prompt)
    )
    return _session_response(session)


@router.get(
    "",
    response_model=SessionListResponse,
    summary="List all sessions",
)
async def list_sessions(
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> SessionListResponse:
    """List all chat sessions, most recently updated first."""
    items = [
        SessionListItem(
            **_session_response(session).model_dump(),
            preview=session.get_preview(),
        )
        for session in session_manager.list_sessions()
    ]
    return SessionListResponse(sessions=items)


@router.get(
    "/{session_id}",
    response_model=SessionDetailResponse,
    summary="Get session details",
)
async def get_session(
    session_id: str,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> SessionDetailResponse:
    """Get a session's metadata and transcript.

    Raises:
        HTTPException: 404 if session not found
    """
    try:
        session = session_manager.get_session(session_id)
    except FileNotFoundError:
        raise _not_found(session_id)

    return SessionDetailResponse(
        **_session_response(session).model_dump(),
        messages=[message_response(m) for m in session.messages],
    )


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a session",
)
async def delete_session(
    session_id: str,
    request: Request,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> None:
    """Delete a session.

    Raises:
        HTTPException: 404 if session not found
    """
    try:
        session_manager.delete_session(session_id)
    except FileNotFoundError:
        raise _not_found(session_id)

    drop_session_lock(request, session_id)
