"""Pydantic models for session API requests and responses."""

from pydantic import BaseModel, Field

from chat_agent_server.models.chat import MessageResponse


class CreateSessionRequest(BaseModel):
    """Request body for creating a new session."""

    model: str | None = Field(
        None, description="The LLM model to use (default: the configured default model)"
    )
    system_prompt: str | None = Field(
        None, description="Optional system prompt stored as the first message"
    )


class SessionResponse(BaseModel):
    """Session metadata."""

    session_id: str = Field(..., description="Unique session identifier")
    model: str = Field(..., description="LLM model used")
    created_at: str = Field(..., description="ISO 8601 creation timestamp")
    updated_at: str = Field(..., description="ISO 8601 last update timestamp")
    message_count: int = Field(..., description="Number of messages")


class SessionListItem(SessionResponse):
    """A session in the session list."""

    preview: str = Field("", description="Preview of the first user message")


class SessionListResponse(BaseModel):
    """Response for listing sessions."""

    sessions: list[SessionListItem] = Field(
        default_factory=list, description="Sessions, most recently updated first"
    )


class SessionDetailResponse(SessionResponse):
    """Session metadata with the full transcript."""

    messages: list[MessageResponse] = Field(
        default_factory=list, description="Transcript messages"
    )
