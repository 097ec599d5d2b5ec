"""Pydantic models for chat API requests, responses, and SSE events.

This module defines the request and response schemas for the chat endpoints,
including the events emitted while streaming.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from chat_agent_server.sessions.types import Message, ToolInvocationPart


class ToolDecisionRequest(BaseModel):
    """A human's answer to a pending tool confirmation."""

    tool_call_id: str = Field(description="Id of the tool call being decided")
    decision: Literal["approved", "denied"] = Field(
        description="Whether the tool call may run"
    )


class ChatRequest(BaseModel):
    """Request body for chat endpoints.

    Used by both POST /api/v1/chat/{session_id} (non-streaming)
    and POST /api/v1/chat/{session_id}/stream (streaming).
    """

    message: str | None = Field(
        default=None,
        description="The user message to send. If null, the agent continues from the current history.",
    )
    tool_decisions: list[ToolDecisionRequest] = Field(
        default_factory=list,
        description="Approvals or denials for tool calls awaiting confirmation.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"message": "What is 12 times 7?", "tool_decisions": []},
                {
                    "message": None,
                    "tool_decisions": [
                        {"tool_call_id": "3f9a1c2b4d", "decision": "approved"}
                    ],
                },
            ]
        }
    )


class ToolCallResponse(BaseModel):
    """A tool invocation and, once completed, its result."""

    tool_name: str
    tool_call_id: str
    args: dict[str, Any] = Field(default_factory=dict)
    state: str
    result: Any = None


class MessageResponse(BaseModel):
    """A transcript message in API responses."""

    message_id: str = Field(description="Unique message identifier")
    role: str = Field(description="Message role")
    content: str = Field(description="Concatenated text content")
    created_at: str = Field(description="ISO 8601 timestamp")
    model: str | None = Field(default=None, description="Model that generated this message")
    tool_calls: list[ToolCallResponse] = Field(
        default_factory=list, description="Tool calls made in this message"
    )


class ChatResponse(BaseModel):
    """Response body for the non-streaming chat endpoint."""

    session_id: str = Field(description="Session identifier")
    message: MessageResponse | None = Field(
        default=None,
        description="The last assistant message, if the model ran",
    )
    tool_calls_executed: list[ToolCallResponse] = Field(
        default_factory=list,
        description="Tool calls that were executed during this request",
    )
    pending_confirmations: list[ToolCallResponse] = Field(
        default_factory=list,
        description="Tool calls waiting for a human decision",
    )


# --- SSE events ---


class ContentDeltaEvent(BaseModel):
    """A chunk of assistant text."""

    content: str
    role: str = "assistant"


class ToolExecutionEvent(BaseModel):
    """Start or end of a confirmed tool call's execution."""

    tool_name: str
    tool_call_id: str
    outcome: str | None = None
    result: Any = None


class ToolResultEvent(BaseModel):
    """Result of a tool run inline during generation."""

    tool_name: str
    tool_call_id: str
    result: Any = None


class ToolConfirmationRequiredEvent(BaseModel):
    """A tool call that needs a human decision before it can run."""

    tool_name: str
    tool_call_id: str
    args: dict[str, Any] = Field(default_factory=dict)


class MessageCompleteEvent(BaseModel):
    """Metadata of the finished assistant message."""

    message_id: str
    model: str
    eval_count: int | None = None
    prompt_eval_count: int | None = None


class ErrorEvent(BaseModel):
    """An error that ended the stream."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class DoneEvent(BaseModel):
    """The stream is complete."""

    session_id: str


def tool_call_response(part: ToolInvocationPart) -> ToolCallResponse:
    return ToolCallResponse(
        tool_name=part.tool_name,
        tool_call_id=part.tool_call_id,
        args=part.args,
        state=part.state.value,
        result=part.result,
    )


def message_response(message: Message) -> MessageResponse:
    """Build the API representation of a transcript message."""
    return MessageResponse(
        message_id=message.message_id,
        role=message.role,
        content=message.text,
        created_at=message.created_at,
        model=message.model,
        tool_calls=[tool_call_response(p) for p in message.tool_invocations],
    )
