"""Data types for conversation transcripts.

This module defines the core data structures for chat sessions: messages,
the content parts they are made of, and session metadata.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ToolInvocationState(str, Enum):
    """Lifecycle state of a tool invocation part."""

    PENDING_INPUT = "pending-input"
    AWAITING_EXECUTION = "awaiting-execution"
    COMPLETED = "completed"


class ToolDecision(str, Enum):
    """A human confirmation decision for a gated tool call."""

    APPROVED = "approved"
    DENIED = "denied"


@dataclass
class TextPart:
    """Plain text content."""

    text: str = ""
    type: str = "text"

    def __post_init__(self) -> None:
        self.type = "text"


@dataclass
class ToolInvocationPart:
    """A request from the assistant to call a named tool."""

    tool_name: str = ""
    tool_call_id: str = ""
    args: dict[str, Any] = field(default_factory=dict)
    state: ToolInvocationState = ToolInvocationState.AWAITING_EXECUTION
    result: Any = None
    type: str = "tool-invocation"

    def __post_init__(self) -> None:
        self.type = "tool-invocation"
        self.state = ToolInvocationState(self.state)

    @property
    def is_completed(self) -> bool:
        return self.state == ToolInvocationState.COMPLETED


@dataclass
class ToolDecisionPart:
    """A human's approval or denial of a tool call, referenced by id."""

    tool_call_id: str = ""
    decision: ToolDecision = ToolDecision.APPROVED
    type: str = "tool-decision"

    def __post_init__(self) -> None:
        self.type = "tool-decision"
        self.decision = ToolDecision(self.decision)


# Union type for all content parts
ContentPart = TextPart | ToolInvocationPart | ToolDecisionPart


@dataclass
class Message:
    """One turn in a conversation."""

    role: str = "user"
    parts: list[ContentPart] = field(default_factory=list)
    message_id: str = ""
    created_at: str = ""
    model: str | None = None

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def tool_invocations(self) -> list[ToolInvocationPart]:
        return [p for p in self.parts if isinstance(p, ToolInvocationPart)]


@dataclass
class SessionMetadata:
    """Metadata for a chat session."""

    session_id: str
    model: str
    created_at: str
    updated_at: str
    message_count: int = 0
    format_version: str = "1.0"


@dataclass
class SessionCreationOptions:
    """Options for creating a new session."""

    model: str
    system_prompt: str | None = None
