"""Session management for chat-agent-server.

This package provides the conversation transcript model, session
persistence, and CRUD operations for chat sessions.
"""

from chat_agent_server.sessions.manager import SessionManager
from chat_agent_server.sessions.session import ChatSession
from chat_agent_server.sessions.types import (
    ContentPart,
    Message,
    SessionCreationOptions,
    SessionMetadata,
    TextPart,
    ToolDecision,
    ToolDecisionPart,
    ToolInvocationPart,
    ToolInvocationState,
)

__all__ = [
    # Core classes
    "ChatSession",
    "SessionManager",
    # Transcript types
    "Message",
    "ContentPart",
    "TextPart",
    "ToolInvocationPart",
    "ToolInvocationState",
    "ToolDecisionPart",
    "ToolDecision",
    # Configuration types
    "SessionMetadata",
    "SessionCreationOptions",
]
