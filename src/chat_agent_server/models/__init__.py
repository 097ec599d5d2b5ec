"""Pydantic models for API request and response schemas.

This package contains all Pydantic models used for validating and
serializing API requests and responses across all endpoints.
"""

from chat_agent_server.models.chat import (
    ChatRequest,
    ChatResponse,
    MessageResponse,
    ToolCallResponse,
    ToolDecisionRequest,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "MessageResponse",
    "ToolCallResponse",
    "ToolDecisionRequest",
]
