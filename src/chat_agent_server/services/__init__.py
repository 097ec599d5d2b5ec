"""Business logic services for chat-agent-server.

This package contains the system prompt assembly and the chat loop that
drives the model and inline tool execution.
"""

from chat_agent_server.services.prompts import build_system_prompt

__all__ = [
    "build_system_prompt",
]
