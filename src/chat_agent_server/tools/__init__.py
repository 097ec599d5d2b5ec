"""Tool registry, built-in tools, and confirmation-gated tool execution.

This package provides the registry that maps tool names to execution
policies, the built-in tools, and the processor that resolves tool calls a
human has approved or denied.
"""

from chat_agent_server.tools.builtin import scheduling_tools, static_tools
from chat_agent_server.tools.confirmation import (
    ToolProgressEvent,
    deny_pending,
    pending_confirmations,
    process_tool_calls,
)
from chat_agent_server.tools.registry import (
    ToolRegistry,
    ToolRegistryEntry,
    build_registry,
    execute_inline,
    to_ollama_tools,
)
from chat_agent_server.tools.results import (
    DENIAL_RESULT,
    EXECUTION_FAILED,
    USER_DENIED_TOOL_EXECUTION,
    execution_failed,
)

__all__ = [
    "DENIAL_RESULT",
    "EXECUTION_FAILED",
    "USER_DENIED_TOOL_EXECUTION",
    "ToolProgressEvent",
    "ToolRegistry",
    "ToolRegistryEntry",
    "build_registry",
    "deny_pending",
    "execute_inline",
    "execution_failed",
    "pending_confirmations",
    "process_tool_calls",
    "scheduling_tools",
    "static_tools",
    "to_ollama_tools",
]
