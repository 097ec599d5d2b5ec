"""Tool registry: execution policy and handlers keyed by tool name.

The registry is a plain mapping from tool name to ToolRegistryEntry. Entries
come from several sources (built-in tools, tools discovered on MCP servers,
session-bound tools) and are merged with build_registry().
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from chat_agent_server.tools.results import execution_failed

logger = logging.getLogger(__name__)

# Handlers and executors are called with the invocation arguments as keyword
# arguments. They may be plain functions or coroutine functions.
ToolCallable = Callable[..., Any]


def _empty_parameters() -> dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


@dataclass(frozen=True)
class ToolRegistryEntry:
    """Execution policy and callables for a single tool.

    Attributes:
        name: Tool name as the model sees it
        description: Human/model readable description
        parameters: JSON schema of the tool arguments
        handler: Callable run inline for tools that need no confirmation
        requires_confirmation: Whether a human must approve each call
        executor: Side-effect callable run after approval (gated tools only)
        source: Where the entry came from ("builtin", "session", "mcp:<id>")
    """

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=_empty_parameters)
    handler: ToolCallable | None = None
    requires_confirmation: bool = False
    executor: ToolCallable | None = None
    source: str = "builtin"


ToolRegistry = Mapping[str, ToolRegistryEntry]


def build_registry(*sources: Iterable[ToolRegistryEntry]) -> dict[str, ToolRegistryEntry]:
    """Merge registry entries from several sources.

    Later sources win when two entries share a name.
    """
    registry: dict[str, ToolRegistryEntry] = {}
    for source in sources:
        for entry in source:
            if entry.name in registry:
                logger.debug(
                    f"Tool '{entry.name}' from {entry.source} overrides "
                    f"{registry[entry.name].source}"
                )
            registry[entry.name] = entry
    return registry


def to_ollama_tools(registry: ToolRegistry) -> list[dict[str, Any]]:
    """Render registry entries as Ollama function-calling schemas."""
    return [
        {
            "type": "function",
            "function": {
                "name": entry.name,
                "description": entry.description,
                "parameters": entry.parameters,
            },
        }
        for entry in registry.values()
    ]


async def call_tool(func: ToolCallable, args: dict[str, Any]) -> Any:
    """Call a handler or executor, awaiting it if it is asynchronous."""
    result = func(**args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def execute_inline(entry: ToolRegistryEntry, args: dict[str, Any]) -> Any:
    """Run a tool that needs no confirmation.

    Failures are returned as execution-failed results instead of raised.
    """
    if entry.handler is None:
        return execution_failed(f"Tool '{entry.name}' has no handler")

    try:
        return await call_tool(entry.handler, args)
    except Exception as e:
        logger.warning(f"Tool '{entry.name}' failed: {e}")
        return execution_failed(str(e))
