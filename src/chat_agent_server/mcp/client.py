"""Connections to remote MCP servers and discovery of their tools.

The MCPConnectionManager is created once at startup. It opens an SSE client
session per enabled server, lists the tools each server offers, and exposes
them as tool registry entries whose handler forwards the call to the server.
Connections stay open until close() is called at shutdown.
"""

import logging
from contextlib import AsyncExitStack
from typing import Any

from mcp import ClientSession
from mcp.client.sse import sse_client

from chat_agent_server.mcp.servers import MCPServer, get_enabled_mcp_servers
from chat_agent_server.tools.registry import ToolRegistryEntry

logger = logging.getLogger(__name__)


class MCPToolError(RuntimeError):
    """Raised when an MCP server reports a tool call as failed."""


def _result_text(result: Any) -> str:
    texts = [
        item.text
        for item in getattr(result, "content", []) or []
        if getattr(item, "text", None) is not None
    ]
    return "\n".join(texts)


class MCPConnectionManager:
    """Owns the client sessions to all connected MCP servers.

    Attributes:
        timeout: Connection timeout in seconds for each server
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self._stacks: dict[str, AsyncExitStack] = {}
        self._sessions: dict[str, ClientSession] = {}
        self._tools: dict[str, list[ToolRegistryEntry]] = {}
        self._servers: dict[str, MCPServer] = {}

    @property
    def connected_servers(self) -> list[MCPServer]:
        return [self._servers[server_id] for server_id in self._sessions]

    def is_connected(self, server_id: str) -> bool:
        return server_id in self._sessions

    async def connect(self, server: MCPServer) -> list[ToolRegistryEntry]:
        """Open a session to one server and discover its tools.

        Raises:
            Exception: If the connection, handshake, or tool listing fails
        """
        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(
                sse_client(server.url, timeout=self.timeout)
            )
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
            listed = await session.list_tools()
        except BaseException:
            await stack.aclose()
            raise

        entries = [
            ToolRegistryEntry(
                name=tool.name,
                description=tool.description or f"Tool provided by MCP: {tool.name}",
                parameters=tool.inputSchema or {"type": "object", "properties": {}},
                handler=self._make_handler(session, tool.name),
                source=f"mcp:{server.id}",
            )
            for tool in listed.tools
        ]

        self._stacks[server.id] = stack
        self._sessions[server.id] = session
        self._servers[server.id] = server
        self._tools[server.id] = entries

        logger.info(f"Connected to MCP server: {server.name} ({len(entries)} tools)")
        return entries

    async def connect_all(self, servers: list[MCPServer] | None = None) -> None:
        """Connect to every enabled server, skipping those that fail."""
        for server in get_enabled_mcp_servers(servers):
            try:
                await self.connect(server)
            except Exception as e:
                logger.error(f"Failed to connect to MCP server {server.name}: {e}")

    def get_tools(self) -> list[ToolRegistryEntry]:
        """Registry entries for all tools of all connected servers."""
        return [entry for entries in self._tools.values() for entry in entries]

    @staticmethod
    def _make_handler(session: ClientSession, tool_name: str):
        async def call(**kwargs: Any) -> str:
            result = await session.call_tool(tool_name, kwargs)
            text = _result_text(result)
            if getattr(result, "isError", False):
                raise MCPToolError(text or f"MCP tool '{tool_name}' failed")
            return text

        return call

    async def close(self) -> None:
        """Close every open connection."""
        for server_id, stack in list(self._stacks.items()):
            try:
                await stack.aclose()
                logger.debug(f"Closed MCP connection {server_id}")
            except Exception as e:
                logger.error(f"Error closing MCP connection {server_id}: {e}")

        self._stacks.clear()
        self._sessions.clear()
        self._tools.clear()
        self._servers.clear()
