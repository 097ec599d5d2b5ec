"""Remote MCP server registry and tool discovery.

This package lists the MCP servers the agent may use, formats their usage
instructions for the system prompt, and connects to them to discover tools.
"""

from chat_agent_server.mcp.client import MCPConnectionManager, MCPToolError
from chat_agent_server.mcp.servers import (
    MCP_SERVERS,
    MCPServer,
    get_enabled_mcp_servers,
    get_mcp_instructions,
)

__all__ = [
    "MCP_SERVERS",
    "MCPConnectionManager",
    "MCPServer",
    "MCPToolError",
    "get_enabled_mcp_servers",
    "get_mcp_instructions",
]
