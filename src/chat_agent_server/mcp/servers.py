"""Registry of remote MCP servers the agent may draw tools from."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MCPServer:
    """A remote MCP server reachable over SSE."""

    id: str
    name: str
    url: str
    instructions: str
    enabled: bool = True


MCP_SERVERS: list[MCPServer] = [
    MCPServer(
        id="calculator",
        name="Custom Calculator",
        url="https://remote-mcp-server.rafayexalter.workers.dev/sse",
        instructions=(
            "Use this for mathematical calculations like addition, "
            "subtraction, multiplication, division"
        ),
        enabled=True,
    ),
]


def get_enabled_mcp_servers(servers: list[MCPServer] | None = None) -> list[MCPServer]:
    """Servers that are switched on, in registry order."""
    if servers is None:
        servers = MCP_SERVERS
    return [server for server in servers if server.enabled]


def get_mcp_instructions(servers: list[MCPServer] | None = None) -> str:
    """Usage instructions for the enabled servers, for the system prompt.

    Returns an empty string when no server is enabled.
    """
    enabled = get_enabled_mcp_servers(servers)
    if not enabled:
        return ""

    blocks = "\n".join(
        f"\n{server.name}:\n{server.instructions}\n" for server in enabled
    )
    return f"Available MCP Services:\n{blocks}"
