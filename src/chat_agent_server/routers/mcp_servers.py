"""MCP server listing endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from chat_agent_server.dependencies import get_mcp_manager
from chat_agent_server.mcp import (
    MCPConnectionManager,
    get_enabled_mcp_servers,
    get_mcp_instructions,
)
from chat_agent_server.models.mcp import MCPServerListResponse, MCPServerResponse

router = APIRouter(prefix="/api/v1/mcp", tags=["mcp"])


@router.get("/servers", response_model=MCPServerListResponse)
async def list_mcp_servers(
    mcp_manager: Annotated[MCPConnectionManager, Depends(get_mcp_manager)],
) -> MCPServerListResponse:
    """List enabled MCP servers, their connection state, and their tools."""
    tools_by_source: dict[str, list[str]] = {}
    for entry in mcp_manager.get_tools():
        tools_by_source.setdefault(entry.source, []).append(entry.name)

    servers = [
        MCPServerResponse(
            id=server.id,
            name=server.name,
            url=server.url,
            instructions=server.instructions,
            connected=mcp_manager.is_connected(server.id),
            tools=tools_by_source.get(f"mcp:{server.id}", []),
        )
        for server in get_enabled_mcp_servers()
    ]
    return MCPServerListResponse(servers=servers, instructions=get_mcp_instructions())
