"""Pydantic models for the MCP server endpoints."""

from pydantic import BaseModel, Field


class MCPServerResponse(BaseModel):
    """An enabled MCP server and its connection state."""

    id: str
    name: str
    url: str
    instructions: str
    connected: bool = Field(description="Whether a session to the server is open")
    tools: list[str] = Field(
        default_factory=list, description="Names of tools discovered on the server"
    )


class MCPServerListResponse(BaseModel):
    """Enabled MCP servers and the prompt instructions built from them."""

    servers: list[MCPServerResponse] = Field(default_factory=list)
    instructions: str = Field("", description="MCP section of the system prompt")
