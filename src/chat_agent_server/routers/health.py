"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from chat_agent_server.models.health import HealthResponse
from chat_agent_server.ollama import OllamaClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current health status and version, the Ollama connectivity
    if the client is initialized, and the connected MCP servers.
    """
    ollama_connected = None
    ollama_host = None

    if hasattr(request.app.state, "ollama_client"):
        ollama_client: OllamaClient = request.app.state.ollama_client
        ollama_host = ollama_client.host

        try:
            ollama_connected = await ollama_client.check_connection()
            logger.debug(f"Ollama connectivity check: {ollama_connected}")
        except Exception as e:
            logger.warning(f"Ollama connectivity check failed: {e}")
            ollama_connected = False

    mcp_servers_connected: list[str] = []
    if hasattr(request.app.state, "mcp_manager"):
        mcp_servers_connected = [
            server.id for server in request.app.state.mcp_manager.connected_servers
        ]

    return HealthResponse(
        status="ok",
        version="0.1.0",
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
        mcp_servers_connected=mcp_servers_connected,
    )
