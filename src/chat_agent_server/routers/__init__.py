"""FastAPI routers for API endpoints.

This package contains all route handlers organized by resource type.
Each router module defines endpoints for a specific domain (health, sessions, chat, etc.).
"""

from chat_agent_server.routers import (
    chat,
    health,
    mcp_servers,
    schedules,
    sessions,
    shop_context,
)

__all__ = [
    "chat",
    "health",
    "mcp_servers",
    "schedules",
    "sessions",
    "shop_context",
]
