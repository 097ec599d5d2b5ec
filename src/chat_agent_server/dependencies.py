"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject common dependencies like settings and services.
"""

import asyncio
from functools import lru_cache

from fastapi import HTTPException, Request

from chat_agent_server.config import ChatAgentServerSettings
from chat_agent_server.mcp import MCPConnectionManager
from chat_agent_server.ollama import OllamaClient
from chat_agent_server.scheduling import TaskScheduler
from chat_agent_server.sessions import SessionManager


@lru_cache
def get_settings() -> ChatAgentServerSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the CHAT_AGENT_ prefix.
    """
    return ChatAgentServerSettings()


def _from_state(request: Request, name: str, label: str):
    if not hasattr(request.app.state, name):
        raise HTTPException(status_code=503, detail=f"{label} not initialized")
    return getattr(request.app.state, name)


def get_ollama_client(request: Request) -> OllamaClient:
    """Get the Ollama client created at startup.

    Raises:
        HTTPException: If the Ollama client is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "ollama_client", "Ollama client")


def get_mcp_manager(request: Request) -> MCPConnectionManager:
    """Get the MCP connection manager created at startup.

    Raises:
        HTTPException: If the manager is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "mcp_manager", "MCP connection manager")


def get_scheduler(request: Request) -> TaskScheduler:
    """Get the task scheduler created at startup.

    Raises:
        HTTPException: If the scheduler is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "scheduler", "Task scheduler")


def get_session_manager(request: Request) -> SessionManager:
    """Get a SessionManager for the configured sessions directory.

    Settings are read from app.state rather than the cached get_settings()
    so that tests can use their own isolated settings.
    """
    settings = request.app.state.settings
    return SessionManager(sessions_dir=settings.resolved_sessions_dir)


def get_session_lock(request: Request, session_id: str) -> asyncio.Lock:
    """Get the lock that serializes chat requests on one session."""
    locks: dict[str, asyncio.Lock] = request.app.state.session_locks
    return locks.setdefault(session_id, asyncio.Lock())


def drop_session_lock(request: Request, session_id: str) -> None:
    """Forget the lock of a session that no longer exists."""
    request.app.state.session_locks.pop(session_id, None)
