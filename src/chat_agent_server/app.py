"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat_agent_server.config import ChatAgentServerSettings
from chat_agent_server.mcp import MCPConnectionManager
from chat_agent_server.ollama import OllamaClient
from chat_agent_server.routers import (
    chat,
    health,
    mcp_servers,
    schedules,
    sessions,
    shop_context,
)
from chat_agent_server.scheduling import ScheduledTask, TaskScheduler
from chat_agent_server.sessions import ChatSession
from chat_agent_server.sessions.session import text_message
from chat_agent_server.tools import build_registry, deny_pending, static_tools

logger = logging.getLogger(__name__)


def make_scheduled_task_runner(app: FastAPI):
    """Build the callback that runs due scheduled tasks.

    A due task appends "Running scheduled task: <description>" as a user
    message to its session. Tool calls still waiting on a human are denied
    first, since they cannot be decided once the message is appended.
    """

    async def run_scheduled_task(task: ScheduledTask) -> None:
        settings: ChatAgentServerSettings = app.state.settings
        sessions_dir = settings.resolved_sessions_dir
        lock = app.state.session_locks.setdefault(task.session_id, asyncio.Lock())

        async with lock:
            try:
                session = ChatSession.load(task.session_id, sessions_dir)
            except FileNotFoundError:
                logger.warning(
                    f"Dropping scheduled task {task.task_id}: session {task.session_id} no longer exists"
                )
                app.state.session_locks.pop(task.session_id, None)
                return

            registry = build_registry(static_tools(), app.state.mcp_manager.get_tools())
            processed = await deny_pending(session.messages, registry)
            if processed is not session.messages:
                session.replace_messages(processed)

            session.add_message(
                text_message("user", f"Running scheduled task: {task.description}")
            )
            session.save(sessions_dir)
            logger.info(f"Appended scheduled task {task.task_id} to session {task.session_id}")

    return run_scheduled_task


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    Expensive objects (the Ollama client, MCP connections, and the task
    scheduler) are created once at startup and stored in app.state for reuse
    across all requests.
    """
    settings: ChatAgentServerSettings = app.state.settings
    app.state.ollama_client = OllamaClient(host=settings.ollama_host)
    logger.info(f"Initialized Ollama client with host: {settings.ollama_host}")

    connected = await app.state.ollama_client.check_connection()
    if connected:
        logger.info("Successfully connected to Ollama")
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    app.state.mcp_manager = MCPConnectionManager(timeout=settings.mcp_connect_timeout)
    if settings.mcp_discovery_enabled:
        await app.state.mcp_manager.connect_all()
    else:
        logger.info("MCP discovery disabled")

    app.state.scheduler = TaskScheduler(on_due=make_scheduled_task_runner(app))

    yield

    # Shutdown: Clean up resources
    if hasattr(app.state, "scheduler"):
        await app.state.scheduler.shutdown()

    if hasattr(app.state, "mcp_manager"):
        await app.state.mcp_manager.close()
        logger.info("MCP connections closed")

    if hasattr(app.state, "ollama_client"):
        await app.state.ollama_client.close()
        logger.info("Ollama client closed")


def create_app(settings: ChatAgentServerSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, settings will
                  be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from chat_agent_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="chat-agent-server",
        description="Chat agent server with MCP tools and human-confirmed tool calls",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_locks = {}
    app.state.shop_context = None

    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(chat.router)
    app.include_router(mcp_servers.router)
    app.include_router(schedules.router)
    app.include_router(shop_context.router)

    return app
