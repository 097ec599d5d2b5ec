"""Built-in tools available to every chat session.

Static tools are created once; scheduling tools are bound to a session and a
scheduler for the duration of a request.
"""

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from chat_agent_server.scheduling import SCHEDULE_TYPES, TaskScheduler
from chat_agent_server.tools.registry import ToolRegistryEntry

logger = logging.getLogger(__name__)


def get_local_time(location: str) -> str:
    """Get the local time for a location."""
    logger.debug(f"Getting local time for {location}")
    now = datetime.now(timezone.utc).strftime("%H:%M UTC")
    return f"The current time in {location} is {now}"


async def get_weather_information(city: str) -> str:
    """Look up the weather for a city."""
    logger.debug(f"Getting weather information for {city}")
    return f"The weather in {city} is sunny"


def static_tools() -> list[ToolRegistryEntry]:
    """Tools that do not depend on the session."""
    return [
        ToolRegistryEntry(
            name="get_local_time",
            description="Get the local time for a specified location",
            parameters={
                "type": "object",
                "properties": {
                    "location": {"type": "string", "description": "City or region"}
                },
                "required": ["location"],
            },
            handler=get_local_time,
        ),
        ToolRegistryEntry(
            name="get_weather_information",
            description="Show the weather in a given city to the user",
            parameters={
                "type": "object",
                "properties": {
                    "city": {"type": "string", "description": "City name"}
                },
                "required": ["city"],
            },
            requires_confirmation=True,
            executor=get_weather_information,
        ),
    ]


def scheduling_tools(scheduler: TaskScheduler, session_id: str) -> list[ToolRegistryEntry]:
    """Tools for scheduling, listing, and cancelling tasks of one session."""

    def schedule_task(
        description: str,
        when_type: str,
        delay_in_seconds: float | None = None,
        date: str | None = None,
    ) -> dict[str, Any] | str:
        try:
            task = scheduler.schedule(
                session_id=session_id,
                description=description,
                when_type=when_type,
                delay_seconds=delay_in_seconds,
                date=date,
            )
        except ValueError as e:
            return f"Error scheduling task: {e}"
        return asdict(task)

    def list_scheduled_tasks() -> list[dict[str, Any]] | str:
        tasks = scheduler.list_tasks(session_id=session_id)
        if not tasks:
            return "No scheduled tasks found."
        return [asdict(t) for t in tasks]

    def cancel_scheduled_task(task_id: str) -> str:
        if scheduler.cancel(task_id):
            return f"Task {task_id} has been successfully canceled."
        return f"No scheduled task with id {task_id}"

    return [
        ToolRegistryEntry(
            name="schedule_task",
            description="Schedule a task to be executed at a later time",
            parameters={
                "type": "object",
                "properties": {
                    "description": {"type": "string"},
                    "when_type": {"type": "string", "enum": list(SCHEDULE_TYPES)},
                    "delay_in_seconds": {"type": "number"},
                    "date": {"type": "string", "description": "ISO 8601 date"},
                },
                "required": ["description", "when_type"],
            },
            handler=schedule_task,
            source="session",
        ),
        ToolRegistryEntry(
            name="list_scheduled_tasks",
            description="List all tasks that have been scheduled",
            handler=list_scheduled_tasks,
            source="session",
        ),
        ToolRegistryEntry(
            name="cancel_scheduled_task",
            description="Cancel a scheduled task using its ID",
            parameters={
                "type": "object",
                "properties": {"task_id": {"type": "string"}},
                "required": ["task_id"],
            },
            handler=cancel_scheduled_task,
            source="session",
        ),
    ]
