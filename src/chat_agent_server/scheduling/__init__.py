"""Deferred task scheduling for chat sessions."""

from chat_agent_server.scheduling.scheduler import (
    SCHEDULE_TYPES,
    ScheduledTask,
    TaskScheduler,
)

__all__ = ["SCHEDULE_TYPES", "ScheduledTask", "TaskScheduler"]
