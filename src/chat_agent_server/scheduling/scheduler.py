"""In-process scheduler for deferred conversation tasks.

A scheduled task fires once, either after a delay or at a given date, and
hands itself to the on_due callback. The server's callback appends a
synthetic user message to the owning session.

Each pending task is an asyncio.Task tracked until it completes or is
cancelled. Nothing is persisted; pending tasks are lost on restart.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from chat_agent_server.sessions.session import generate_id, utc_now

logger = logging.getLogger(__name__)

SCHEDULE_TYPES = ("scheduled", "delayed")


@dataclass
class ScheduledTask:
    """A task waiting to fire."""

    task_id: str
    session_id: str
    description: str
    when_type: str
    fire_at: str
    created_at: str


OnDue = Callable[[ScheduledTask], Awaitable[None]]


def _parse_date(value: datetime | str) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class TaskScheduler:
    """Fires one-shot tasks on the running event loop."""

    def __init__(self, on_due: OnDue):
        """Initialize the scheduler.

        Args:
            on_due: Coroutine function awaited with each task when it fires
        """
        self._on_due = on_due
        self._pending: dict[str, tuple[ScheduledTask, asyncio.Task[None]]] = {}

    def schedule(
        self,
        session_id: str,
        description: str,
        when_type: str,
        delay_seconds: float | None = None,
        date: datetime | str | None = None,
    ) -> ScheduledTask:
        """Schedule a task for a session.

        Args:
            session_id: Session the task belongs to
            description: What to do when the task fires
            when_type: "delayed" (needs delay_seconds) or "scheduled" (needs date)
            delay_seconds: Seconds from now, for delayed tasks
            date: Datetime or ISO 8601 string, for scheduled tasks. Naive
                values are taken as UTC. Dates in the past fire immediately.

        Returns:
            The scheduled task

        Raises:
            ValueError: If the schedule type or its input is invalid
        """
        if not description.strip():
            raise ValueError("Task description must not be empty")

        now = datetime.now(timezone.utc)

        if when_type == "delayed":
            if delay_seconds is None or delay_seconds < 0:
                raise ValueError("Delayed tasks need a non-negative delay_seconds")
            fire_at = now + timedelta(seconds=delay_seconds)
        elif when_type == "scheduled":
            if date is None:
                raise ValueError("Scheduled tasks need a date")
            fire_at = _parse_date(date)
        else:
            raise ValueError(
                f"Unsupported schedule type '{when_type}', "
                f"expected one of: {', '.join(SCHEDULE_TYPES)}"
            )

        task = ScheduledTask(
            task_id=generate_id(),
            session_id=session_id,
            description=description,
            when_type=when_type,
            fire_at=_iso(fire_at),
            created_at=utc_now(),
        )

        delay = max(0.0, (fire_at - now).total_seconds())
        runner = asyncio.create_task(self._run(task, delay), name=f"scheduled-{task.task_id}")
        self._pending[task.task_id] = (task, runner)
        runner.add_done_callback(lambda _: self._pending.pop(task.task_id, None))

        logger.info(
            f"Scheduled task {task.task_id} for session {session_id} at {task.fire_at}"
        )
        return task

    async def _run(self, task: ScheduledTask, delay: float) -> None:
        await asyncio.sleep(delay)
        logger.info(f"Running scheduled task {task.task_id}: {task.description}")
        try:
            await self._on_due(task)
        except Exception as e:
            logger.error(f"Scheduled task {task.task_id} failed: {e}", exc_info=True)

    def list_tasks(self, session_id: str | None = None) -> list[ScheduledTask]:
        """Pending tasks, soonest first, optionally for one session."""
        tasks = [
            task
            for task, _ in self._pending.values()
            if session_id is None or task.session_id == session_id
        ]
        return sorted(tasks, key=lambda t: t.fire_at)

    def cancel(self, task_id: str) -> bool:
        """Cancel a pending task.

        Returns:
            True if the task was pending and is now cancelled
        """
        pending = self._pending.pop(task_id, None)
        if pending is None:
            return False

        _, runner = pending
        runner.cancel()
        logger.info(f"Cancelled scheduled task {task_id}")
        return True

    async def shutdown(self) -> None:
        """Cancel every pending task and wait for them to finish."""
        runners = [runner for _, runner in self._pending.values()]
        self._pending.clear()
        for runner in runners:
            runner.cancel()
        if runners:
            await asyncio.gather(*runners, return_exceptions=True)
        logger.debug(f"Scheduler shut down, cancelled {len(runners)} tasks")
