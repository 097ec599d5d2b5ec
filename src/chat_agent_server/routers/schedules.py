"""Endpoints for inspecting and cancelling scheduled tasks."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from chat_agent_server.dependencies import get_scheduler
from chat_agent_server.models.schedules import (
    ScheduledTaskListResponse,
    ScheduledTaskResponse,
)
from chat_agent_server.scheduling import TaskScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/schedules", tags=["schedules"])


@router.get("", response_model=ScheduledTaskListResponse)
async def list_scheduled_tasks(
    scheduler: Annotated[TaskScheduler, Depends(get_scheduler)],
    session_id: str | None = None,
) -> ScheduledTaskListResponse:
    """List pending tasks, optionally filtered by session."""
    tasks = scheduler.list_tasks(session_id=session_id)
    return ScheduledTaskListResponse(
        tasks=[ScheduledTaskResponse.model_validate(t) for t in tasks]
    )


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_scheduled_task(
    task_id: str,
    scheduler: Annotated[TaskScheduler, Depends(get_scheduler)],
) -> None:
    """Cancel a pending task.

    Raises:
        HTTPException: 404 if no pending task has this id
    """
    if not scheduler.cancel(task_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": {
                    "code": "schedule_not_found",
                    "message": f"Scheduled task {task_id} not found",
                    "details": {"task_id": task_id},
                }
            },
        )
