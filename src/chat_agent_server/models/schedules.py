"""Pydantic models for the schedule endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class ScheduledTaskResponse(BaseModel):
    """A pending scheduled task."""

    task_id: str
    session_id: str
    description: str
    when_type: str
    fire_at: str = Field(description="ISO 8601 time the task fires")
    created_at: str

    model_config = ConfigDict(from_attributes=True)


class ScheduledTaskListResponse(BaseModel):
    """Pending scheduled tasks, soonest first."""

    tasks: list[ScheduledTaskResponse] = Field(default_factory=list)
