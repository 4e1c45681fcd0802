"""Completion record domain model."""

from pydantic import BaseModel, Field


class CompletedTask(BaseModel):
    """Immutable log entry of one finished task instance.

    Name, type and effort attributes are snapshots taken at settlement so the
    record survives later edits or deletion of the task.
    """

    id: str = Field(..., description="Record ID from PocketBase")
    user_id: str = Field(..., description="User who completed the task")
    task_name: str = Field(..., description="Task name at completion time")
    task_type: str = Field(default="", description="Task type at completion time")
    points: int = Field(..., description="Points awarded, as carried into settlement")
    time_spent: float | None = Field(default=None, description="Measured minutes, None when unmeasured")
    task_time: int | None = Field(default=None, description="Nominal minutes at completion time")
    task_social: str | None = Field(default=None, description="Social cost at completion time")
    task_energy: str | None = Field(default=None, description="Energy cost at completion time")
    completed_at: str = Field(..., description="Completion timestamp (ISO format)")
