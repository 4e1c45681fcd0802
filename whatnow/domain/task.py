"""Task domain models and enums."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class Level(StrEnum):
    """Energy or social cost of a task, and the matching user capacity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recurrence(StrEnum):
    """How often a task comes back."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from PocketBase")
    user_id: str = Field(..., description="Owner user ID")
    name: str = Field(..., description="Task name")
    description: str | None = Field(default=None, description="Optional details")
    type: str = Field(default="", description="Free-form type label (e.g. 'Chores')")
    time: int = Field(default=15, description="Estimated minutes, nominally 5/15/30/60")
    # Stored values outside the enum are kept as-is and score as the default
    energy: Level | str = Field(default=Level.LOW, description="Energy cost")
    social: Level | str = Field(default=Level.LOW, description="Social cost")
    due_date: date | None = Field(default=None, description="Optional due date")
    recurring: Recurrence | None = Field(default=None, description="Recurrence, None when one-off")
    times_shown: int = Field(default=0, description="Times presented in a swipe session")
    times_skipped: int = Field(default=0, description="Times skipped in a swipe session")
    times_completed: int = Field(default=0, description="Times settled as completed")
    points_earned: int = Field(default=0, description="Points awarded across all completions")
    created: str = Field(default="", description="Creation timestamp (ISO format)")
    updated: str = Field(default="", description="Last update timestamp (ISO format)")

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: object) -> object:
        """Accept PocketBase date strings ('2026-10-18 00:00:00.000Z') and blanks."""
        if v in ("", None):
            return None
        if isinstance(v, str):
            return v[:10]
        return v

    @field_validator("recurring", mode="before")
    @classmethod
    def parse_recurring(cls, v: object) -> object:
        """Treat blank and 'none' as a one-off task."""
        if v in ("", None, "none"):
            return None
        return v

    @field_validator("time", "times_shown", "times_skipped", "times_completed", "points_earned", mode="before")
    @classmethod
    def coerce_number(cls, v: object) -> object:
        """PocketBase number fields come back as floats."""
        if v in ("", None):
            return 0
        if isinstance(v, float):
            return int(v)
        return v
