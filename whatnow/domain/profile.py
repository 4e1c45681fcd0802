"""Profile domain model."""

from pydantic import BaseModel, Field, field_validator


class Profile(BaseModel):
    """Per-user aggregate of completed work."""

    id: str = Field(..., description="Profile record ID from PocketBase")
    user_id: str = Field(..., description="Owning user ID")
    display_name: str | None = Field(default=None, description="Name shown on leaderboards")
    total_points: int = Field(default=0, description="Sum of points across all completions")
    total_tasks_completed: int = Field(default=0, description="Number of settled completions")
    total_time_spent: float = Field(default=0, description="Minutes spent across all completions")
    current_rank: str = Field(default="", description="Cached rank label for total_points")

    @field_validator("total_points", "total_tasks_completed", mode="before")
    @classmethod
    def coerce_int(cls, v: object) -> object:
        """PocketBase number fields come back as floats."""
        if v in ("", None):
            return 0
        if isinstance(v, float):
            return int(v)
        return v

    @field_validator("total_time_spent", mode="before")
    @classmethod
    def coerce_minutes(cls, v: object) -> object:
        """Blank aggregates start at zero."""
        return 0 if v in ("", None) else v
