"""Pydantic models for creating records and querying the engine."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from whatnow.core.config import Constants
from whatnow.domain.task import Level, Recurrence


def _require_name(v: str) -> str:
    name = v.strip()
    if not name:
        msg = "Task name cannot be empty"
        raise ValueError(msg)
    return name


def _blank_recurrence(v: object) -> object:
    return None if v in ("", "none") else v


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    name: str = Field(..., description="Task name")
    description: str | None = Field(default=None, description="Optional details")
    type: str = Field(default="", description="Free-form type label")
    time: int = Field(default=Constants.DEFAULT_IMPORT_TIME, gt=0, description="Estimated minutes")
    energy: Level = Field(..., description="Energy cost")
    social: Level = Field(..., description="Social cost")
    due_date: date | None = Field(default=None, description="Optional due date")
    recurring: Recurrence | None = Field(default=None, description="Recurrence, None when one-off")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Strip whitespace and reject empty names."""
        return _require_name(v)

    @field_validator("description")
    @classmethod
    def blank_description(cls, v: str | None) -> str | None:
        """Store blank descriptions as missing."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("recurring", mode="before")
    @classmethod
    def parse_recurring(cls, v: object) -> object:
        """Accept 'none' from the recurrence picker."""
        return _blank_recurrence(v)


class TaskUpdate(BaseModel):
    """Partial edit of a task's user-owned attributes.

    Counters are deliberately absent: only the engine mutates them.
    """

    name: str | None = None
    description: str | None = None
    type: str | None = None
    time: int | None = Field(default=None, gt=0)
    energy: Level | None = None
    social: Level | None = None
    due_date: date | None = None
    recurring: Recurrence | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Reject renaming a task to an empty name."""
        return None if v is None else _require_name(v)

    @field_validator("recurring", mode="before")
    @classmethod
    def parse_recurring(cls, v: object) -> object:
        """Accept 'none' from the recurrence picker."""
        return _blank_recurrence(v)


class StateQuery(BaseModel):
    """The user's momentary capacity, submitted to start a swipe session."""

    max_time: int | None = Field(default=None, gt=0, description="Minutes available")
    max_energy: Level | None = Field(default=None, description="Current energy")
    max_social: Level | None = Field(default=None, description="Current social battery")

    @model_validator(mode="after")
    def require_one_selection(self) -> "StateQuery":
        """At least one of time, energy or social must be selected."""
        if self.max_time is None and self.max_energy is None and self.max_social is None:
            msg = "Select at least one of time, energy or social"
            raise ValueError(msg)
        return self


class GroupCreate(BaseModel):
    """Pydantic model for creating a group."""

    name: str = Field(..., max_length=Constants.MAX_GROUP_NAME_LENGTH, description="Group name")
    description: str | None = Field(default=None, description="Optional description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Strip whitespace and reject empty names."""
        name = v.strip()
        if not name:
            msg = "Group name cannot be empty"
            raise ValueError(msg)
        return name

    @field_validator("description")
    @classmethod
    def blank_description(cls, v: str | None) -> str | None:
        """Store blank descriptions as missing."""
        if v is None or not v.strip():
            return None
        return v.strip()


class ImportFormat(StrEnum):
    TEXT = "text"
    CSV = "csv"


class TaskImport(BaseModel):
    """Bulk import payload.

    `text` holds one task per line. In CSV mode each line is
    `name,type,time,energy,social`; cells that are missing or invalid fall
    back to the defaults given here.
    """

    text: str = Field(..., description="Raw pasted text")
    format: ImportFormat = Field(default=ImportFormat.TEXT, description="How to read each line")
    type: str = Field(default=Constants.DEFAULT_TASK_TYPE, description="Default task type")
    time: int = Field(default=Constants.DEFAULT_IMPORT_TIME, gt=0, description="Default minutes")
    energy: Level = Field(default=Level.LOW, description="Default energy cost")
    social: Level = Field(default=Level.LOW, description="Default social cost")
