"""Update models for database operations."""

from pydantic import BaseModel, field_validator


# Constants for validation
MAX_DISPLAY_NAME_LENGTH = 50


class ProfileUpdate(BaseModel):
    """Editable profile fields. Aggregates and rank are engine-owned."""

    display_name: str

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        """Strip whitespace and bound the length."""
        name = v.strip()
        if not name:
            msg = "Display name cannot be empty"
            raise ValueError(msg)
        if len(name) > MAX_DISPLAY_NAME_LENGTH:
            msg = f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters"
            raise ValueError(msg)
        return name
