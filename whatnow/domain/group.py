"""Group domain models."""

from pydantic import BaseModel, Field


class Group(BaseModel):
    """A set of users comparing weekly progress."""

    id: str = Field(..., description="Group ID from PocketBase")
    name: str = Field(..., description="Group name")
    description: str | None = Field(default=None, description="Optional description")
    invite_code: str = Field(..., description="Uppercase code shared to let others join")
    created_by: str | None = Field(default=None, description="User ID of the creator")
    created: str = Field(default="", description="Creation timestamp (ISO format)")


class GroupMember(BaseModel):
    """Membership of one user in one group."""

    id: str = Field(..., description="Membership record ID")
    group_id: str = Field(..., description="Group ID")
    user_id: str = Field(..., description="Member user ID")
    joined_at: str = Field(..., description="Join timestamp (ISO format)")
