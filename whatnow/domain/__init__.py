"""Domain models and DTOs."""

from whatnow.domain.completion import CompletedTask
from whatnow.domain.create_models import GroupCreate, ImportFormat, StateQuery, TaskCreate, TaskImport, TaskUpdate
from whatnow.domain.group import Group, GroupMember
from whatnow.domain.profile import Profile
from whatnow.domain.task import Level, Recurrence, Task
from whatnow.domain.update_models import ProfileUpdate


__all__ = [
    "CompletedTask",
    "Group",
    "GroupCreate",
    "GroupMember",
    "ImportFormat",
    "Level",
    "Profile",
    "ProfileUpdate",
    "Recurrence",
    "StateQuery",
    "Task",
    "TaskCreate",
    "TaskImport",
    "TaskUpdate",
]
