"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries into typed objects with validation.
"""

from pydantic import BaseModel, Field, computed_field

from whatnow.domain.completion import CompletedTask
from whatnow.domain.profile import Profile
from whatnow.domain.task import Task


class RankInfo(BaseModel):
    """Rank standing for a points total."""

    current_rank: str
    next_rank: str | None
    progress: float


class ProfileSummary(BaseModel):
    """Profile plus its rank standing, as shown on the profile screen."""

    profile: Profile
    rank: RankInfo


class ScoredTask(BaseModel):
    """A task together with the points it is worth right now."""

    task: Task
    points: int


class SettlementResult(BaseModel):
    """Outcome of the best-effort completion bookkeeping chain."""

    points: int
    time_spent: float | None = None
    completion: CompletedTask | None = None
    task: Task | None = None
    profile: Profile | None = None
    errors: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        """True when every step of the chain was applied."""
        return not self.errors


class CalendarView(BaseModel):
    """Tasks with a due date, split around today."""

    overdue: list[Task]
    upcoming: list[Task]


class ImportResult(BaseModel):
    """Result of a bulk import."""

    imported: int
    tasks: list[Task]


class LeaderboardEntry(BaseModel):
    """One member's standing in a group's weekly leaderboard."""

    user_id: str
    display_name: str | None
    current_rank: str
    weekly_points: int
    weekly_tasks: int
    group_id: str


class SwipeSessionView(BaseModel):
    """Snapshot of a swipe session as returned to the client."""

    id: str
    state: str
    position: int = Field(description="Zero-based index of the current card")
    total: int = Field(description="Number of cards in the queue")
    current: ScoredTask | None = None
    accepted: ScoredTask | None = None
    suggestions: list[str] = Field(default_factory=list, description="Generic ideas once the queue is exhausted")
