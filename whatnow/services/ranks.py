"""Rank tiers for cumulative points."""

from typing import NamedTuple

from whatnow.models.service_models import RankInfo


class Rank(NamedTuple):
    name: str
    threshold: int


# Ordered by threshold ascending; the first tier starts at 0
RANKS: tuple[Rank, ...] = (
    Rank("Task Newbie", 0),
    Rank("Task Apprentice", 100),
    Rank("Task Warrior", 500),
    Rank("Task Hero", 1000),
    Rank("Task Master", 2500),
    Rank("Task Legend", 5000),
)

MAX_PROGRESS = 100.0


def _rank_index(total_points: int) -> int:
    for index in range(len(RANKS) - 1, -1, -1):
        if total_points >= RANKS[index].threshold:
            return index
    return 0


def get_rank_info(total_points: int) -> RankInfo:
    """Resolve the current tier, the tier above it and the progress towards it.

    Progress is a percentage in [0, 100], fixed at 100 for the top tier.
    Negative totals resolve to the first tier.
    """
    index = _rank_index(total_points)
    current = RANKS[index]

    if index + 1 >= len(RANKS):
        return RankInfo(current_rank=current.name, next_rank=None, progress=MAX_PROGRESS)

    upcoming = RANKS[index + 1]
    progress = (total_points - current.threshold) / (upcoming.threshold - current.threshold) * 100
    return RankInfo(
        current_rank=current.name,
        next_rank=upcoming.name,
        progress=min(progress, MAX_PROGRESS),
    )


def get_rank_for_points(total_points: int) -> str:
    """Return only the rank label for a points total."""
    return RANKS[_rank_index(total_points)].name
