"""Filter and rank a user's tasks against their current state.

Ranking favours tasks the user keeps skipping (so they resurface until dealt
with) and, among equals, tasks that have been shown the least.
"""

from collections.abc import Iterable

from whatnow.domain.task import Level, Task


LEVEL_ORDER: dict[str, int] = {
    Level.LOW: 1,
    Level.MEDIUM: 2,
    Level.HIGH: 3,
}


def level_rank(level: str | None) -> int:
    """Numeric order of an energy/social level; unknown values rank as 0."""
    if level is None:
        return 0
    return LEVEL_ORDER.get(level, 0)


def matches_state(
    task: Task,
    *,
    max_time: int | None = None,
    max_energy: str | None = None,
    max_social: str | None = None,
) -> bool:
    """Check every supplied bound; absent bounds always hold."""
    if max_time is not None and task.time > max_time:
        return False
    if max_energy is not None and level_rank(task.energy) > level_rank(max_energy):
        return False
    return max_social is None or level_rank(task.social) <= level_rank(max_social)


def select_candidates(
    tasks: Iterable[Task],
    *,
    max_time: int | None = None,
    max_energy: str | None = None,
    max_social: str | None = None,
) -> list[Task]:
    """Return the tasks fitting the state, most-skipped first then least-shown first.

    Pure and deterministic: the input is not mutated, and ties keep their
    input order.
    """
    candidates = [
        task
        for task in tasks
        if matches_state(task, max_time=max_time, max_energy=max_energy, max_social=max_social)
    ]
    return sorted(candidates, key=lambda task: (-task.times_skipped, task.times_shown))
