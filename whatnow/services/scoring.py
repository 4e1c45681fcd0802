"""Point values for tasks.

Social and energy climb a near-doubling ladder (5/10/20) while time grows
sub-linearly (5/10/15/25), so effort outweighs raw duration. Values outside
the tables fall back to defaults instead of failing: a stored `time` of 45
scores like an unknown bucket.
"""

TIME_POINTS: dict[int, int] = {
    5: 5,
    15: 10,
    30: 15,
    60: 25,
}
DEFAULT_TIME_POINTS = 10

LEVEL_POINTS: dict[str, int] = {
    "low": 5,
    "medium": 10,
    "high": 20,
}
DEFAULT_LEVEL_POINTS = 5


def calculate_points(time: int, social: str, energy: str) -> int:
    """Return the points a task is worth for its time, social and energy attributes."""
    return (
        TIME_POINTS.get(time, DEFAULT_TIME_POINTS)
        + LEVEL_POINTS.get(social, DEFAULT_LEVEL_POINTS)
        + LEVEL_POINTS.get(energy, DEFAULT_LEVEL_POINTS)
    )
