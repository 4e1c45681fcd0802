"""Completion settlement.

Settling a completion is a chain of dependent writes with no transaction:

1. append the completion record
2. bump the task's completion counters
3. read the user's profile
4. add to the profile aggregates and recompute the rank

If step 1 fails nothing has been recorded and the chain stops. Later
failures are logged and reported on the result; earlier writes stay applied.
"""

import logging
from datetime import UTC, datetime

from whatnow.core import db_client
from whatnow.core.logging import log_with_user_context, span
from whatnow.domain.completion import CompletedTask
from whatnow.domain.profile import Profile
from whatnow.domain.task import Task
from whatnow.models.service_models import SettlementResult
from whatnow.services import analytics_service, profile_service, task_service
from whatnow.services.in_progress import InProgressTasks
from whatnow.services.ranks import get_rank_for_points


logger = logging.getLogger(__name__)

COMPLETIONS_COLLECTION = "completed_tasks"


def elapsed_minutes(seconds: float) -> float:
    """Convert a timer reading to minutes, rounded to 2 decimals and never negative."""
    return round(max(seconds, 0) / 60, 2)


async def _record_completion(
    *, user_id: str, task: Task, points: int, time_spent: float | None
) -> CompletedTask:
    record = await db_client.create_record(
        collection=COMPLETIONS_COLLECTION,
        data={
            "user_id": user_id,
            "task_name": task.name,
            "task_type": task.type,
            "points": points,
            "time_spent": time_spent,
            "task_time": task.time,
            "task_social": task.social,
            "task_energy": task.energy,
            "completed_at": datetime.now(UTC).isoformat(),
        },
    )
    return CompletedTask(**record)


async def _update_profile(*, profile: Profile, points: int, minutes: float) -> Profile:
    new_total = profile.total_points + points
    record = await db_client.update_record(
        collection=profile_service.COLLECTION,
        record_id=profile.id,
        data={
            "total_points": new_total,
            "total_tasks_completed": profile.total_tasks_completed + 1,
            "total_time_spent": profile.total_time_spent + minutes,
            "current_rank": get_rank_for_points(new_total),
        },
    )
    return Profile(**record)


async def settle(
    *,
    user_id: str,
    task: Task,
    awarded_points: int,
    time_spent_minutes: float | None = None,
) -> SettlementResult:
    """Record a completion and fold it into the task and profile aggregates.

    Args:
        user_id: User who completed the task
        task: The task as it was when the timer started
        awarded_points: Points fixed at accept/start time, never recomputed here
        time_spent_minutes: Measured minutes, or None to fall back to `task.time`

    Returns:
        SettlementResult; `errors` lists every step that failed. Storage
        errors are never raised.
    """
    with span("settlement_service.settle"):
        result = SettlementResult(points=awarded_points, time_spent=time_spent_minutes)

        try:
            result.completion = await _record_completion(
                user_id=user_id, task=task, points=awarded_points, time_spent=time_spent_minutes
            )
        except db_client.DatabaseError as e:
            logger.error("Failed to record completion", extra={"user_id": user_id, "task_id": task.id, "error": str(e)})
            result.errors.append(f"completion: {e}")
            return result

        try:
            result.task = await task_service.increment_counters(
                task_id=task.id,
                increments={"times_completed": 1, "points_earned": awarded_points},
            )
        except db_client.DatabaseError as e:
            logger.error("Failed to update task counters", extra={"task_id": task.id, "error": str(e)})
            result.errors.append(f"task: {e}")

        minutes = time_spent_minutes if time_spent_minutes is not None else task.time
        try:
            profile = await profile_service.ensure_profile(user_id=user_id)
            result.profile = await _update_profile(profile=profile, points=awarded_points, minutes=minutes)
        except db_client.DatabaseError as e:
            logger.error("Failed to update profile", extra={"user_id": user_id, "error": str(e)})
            result.errors.append(f"profile: {e}")

        await analytics_service.invalidate_leaderboard_cache()

        log_with_user_context(
            logger,
            "info",
            "Settled completion",
            user_id=user_id,
            task_id=task.id,
            points=awarded_points,
            minutes=minutes,
            errors=len(result.errors),
        )
        return result


async def complete_in_progress(
    *,
    in_progress: InProgressTasks,
    user_id: str,
    task_id: str,
    time_spent_minutes: float | None = None,
) -> SettlementResult:
    """Settle a task the user accepted or started, with the points fixed back then.

    If the completion record cannot be written the task goes back in
    progress so the user can retry.

    Raises:
        TaskNotStartedError: If the task is not in progress for this user
    """
    scored = in_progress.claim(user_id=user_id, task_id=task_id)
    result = await settle(
        user_id=user_id,
        task=scored.task,
        awarded_points=scored.points,
        time_spent_minutes=time_spent_minutes,
    )
    if result.completion is None:
        in_progress.begin(user_id=user_id, scored=scored)
    return result
