"""Analytics service: completion history and weekly group leaderboards.

Key Concepts:
- Week: the current ISO week, starting Monday 00:00 UTC.
- Weekly leaderboard: members of a group with at least one completion this
  week, ranked by the points they earned this week.
- Leaderboards are cached in Redis for a short TTL and invalidated whenever a
  completion is settled.
"""

import json
import logging
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from whatnow.core import db_client
from whatnow.core.config import Constants, settings
from whatnow.core.db_client import sanitize_param
from whatnow.core.logging import span
from whatnow.core.redis_client import redis_client
from whatnow.domain.completion import CompletedTask
from whatnow.models.service_models import LeaderboardEntry
from whatnow.services import profile_service
from whatnow.services.ranks import get_rank_for_points


logger = logging.getLogger(__name__)

_CACHE_KEY_PREFIX = "whatnow:leaderboard"

# PocketBase filter literal format for datetimes
_FILTER_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def week_start(now: datetime | None = None) -> datetime:
    """Monday 00:00 UTC of the week containing `now`."""
    current = (now or datetime.now(UTC)).astimezone(UTC)
    monday = current - timedelta(days=current.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


async def invalidate_leaderboard_cache() -> None:
    """Invalidate all leaderboard cache entries.

    Uses retry with backoff and queues the keys for later if Redis is down.
    Failures are logged but never raised: a stale leaderboard for up to the
    cache TTL is acceptable.
    """
    try:
        keys = await redis_client.keys(f"{_CACHE_KEY_PREFIX}:*")
        if keys:
            success = await redis_client.delete_with_retry(*keys)
            if success:
                logger.info("Invalidated %d leaderboard cache entries", len(keys))
            else:
                logger.warning("Failed to invalidate %d cache entries, queued for retry", len(keys))
        else:
            logger.debug("No leaderboard cache entries to invalidate")
    except Exception as e:
        logger.warning("Failed to invalidate leaderboard cache: %s", e)


async def get_completed_tasks(*, user_id: str, limit: int | None = None) -> list[CompletedTask]:
    """Get the user's completion history, newest first."""
    with span("analytics_service.get_completed_tasks"):
        records = await db_client.list_records(
            collection="completed_tasks",
            per_page=limit or settings.completed_tasks_default_limit,
            filter_query=f'user_id = "{sanitize_param(user_id)}"',
            sort="-completed_at",
        )
        return [CompletedTask(**record) for record in records]


async def _is_member(*, group_id: str, user_id: str) -> bool:
    record = await db_client.get_first_record(
        collection="group_members",
        filter_query=f'group_id = "{sanitize_param(group_id)}" && user_id = "{sanitize_param(user_id)}"',
    )
    return record is not None


async def _build_leaderboard(*, group_id: str, since: datetime) -> list[LeaderboardEntry]:
    members = await db_client.list_all_records(
        collection="group_members",
        filter_query=f'group_id = "{sanitize_param(group_id)}"',
    )
    since_literal = since.strftime(_FILTER_DATETIME_FORMAT)

    entries: list[LeaderboardEntry] = []
    for member in members:
        user_id = member["user_id"]
        completions = await db_client.list_all_records(
            collection="completed_tasks",
            filter_query=f'user_id = "{sanitize_param(user_id)}" && completed_at >= "{since_literal}"',
        )
        if not completions:
            continue

        profile = await profile_service.find_profile(user_id=user_id)
        weekly_points = sum(int(c.get("points") or 0) for c in completions)
        entries.append(
            LeaderboardEntry(
                user_id=user_id,
                display_name=(profile.display_name if profile else None) or None,
                current_rank=profile.current_rank if profile and profile.current_rank else get_rank_for_points(0),
                weekly_points=weekly_points,
                weekly_tasks=len(completions),
                group_id=group_id,
            )
        )

    entries.sort(key=lambda e: (e.weekly_points, e.weekly_tasks), reverse=True)
    return entries


async def get_weekly_leaderboard(
    *, group_id: str, user_id: str, now: datetime | None = None
) -> list[LeaderboardEntry]:
    """Get this week's leaderboard for a group the user belongs to.

    Raises:
        PermissionError: If `user_id` is not a member of the group
    """
    with span("analytics_service.get_weekly_leaderboard"):
        if not await _is_member(group_id=group_id, user_id=user_id):
            msg = f"User {user_id} is not a member of group {group_id}"
            raise PermissionError(msg)

        since = week_start(now)
        cache_key = f"{_CACHE_KEY_PREFIX}:{group_id}:{since.date().isoformat()}"

        try:
            cached_value = await redis_client.get(cache_key)
            if cached_value:
                try:
                    return [LeaderboardEntry(**entry) for entry in json.loads(cached_value)]
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning("Failed to deserialize cached leaderboard: %s", e)
        except Exception as e:
            logger.warning("Failed to retrieve cached leaderboard from Redis: %s", e)

        entries = await _build_leaderboard(group_id=group_id, since=since)
        logger.info("Generated weekly leaderboard", extra={"group_id": group_id, "entries": len(entries)})

        try:
            cache_value = json.dumps([entry.model_dump() for entry in entries])
            await redis_client.set(cache_key, cache_value, Constants.CACHE_TTL_LEADERBOARD_SECONDS)
        except Exception as e:
            logger.warning("Failed to cache leaderboard in Redis: %s", e)

        return entries
