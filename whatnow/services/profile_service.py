"""Profile service: per-user aggregates and display name."""

import logging

from whatnow.core import db_client
from whatnow.core.db_client import sanitize_param
from whatnow.core.logging import span
from whatnow.domain.profile import Profile
from whatnow.domain.update_models import ProfileUpdate
from whatnow.models.service_models import ProfileSummary
from whatnow.services.ranks import get_rank_for_points, get_rank_info


logger = logging.getLogger(__name__)

COLLECTION = "profiles"


async def find_profile(*, user_id: str) -> Profile | None:
    """Return the user's profile, or None if it was never created."""
    record = await db_client.get_first_record(
        collection=COLLECTION,
        filter_query=f'user_id = "{sanitize_param(user_id)}"',
    )
    return Profile(**record) if record else None


async def ensure_profile(*, user_id: str, display_name: str | None = None) -> Profile:
    """Get the user's profile, creating an empty one if missing."""
    with span("profile_service.ensure_profile"):
        profile = await find_profile(user_id=user_id)
        if profile is not None:
            return profile

        record = await db_client.create_record(
            collection=COLLECTION,
            data={
                "user_id": user_id,
                "display_name": display_name or "",
                "total_points": 0,
                "total_tasks_completed": 0,
                "total_time_spent": 0,
                "current_rank": get_rank_for_points(0),
            },
        )
        logger.info("Created profile", extra={"user_id": user_id})
        return Profile(**record)


async def get_summary(*, user_id: str) -> ProfileSummary:
    """Profile plus rank standing for the profile screen."""
    with span("profile_service.get_summary"):
        profile = await ensure_profile(user_id=user_id)
        return ProfileSummary(profile=profile, rank=get_rank_info(profile.total_points))


async def update_profile(*, user_id: str, update: ProfileUpdate) -> Profile:
    """Change the display name. Aggregates and rank are never edited here."""
    with span("profile_service.update_profile"):
        profile = await ensure_profile(user_id=user_id)
        record = await db_client.update_record(
            collection=COLLECTION,
            record_id=profile.id,
            data={"display_name": update.display_name},
        )
        logger.info("Updated display name", extra={"user_id": user_id})
        return Profile(**record)
