"""Profile and completion history endpoints."""

from fastapi import APIRouter, Query

from whatnow.domain.completion import CompletedTask
from whatnow.domain.profile import Profile
from whatnow.domain.update_models import ProfileUpdate
from whatnow.interface.dependencies import CurrentUser
from whatnow.models.service_models import ProfileSummary
from whatnow.services import analytics_service, profile_service


router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(user: CurrentUser) -> ProfileSummary:
    return await profile_service.get_summary(user_id=user.id)


@router.patch("")
async def update_profile(payload: ProfileUpdate, user: CurrentUser) -> Profile:
    return await profile_service.update_profile(user_id=user.id, update=payload)


@router.get("/completed")
async def completed_tasks(user: CurrentUser, limit: int | None = Query(default=None, gt=0)) -> list[CompletedTask]:
    return await analytics_service.get_completed_tasks(user_id=user.id, limit=limit)
