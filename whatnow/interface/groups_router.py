"""Group endpoints: membership and weekly leaderboards."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from whatnow.domain.create_models import GroupCreate
from whatnow.domain.group import Group
from whatnow.interface.dependencies import CurrentUser
from whatnow.models.service_models import LeaderboardEntry
from whatnow.services import analytics_service, group_service


router = APIRouter(prefix="/groups", tags=["groups"])


class JoinRequest(BaseModel):
    invite_code: str


@router.get("")
async def list_groups(user: CurrentUser) -> list[Group]:
    return await group_service.list_groups(user_id=user.id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(payload: GroupCreate, user: CurrentUser) -> Group:
    return await group_service.create_group(user_id=user.id, group=payload)


@router.post("/join")
async def join_group(payload: JoinRequest, user: CurrentUser) -> Group:
    return await group_service.join_group(user_id=user.id, invite_code=payload.invite_code)


@router.delete("/{group_id}/membership", status_code=status.HTTP_204_NO_CONTENT)
async def leave_group(group_id: str, user: CurrentUser) -> Response:
    await group_service.leave_group(user_id=user.id, group_id=group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}/leaderboard")
async def leaderboard(group_id: str, user: CurrentUser) -> list[LeaderboardEntry]:
    return await analytics_service.get_weekly_leaderboard(group_id=group_id, user_id=user.id)
