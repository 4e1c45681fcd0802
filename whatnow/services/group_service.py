"""Group service: create, join by invite code, leave and list."""

import logging
import secrets
import string
from datetime import UTC, datetime

from whatnow.core import db_client
from whatnow.core.config import Constants
from whatnow.core.db_client import sanitize_param
from whatnow.core.logging import span
from whatnow.domain.create_models import GroupCreate
from whatnow.domain.group import Group, GroupMember


logger = logging.getLogger(__name__)

GROUPS_COLLECTION = "groups"
MEMBERS_COLLECTION = "group_members"

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length: int = Constants.INVITE_CODE_LENGTH) -> str:
    """Random uppercase alphanumeric code."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: str) -> str:
    """Uppercase and validate a code typed by a user.

    Raises:
        ValueError: If the code is too short or contains other characters
    """
    normalized = code.strip().upper()
    if len(normalized) < Constants.INVITE_CODE_MIN_LENGTH or any(c not in INVITE_CODE_ALPHABET for c in normalized):
        msg = f"Invalid invite code: {code!r}"
        raise ValueError(msg)
    return normalized


async def _get_membership(*, group_id: str, user_id: str) -> GroupMember | None:
    record = await db_client.get_first_record(
        collection=MEMBERS_COLLECTION,
        filter_query=f'group_id = "{sanitize_param(group_id)}" && user_id = "{sanitize_param(user_id)}"',
    )
    return GroupMember(**record) if record else None


async def _add_member(*, group_id: str, user_id: str) -> GroupMember:
    record = await db_client.create_record(
        collection=MEMBERS_COLLECTION,
        data={"group_id": group_id, "user_id": user_id, "joined_at": datetime.now(UTC).isoformat()},
    )
    return GroupMember(**record)


async def create_group(*, user_id: str, group: GroupCreate) -> Group:
    """Create a group with a fresh invite code; the creator joins it."""
    with span("group_service.create_group"):
        record = await db_client.create_record(
            collection=GROUPS_COLLECTION,
            data={
                "name": group.name,
                "description": group.description or "",
                "invite_code": generate_invite_code(),
                "created_by": user_id,
            },
        )
        created = Group(**record)
        await _add_member(group_id=created.id, user_id=user_id)

        logger.info("Created group", extra={"group_id": created.id, "user_id": user_id})
        return created


async def join_group(*, user_id: str, invite_code: str) -> Group:
    """Join the group with this invite code (case-insensitive).

    Raises:
        ValueError: If the code is malformed, unknown, or the user is already a member
    """
    with span("group_service.join_group"):
        code = normalize_invite_code(invite_code)
        record = await db_client.get_first_record(
            collection=GROUPS_COLLECTION,
            filter_query=f'invite_code = "{sanitize_param(code)}"',
        )
        if record is None:
            msg = f"Invalid invite code: no group uses {code}"
            raise ValueError(msg)

        group = Group(**record)
        if await _get_membership(group_id=group.id, user_id=user_id) is not None:
            msg = f"You are already a member of {group.name}"
            raise ValueError(msg)

        await _add_member(group_id=group.id, user_id=user_id)
        logger.info("Joined group", extra={"group_id": group.id, "user_id": user_id})
        return group


async def leave_group(*, user_id: str, group_id: str) -> None:
    """Remove the user's membership.

    Raises:
        db_client.RecordNotFoundError: If the user is not a member
    """
    with span("group_service.leave_group"):
        membership = await _get_membership(group_id=group_id, user_id=user_id)
        if membership is None:
            msg = f"Record not found in {MEMBERS_COLLECTION}: {group_id}/{user_id}"
            raise db_client.RecordNotFoundError(msg)

        await db_client.delete_record(collection=MEMBERS_COLLECTION, record_id=membership.id)
        logger.info("Left group", extra={"group_id": group_id, "user_id": user_id})


async def list_groups(*, user_id: str) -> list[Group]:
    """Groups the user belongs to, most recently joined first."""
    with span("group_service.list_groups"):
        memberships = await db_client.list_all_records(
            collection=MEMBERS_COLLECTION,
            filter_query=f'user_id = "{sanitize_param(user_id)}"',
            sort="-joined_at",
        )

        groups: list[Group] = []
        for membership in memberships:
            try:
                record = await db_client.get_record(collection=GROUPS_COLLECTION, record_id=membership["group_id"])
            except db_client.RecordNotFoundError:
                logger.warning("Membership points at missing group", extra={"group_id": membership["group_id"]})
                continue
            groups.append(Group(**record))
        return groups
