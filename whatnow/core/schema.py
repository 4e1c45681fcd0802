"""Code-first PocketBase collections for whatnow.

`sync_schema` is idempotent: missing collections are created, existing ones
get new fields, refreshed field definitions, changed API rules and any
missing indexes. Fields that exist only on the server are left alone.
"""

import logging
from typing import Any

import httpx
from pocketbase import PocketBase
from pocketbase.client import ClientResponseError

from whatnow.core.config import Constants, settings


logger = logging.getLogger(__name__)

# Built-in PocketBase auth collection holding user accounts
USERS_COLLECTION_ID = "_pb_users_auth_"

# Sync order matters: group_members relates to groups
COLLECTIONS = [
    "profiles",
    "tasks",
    "completed_tasks",
    "groups",
    "group_members",
]

_API_RULE_KEYS = ("listRule", "viewRule", "createRule", "updateRule", "deleteRule")

_OWNER = "user_id = @request.auth.id"
_SIGNED_IN = "@request.auth.id != ''"
_LEVELS = ["low", "medium", "high"]


def _text(name: str, *, required: bool = False, **options: Any) -> dict[str, Any]:  # noqa: ANN401
    return {"name": name, "type": "text", "required": required, **options}


def _number(name: str, *, integer: bool = False) -> dict[str, Any]:
    field: dict[str, Any] = {"name": name, "type": "number", "required": False}
    if integer:
        field["onlyInt"] = True
    return field


def _date(name: str, *, required: bool = False) -> dict[str, Any]:
    return {"name": name, "type": "date", "required": required}


def _choice(name: str, values: list[str], *, required: bool = True) -> dict[str, Any]:
    return {"name": name, "type": "select", "required": required, "values": values, "maxSelect": 1}


def _relation(name: str, collection_id: str, *, required: bool = True) -> dict[str, Any]:
    return {
        "name": name,
        "type": "relation",
        "required": required,
        "collectionId": collection_id,
        "cascadeDelete": True,
        "maxSelect": 1,
    }


def _collection(
    name: str,
    fields: list[dict[str, Any]],
    *,
    rules: tuple[str | None, str | None, str | None, str | None, str | None],
    indexes: list[str],
) -> dict[str, Any]:
    """Assemble a base collection; `rules` follow the order of `_API_RULE_KEYS`."""
    return {
        "name": name,
        "type": "base",
        "system": False,
        **dict(zip(_API_RULE_KEYS, rules, strict=True)),
        "fields": fields,
        "indexes": indexes,
    }


def _get_collection_schema(
    *,
    collection_name: str,
    collection_ids: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Desired definition of one collection.

    Relation fields need real collection ids, so ids resolved earlier in the
    sync are passed in `collection_ids`; the name is used as a placeholder
    otherwise.
    """
    ids = collection_ids or {}
    counters = [
        _number(name, integer=True) for name in ("times_shown", "times_skipped", "times_completed", "points_earned")
    ]

    if collection_name == "profiles":
        # Readable by any signed-in user so leaderboards can show names;
        # aggregates are only written server-side
        return _collection(
            "profiles",
            [
                _relation("user_id", USERS_COLLECTION_ID),
                _text("display_name"),
                _number("total_points", integer=True),
                _number("total_tasks_completed", integer=True),
                _number("total_time_spent"),
                _text("current_rank"),
            ],
            rules=(_SIGNED_IN, _SIGNED_IN, _OWNER, _OWNER, None),
            indexes=["CREATE UNIQUE INDEX idx_profiles_user ON profiles (user_id)"],
        )

    if collection_name == "tasks":
        return _collection(
            "tasks",
            [
                _relation("user_id", USERS_COLLECTION_ID),
                _text("name", required=True),
                _text("description"),
                _text("type"),
                # Any positive number of minutes; scoring buckets are not enforced here
                _number("time"),
                _choice("energy", _LEVELS),
                _choice("social", _LEVELS),
                _date("due_date"),
                _choice("recurring", ["daily", "weekly", "monthly"], required=False),
                *counters,
            ],
            rules=(_OWNER, _OWNER, _OWNER, _OWNER, _OWNER),
            indexes=["CREATE INDEX idx_tasks_user ON tasks (user_id)"],
        )

    if collection_name == "completed_tasks":
        # Append-only history
        return _collection(
            "completed_tasks",
            [
                _relation("user_id", USERS_COLLECTION_ID),
                _text("task_name", required=True),
                _text("task_type"),
                _number("points", integer=True),
                _number("time_spent"),
                _number("task_time"),
                _text("task_social"),
                _text("task_energy"),
                _date("completed_at", required=True),
            ],
            rules=(_OWNER, _OWNER, _OWNER, None, None),
            indexes=[
                "CREATE INDEX idx_completed_user ON completed_tasks (user_id)",
                "CREATE INDEX idx_completed_at ON completed_tasks (completed_at)",
            ],
        )

    if collection_name == "groups":
        creator = "created_by = @request.auth.id"
        return _collection(
            "groups",
            [
                _text("name", required=True, max=Constants.MAX_GROUP_NAME_LENGTH),
                _text("description"),
                _text("invite_code", required=True),
                _relation("created_by", USERS_COLLECTION_ID, required=False),
            ],
            rules=(_SIGNED_IN, _SIGNED_IN, _SIGNED_IN, creator, creator),
            indexes=["CREATE UNIQUE INDEX idx_groups_invite_code ON groups (invite_code)"],
        )

    if collection_name == "group_members":
        return _collection(
            "group_members",
            [
                _relation("group_id", ids.get("groups", "groups")),
                _relation("user_id", USERS_COLLECTION_ID),
                _date("joined_at", required=True),
            ],
            rules=(_SIGNED_IN, _SIGNED_IN, _OWNER, None, _OWNER),
            indexes=["CREATE UNIQUE INDEX idx_group_members_unique ON group_members (group_id, user_id)"],
        )

    msg = f"Unknown collection: {collection_name}"
    raise KeyError(msg)


def _merge_fields(
    schema: dict[str, Any],
    current: dict[str, Any],
) -> tuple[list[dict[str, Any]], list[str], list[str]]:
    """Overlay desired fields on the server's fields.

    Server-only fields keep their position and definition; desired fields
    replace their server counterpart in place, and new ones are appended.

    Returns:
        (merged fields, names refreshed, names added)
    """
    desired = {f["name"]: f for f in schema.get("fields", [])}
    existing_names = [f["name"] for f in current.get("fields", [])]

    merged = [desired.get(f["name"], f) for f in current.get("fields", [])]
    updated = [name for name in existing_names if name in desired]
    added = [name for name in desired if name not in existing_names]
    merged.extend(desired[name] for name in added)
    return merged, updated, added


def _get_rules_to_update(schema: dict[str, Any], current: dict[str, Any]) -> dict[str, str | None]:
    """API rules whose desired value differs from the server's."""
    return {
        key: schema[key]
        for key in _API_RULE_KEYS
        if key in schema and schema[key] != current.get(key)
    }


class _CollectionAdmin:
    """Thin wrapper over the PocketBase collections admin API."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def fetch(self, name: str) -> dict[str, Any] | None:
        try:
            response = await self._http.get(f"/api/collections/{name}")
        except httpx.HTTPError as e:
            logger.warning("Could not read collection %s: %s", name, e)
            return None
        return response.json() if response.is_success else None

    async def create(self, schema: dict[str, Any]) -> dict[str, Any]:
        response = await self._http.post("/api/collections", json=schema)
        response.raise_for_status()
        logger.info("Created collection %s", schema["name"])
        return response.json()

    async def reconcile(self, schema: dict[str, Any], current: dict[str, Any]) -> None:
        name = schema["name"]
        fields, refreshed, added = _merge_fields(schema, current)
        rules = _get_rules_to_update(schema, current)
        indexes = list(current.get("indexes", []))
        missing_indexes = [idx for idx in schema.get("indexes", []) if idx not in indexes]

        if not (refreshed or added or rules or missing_indexes):
            logger.info("Collection %s is up to date", name)
            return

        payload: dict[str, Any] = {"fields": fields, **rules}
        if missing_indexes:
            payload["indexes"] = indexes + missing_indexes

        response = await self._http.patch(f"/api/collections/{name}", json=payload)
        response.raise_for_status()
        logger.info("Updated collection %s", name, extra={"fields_added": added, "rules_updated": list(rules)})


async def sync_schema(
    pocketbase_url: str | None = None,
    admin_email: str | None = None,
    admin_password: str | None = None,
) -> None:
    """Create or update every collection in `COLLECTIONS`, in order."""
    url = pocketbase_url or settings.pocketbase_url
    email = admin_email or settings.require_credential("pocketbase_admin_email", "PocketBase admin email")
    password = admin_password or settings.require_credential("pocketbase_admin_password", "PocketBase admin password")

    pb = PocketBase(url)
    try:
        pb.admins.auth_with_password(email, password)
    except ClientResponseError as e:
        logger.error("PocketBase admin authentication failed: %s", e)
        raise

    logger.info("Syncing %d collections at %s", len(COLLECTIONS), url)
    headers = {"Authorization": f"Bearer {pb.auth_store.token}"}
    async with httpx.AsyncClient(base_url=url, headers=headers, timeout=Constants.API_TIMEOUT_SECONDS) as http:
        admin = _CollectionAdmin(http)
        collection_ids: dict[str, str] = {}

        for name in COLLECTIONS:
            schema = _get_collection_schema(collection_name=name, collection_ids=collection_ids)
            current = await admin.fetch(name)
            if current is None:
                current = await admin.create(schema)
            else:
                await admin.reconcile(schema, current)
            collection_ids[name] = current["id"]

    logger.info("PocketBase schema sync complete")
