"""PocketBase client wrapper exposing async CRUD operations over named collections."""

import asyncio
import json
import logging
import re
import threading
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, TypeVar

from pocketbase import PocketBase
from pocketbase.client import ClientResponseError

from whatnow.core.config import Constants, settings


logger = logging.getLogger(__name__)

T = TypeVar("T")

HTTP_NOT_FOUND = 404

# SDK bookkeeping attributes that are not part of the stored record
_SDK_ATTRIBUTES = {"expand", "collection_id", "collection_name"}


class DatabaseError(Exception):
    """Raised when the remote store rejects or fails an operation."""


class RecordNotFoundError(DatabaseError):
    """Raised when a record id does not exist in a collection."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in PocketBase filter strings via json.dumps."""
    return json.dumps(str(value))[1:-1]


def _serialize(data: dict[str, Any]) -> dict[str, Any]:
    """Convert Python values into JSON-friendly values accepted by PocketBase."""
    serialized: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, datetime | date):
            serialized[key] = value.isoformat()
        else:
            serialized[key] = value
    return serialized


def _record_to_dict(record: Any) -> dict[str, Any]:  # noqa: ANN401
    """Flatten an SDK record object into a plain dict with string timestamps."""
    result: dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _SDK_ATTRIBUTES:
            continue
        result[key] = value.isoformat() if isinstance(value, datetime) else value
    return result


_client: PocketBase | None = None
_client_lock = threading.Lock()


def get_client() -> PocketBase:
    """Get or create the shared PocketBase client, authenticating as admin when configured."""
    global _client  # noqa: PLW0603
    with _client_lock:
        if _client is None:
            client = PocketBase(settings.pocketbase_url)
            if settings.pocketbase_admin_email and settings.pocketbase_admin_password:
                client.admins.auth_with_password(settings.pocketbase_admin_email, settings.pocketbase_admin_password)
                logger.info("Authenticated PocketBase admin client", extra={"url": settings.pocketbase_url})
            _client = client
        return _client


def reset_client() -> None:
    """Drop the cached client so the next call re-authenticates."""
    global _client  # noqa: PLW0603
    with _client_lock:
        _client = None


async def _run(operation: str, collection: str, func: Callable[[], T], *, record_id: str | None = None) -> T:
    """Run a blocking SDK call in a worker thread and translate its errors."""
    try:
        return await asyncio.to_thread(func)
    except ClientResponseError as e:
        if record_id is not None and e.status == HTTP_NOT_FOUND:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg) from e
        logger.error(
            f"{operation}_failed",
            extra={"collection": collection, "record_id": record_id, "status": e.status, "error": str(e)},
        )
        msg = f"Failed to {operation.replace('_', ' ')} in {collection}: {e}"
        raise DatabaseError(msg) from e


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_collection_name(collection)
    payload = _serialize(data)
    record = await _run("create_record", collection, lambda: get_client().collection(collection).create(payload))
    result = _record_to_dict(record)
    logger.info("Created record", extra={"collection": collection, "record_id": result.get("id")})
    return result


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    record = await _run(
        "get_record",
        collection,
        lambda: get_client().collection(collection).get_one(record_id),
        record_id=record_id,
    )
    logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
    return _record_to_dict(record)


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    _validate_collection_name(collection)
    payload = _serialize(data)
    record = await _run(
        "update_record",
        collection,
        lambda: get_client().collection(collection).update(record_id, payload),
        record_id=record_id,
    )
    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return _record_to_dict(record)


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    await _run(
        "delete_record",
        collection,
        lambda: get_client().collection(collection).delete(record_id),
        record_id=record_id,
    )
    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


def _query_params(filter_query: str, sort: str) -> dict[str, str]:
    # PocketBase rejects empty filter/sort values, so only include what is set
    query_params = {}
    if sort:
        query_params["sort"] = sort
    if filter_query:
        query_params["filter"] = filter_query
    return query_params


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = Constants.DEFAULT_PER_PAGE_LIMIT,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List one page of records with optional filtering and sorting."""
    _validate_collection_name(collection)
    query_params = _query_params(filter_query, sort)
    result = await _run(
        "list_records",
        collection,
        lambda: get_client().collection(collection).get_list(page=page, per_page=per_page, query_params=query_params),
    )
    records = [_record_to_dict(item) for item in result.items]
    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def list_all_records(
    *,
    collection: str,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """Read every record matching the filter, paging through the collection."""
    _validate_collection_name(collection)
    query_params = _query_params(filter_query, sort)
    items = await _run(
        "list_all_records",
        collection,
        lambda: get_client()
        .collection(collection)
        .get_full_list(batch=Constants.FULL_LIST_BATCH_SIZE, query_params=query_params),
    )
    records = [_record_to_dict(item) for item in items]
    logger.debug("Listed all records", extra={"collection": collection, "count": len(records)})
    return records


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    _validate_collection_name(collection)
    try:
        record = await _run(
            "get_first_record",
            collection,
            lambda: get_client().collection(collection).get_first_list_item(filter_query),
            record_id=filter_query,
        )
    except RecordNotFoundError:
        return None
    return _record_to_dict(record)
