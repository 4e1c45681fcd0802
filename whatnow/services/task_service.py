"""Task service: CRUD, bulk import, calendar and engine counters."""

import logging
from datetime import date
from enum import StrEnum
from typing import Any

from whatnow.core import db_client
from whatnow.core.config import Constants
from whatnow.core.db_client import sanitize_param
from whatnow.core.logging import span
from whatnow.domain.create_models import ImportFormat, TaskCreate, TaskImport, TaskUpdate
from whatnow.domain.task import Level, Task
from whatnow.models.service_models import CalendarView, ImportResult, ScoredTask
from whatnow.services.in_progress import InProgressTasks
from whatnow.services.swipe_session import score_task


logger = logging.getLogger(__name__)

COLLECTION = "tasks"

COUNTER_FIELDS = ("times_shown", "times_skipped", "times_completed", "points_earned")


class TaskSort(StrEnum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_SKIPPED = "most_skipped"
    NAME_AZ = "name_az"


def _to_record(task: TaskCreate | TaskUpdate, *, exclude_unset: bool = False) -> dict[str, Any]:
    data = task.model_dump(mode="json", exclude_unset=exclude_unset)
    # PocketBase stores missing optional text/select/date values as ""
    for key in ("description", "due_date", "recurring"):
        if key in data and data[key] is None:
            data[key] = ""
    return data


def _ensure_owner(task: Task, user_id: str) -> None:
    if task.user_id != user_id:
        msg = f"Task {task.id} does not belong to user {user_id}"
        raise PermissionError(msg)


async def create_task(*, user_id: str, task: TaskCreate) -> Task:
    """Create a task with zeroed counters."""
    with span("task_service.create_task"):
        data = {
            **_to_record(task),
            "user_id": user_id,
            **dict.fromkeys(COUNTER_FIELDS, 0),
        }
        record = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("Created task", extra={"user_id": user_id, "task_id": record["id"], "task_name": task.name})
        return Task(**record)


async def get_task(*, user_id: str, task_id: str) -> Task:
    """Get a task, checking that it belongs to `user_id`.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
        PermissionError: If the task belongs to someone else
    """
    with span("task_service.get_task"):
        record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
        task = Task(**record)
        _ensure_owner(task, user_id)
        return task


async def list_tasks(
    *,
    user_id: str,
    task_type: str | None = None,
    search: str | None = None,
    sort: TaskSort = TaskSort.NEWEST,
) -> list[Task]:
    """List a user's tasks.

    Args:
        user_id: Owner of the tasks
        task_type: Case-insensitive type filter; None or "All" returns every type
        search: Case-insensitive substring match on the name
        sort: One of newest, oldest, most_skipped, name_az
    """
    with span("task_service.list_tasks"):
        records = await db_client.list_all_records(
            collection=COLLECTION,
            filter_query=f'user_id = "{sanitize_param(user_id)}"',
            sort="-created",
        )
        tasks = [Task(**record) for record in records]

        if task_type and task_type.lower() != "all":
            wanted = task_type.lower()
            tasks = [t for t in tasks if t.type.lower() == wanted]

        if search and search.strip():
            query = search.strip().lower()
            tasks = [t for t in tasks if query in t.name.lower()]

        # Sorting is stable, so equal keys keep newest-first order
        if sort is TaskSort.OLDEST:
            tasks.reverse()
        elif sort is TaskSort.MOST_SKIPPED:
            tasks.sort(key=lambda t: t.times_skipped, reverse=True)
        elif sort is TaskSort.NAME_AZ:
            tasks.sort(key=lambda t: t.name.casefold())

        return tasks


async def update_task(*, user_id: str, task_id: str, update: TaskUpdate) -> Task:
    """Apply a partial edit to a task the user owns."""
    with span("task_service.update_task"):
        await get_task(user_id=user_id, task_id=task_id)
        data = _to_record(update, exclude_unset=True)
        if not data:
            msg = "No fields to update"
            raise ValueError(msg)
        record = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=data)
        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(data)})
        return Task(**record)


async def delete_task(*, user_id: str, task_id: str) -> None:
    """Hard-delete a task the user owns. Completion records keep their snapshots."""
    with span("task_service.delete_task"):
        await get_task(user_id=user_id, task_id=task_id)
        await db_client.delete_record(collection=COLLECTION, record_id=task_id)
        logger.info("Deleted task", extra={"user_id": user_id, "task_id": task_id})


async def increment_counters(*, task_id: str, increments: dict[str, int]) -> Task:
    """Add to a task's engine counters with a read-modify-write.

    There is no concurrency token: two concurrent increments may collapse
    into one.
    """
    with span("task_service.increment_counters"):
        unknown = set(increments) - set(COUNTER_FIELDS)
        if unknown:
            msg = f"Unknown task counters: {sorted(unknown)}"
            raise ValueError(msg)

        task = Task(**await db_client.get_record(collection=COLLECTION, record_id=task_id))
        data = {field: getattr(task, field) + amount for field, amount in increments.items()}
        record = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=data)
        logger.debug("Incremented task counters", extra={"task_id": task_id, **increments})
        return Task(**record)


async def start_task(*, user_id: str, task_id: str, in_progress: InProgressTasks) -> ScoredTask:
    """Start the timer on a task from the list, fixing the points it will award."""
    with span("task_service.start_task"):
        task = await get_task(user_id=user_id, task_id=task_id)
        scored = score_task(task)
        in_progress.begin(user_id=user_id, scored=scored)
        return scored


def _non_empty_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def _parse_csv_line(line: str, defaults: TaskImport) -> TaskCreate:
    parts = [part.strip() for part in line.split(",")]
    cells = parts + [""] * (5 - len(parts))
    name, task_type, time, energy, social = cells[:5]

    levels = {level.value for level in Level}
    return TaskCreate(
        name=name or "Untitled",
        type=task_type if task_type in Constants.TASK_TYPES else defaults.type,
        time=int(time) if time.isdigit() and int(time) in Constants.TIME_OPTIONS else defaults.time,
        energy=Level(energy) if energy in levels else defaults.energy,
        social=Level(social) if social in levels else defaults.social,
    )


def parse_import(payload: TaskImport) -> list[TaskCreate]:
    """Turn pasted text into task drafts; blank lines are ignored."""
    lines = _non_empty_lines(payload.text)
    if payload.format is ImportFormat.CSV:
        return [_parse_csv_line(line, payload) for line in lines]
    return [
        TaskCreate(
            name=line,
            type=payload.type,
            time=payload.time,
            energy=payload.energy,
            social=payload.social,
        )
        for line in lines
    ]


async def import_tasks(*, user_id: str, payload: TaskImport) -> ImportResult:
    """Create one task per parsed line.

    Raises:
        ValueError: If the text contains no tasks
    """
    with span("task_service.import_tasks"):
        drafts = parse_import(payload)
        if not drafts:
            msg = "Nothing to import: enter at least one task"
            raise ValueError(msg)

        created = [await create_task(user_id=user_id, task=draft) for draft in drafts]
        logger.info("Imported tasks", extra={"user_id": user_id, "count": len(created), "format": payload.format})
        return ImportResult(imported=len(created), tasks=created)


async def get_calendar(*, user_id: str, today: date | None = None, day: date | None = None) -> CalendarView:
    """Split the user's dated tasks into overdue and upcoming, each by due date.

    Args:
        user_id: Owner of the tasks
        today: Reference date, defaults to the current date
        day: Restrict to tasks due on this date
    """
    with span("task_service.get_calendar"):
        reference = today or date.today()
        tasks = [t for t in await list_tasks(user_id=user_id) if t.due_date is not None]
        if day is not None:
            tasks = [t for t in tasks if t.due_date == day]

        tasks.sort(key=lambda t: t.due_date or reference)
        overdue = [t for t in tasks if t.due_date is not None and t.due_date < reference]
        upcoming = [t for t in tasks if t.due_date is not None and t.due_date >= reference]
        return CalendarView(overdue=overdue, upcoming=upcoming)
