"""Task endpoints: CRUD, import, calendar, timer start and completion."""

from datetime import date

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from whatnow.domain.create_models import TaskCreate, TaskImport, TaskUpdate
from whatnow.domain.task import Task
from whatnow.interface.dependencies import CurrentUser, InProgress
from whatnow.models.service_models import CalendarView, ImportResult, ScoredTask, SettlementResult
from whatnow.services import settlement_service, task_service
from whatnow.services.task_service import TaskSort


router = APIRouter(prefix="/tasks", tags=["tasks"])


class CompleteRequest(BaseModel):
    """Completion of a task that was accepted or started.

    Points are never taken from the client; they were fixed when the task
    went in progress.
    """

    elapsed_seconds: float | None = Field(default=None, description="Timer reading, None if not measured")


@router.get("")
async def list_tasks(
    user: CurrentUser,
    type: str | None = None,  # noqa: A002
    search: str | None = None,
    sort: TaskSort = TaskSort.NEWEST,
) -> list[Task]:
    return await task_service.list_tasks(user_id=user.id, task_type=type, search=search, sort=sort)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, user: CurrentUser) -> Task:
    return await task_service.create_task(user_id=user.id, task=payload)


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_tasks(payload: TaskImport, user: CurrentUser) -> ImportResult:
    return await task_service.import_tasks(user_id=user.id, payload=payload)


@router.get("/calendar")
async def calendar(user: CurrentUser, day: date | None = None) -> CalendarView:
    return await task_service.get_calendar(user_id=user.id, day=day)


@router.get("/in-progress")
async def list_in_progress(user: CurrentUser, in_progress: InProgress) -> list[ScoredTask]:
    """Tasks the user has accepted or started and not yet completed."""
    return in_progress.for_user(user.id)


@router.get("/{task_id}")
async def get_task(task_id: str, user: CurrentUser) -> Task:
    return await task_service.get_task(user_id=user.id, task_id=task_id)


@router.patch("/{task_id}")
async def update_task(task_id: str, payload: TaskUpdate, user: CurrentUser) -> Task:
    return await task_service.update_task(user_id=user.id, task_id=task_id, update=payload)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, user: CurrentUser) -> Response:
    await task_service.delete_task(user_id=user.id, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/start")
async def start_task(task_id: str, user: CurrentUser, in_progress: InProgress) -> ScoredTask:
    """Fix the points for a timer started from the task list."""
    return await task_service.start_task(user_id=user.id, task_id=task_id, in_progress=in_progress)


@router.delete("/{task_id}/start", status_code=status.HTTP_204_NO_CONTENT)
async def stop_task(task_id: str, user: CurrentUser, in_progress: InProgress) -> Response:
    """Abandon a started task without completing it."""
    in_progress.stop(user_id=user.id, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/complete")
async def complete_task(
    task_id: str, payload: CompleteRequest, user: CurrentUser, in_progress: InProgress
) -> SettlementResult:
    """Settle a completion. Partial failures come back with `success: false`."""
    minutes = None if payload.elapsed_seconds is None else settlement_service.elapsed_minutes(payload.elapsed_seconds)
    return await settlement_service.complete_in_progress(
        in_progress=in_progress,
        user_id=user.id,
        task_id=task_id,
        time_spent_minutes=minutes,
    )
