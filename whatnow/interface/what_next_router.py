"""'What next?' swipe session endpoints."""

from fastapi import APIRouter, status

from whatnow.domain.create_models import StateQuery
from whatnow.interface.dependencies import CurrentUser, InProgress, SessionStore
from whatnow.models.service_models import ScoredTask, SwipeSessionView
from whatnow.services import swipe_service


router = APIRouter(prefix="/what-next", tags=["what-next"])


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def start_session(query: StateQuery, user: CurrentUser, store: SessionStore) -> SwipeSessionView:
    return await swipe_service.start_session(store=store, user_id=user.id, query=query)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, user: CurrentUser, store: SessionStore) -> SwipeSessionView:
    return swipe_service.get_session(store=store, user_id=user.id, session_id=session_id)


@router.post("/sessions/{session_id}/skip")
async def skip(session_id: str, user: CurrentUser, store: SessionStore) -> SwipeSessionView:
    return await swipe_service.skip(store=store, user_id=user.id, session_id=session_id)


@router.post("/sessions/{session_id}/accept")
async def accept(session_id: str, user: CurrentUser, store: SessionStore, in_progress: InProgress) -> ScoredTask:
    return await swipe_service.accept(store=store, in_progress=in_progress, user_id=user.id, session_id=session_id)
