"""Swipe session I/O: builds sessions from storage and persists their counter effects."""

import logging

from whatnow.core.logging import span
from whatnow.domain.create_models import StateQuery
from whatnow.models.service_models import ScoredTask, SwipeSessionView
from whatnow.services import task_service
from whatnow.services.in_progress import InProgressTasks
from whatnow.services.recommendation_service import select_candidates
from whatnow.services.swipe_session import CounterEffect, SwipeSession, SwipeSessionStore


logger = logging.getLogger(__name__)


async def apply_effects(effects: list[CounterEffect], *, session: SwipeSession | None = None) -> None:
    """Persist counter effects strictly in emission order, one write at a time.

    With `session`, each effect is marked written as soon as it lands so a
    retried transition skips it.
    """
    for effect in effects:
        await task_service.increment_counters(task_id=effect.task_id, increments={effect.counter: 1})
        if session is not None:
            session.mark_written(effect)


async def start_session(*, store: SwipeSessionStore, user_id: str, query: StateQuery) -> SwipeSessionView:
    """Rank the user's tasks for `query` and open a session on the result.

    The queue is fixed here and never recomputed for the life of the session.
    The session is only registered once its first card has been counted.
    """
    with span("swipe_service.start_session"):
        tasks = await task_service.list_tasks(user_id=user_id)
        queue = select_candidates(
            tasks,
            max_time=query.max_time,
            max_energy=query.max_energy,
            max_social=query.max_social,
        )

        session = SwipeSession(user_id=user_id, queue=queue)
        await apply_effects(session.start())
        store.add(session)

        logger.info(
            "Started swipe session",
            extra={"user_id": user_id, "session_id": session.id, "candidates": len(queue), "tasks": len(tasks)},
        )
        return session.to_view()


def get_session(*, store: SwipeSessionStore, user_id: str, session_id: str) -> SwipeSessionView:
    """Return the session as it stands; viewing never emits effects."""
    return store.get(session_id, user_id=user_id).to_view()


async def skip(*, store: SwipeSessionStore, user_id: str, session_id: str) -> SwipeSessionView:
    """Skip the current card, persisting its counters before the session moves on.

    If a write fails the session stays on the same card and the error
    propagates; retrying the skip writes only what is still missing.
    """
    with span("swipe_service.skip"):
        session = store.get(session_id, user_id=user_id)
        await apply_effects(session.plan_skip(), session=session)
        session.commit_skip()
        return session.to_view()


async def accept(
    *, store: SwipeSessionStore, in_progress: InProgressTasks, user_id: str, session_id: str
) -> ScoredTask:
    """Accept the current card and mark it in progress with its points fixed."""
    with span("swipe_service.accept"):
        session = store.get(session_id, user_id=user_id)
        accepted = session.accept()
        in_progress.begin(user_id=user_id, scored=accepted)
        logger.info(
            "Accepted task",
            extra={
                "user_id": user_id,
                "session_id": session_id,
                "task_id": accepted.task.id,
                "points": accepted.points,
            },
        )
        return accepted
