"""Swipe session state machine.

A session walks a ranked queue one card at a time. Presenting a card for the
first time, and skipping it, produce counter effects that the caller must
persist in order (see `swipe_service`). The session itself performs no I/O.

States:
    PRESENTING -> (skip) -> PRESENTING | EXHAUSTED
    PRESENTING -> (accept) -> ACCEPTED
ACCEPTED and EXHAUSTED are terminal.
"""

import logging
import threading
import uuid
from collections.abc import Sequence
from enum import StrEnum
from typing import NamedTuple

from whatnow.domain.task import Task
from whatnow.models.service_models import ScoredTask, SwipeSessionView
from whatnow.services.scoring import calculate_points


logger = logging.getLogger(__name__)

FALLBACK_SUGGESTIONS: tuple[str, ...] = (
    "Take a 5-minute walk",
    "Do some stretches",
    "Drink a glass of water",
    "Tidy one surface",
    "Write 3 things you're grateful for",
    "Take 10 deep breaths",
    "Listen to one song",
    "Sort through 5 emails",
    "Water a plant",
    "Wipe down a counter",
    "Set a 2-minute timer and just start",
    "Text someone you appreciate",
)


class SwipeState(StrEnum):
    PRESENTING = "presenting"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"


class CounterEffect(NamedTuple):
    """A pending `+1` on one of a task's counters."""

    task_id: str
    counter: str


class InvalidSessionTransitionError(Exception):
    """Raised when skip/accept is attempted on a finished session."""


class SessionNotFoundError(Exception):
    """Raised when a session id is unknown or belongs to another user."""


def score_task(task: Task) -> ScoredTask:
    """Pair a task with its current point value."""
    return ScoredTask(task=task, points=calculate_points(task.time, task.social, task.energy))


class SwipeSession:
    """Accept/skip walk over a queue fixed at creation time."""

    def __init__(self, *, user_id: str, queue: Sequence[Task], session_id: str | None = None) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.user_id = user_id
        self._queue: tuple[Task, ...] = tuple(queue)
        self._index = 0
        self._shown: set[str] = set()
        self._written: set[CounterEffect] = set()
        self._accepted: ScoredTask | None = None
        self.state = SwipeState.PRESENTING if self._queue else SwipeState.EXHAUSTED

    @property
    def position(self) -> int:
        return self._index

    @property
    def queue(self) -> tuple[Task, ...]:
        return self._queue

    @property
    def shown(self) -> frozenset[str]:
        return frozenset(self._shown)

    @property
    def accepted(self) -> ScoredTask | None:
        return self._accepted

    @property
    def current_task(self) -> Task | None:
        """The card on screen, or None once the session has finished."""
        if self.state is not SwipeState.PRESENTING:
            return None
        return self._queue[self._index]

    def start(self) -> list[CounterEffect]:
        """Present the first card. An empty queue starts exhausted with no effects."""
        if self.state is not SwipeState.PRESENTING:
            return []
        return self._present()

    def _present(self) -> list[CounterEffect]:
        task = self._queue[self._index]
        if task.id in self._shown:
            return []
        self._shown.add(task.id)
        return [CounterEffect(task.id, "times_shown")]

    def _require_presenting(self, action: str) -> Task:
        if self.state is not SwipeState.PRESENTING:
            msg = f"Cannot {action}: session {self.id} is {self.state}"
            raise InvalidSessionTransitionError(msg)
        return self._queue[self._index]

    def plan_skip(self) -> list[CounterEffect]:
        """Effects of skipping the current card, without changing the session.

        Effects already written by an earlier, failed attempt at this same
        skip are left out so a retry does not count them twice.
        """
        task = self._require_presenting("skip")
        effects = [CounterEffect(task.id, "times_skipped")]
        following = self._index + 1
        if following < len(self._queue) and self._queue[following].id not in self._shown:
            effects.append(CounterEffect(self._queue[following].id, "times_shown"))
        return [effect for effect in effects if effect not in self._written]

    def mark_written(self, effect: CounterEffect) -> None:
        """Record that one effect of the pending skip has been persisted."""
        self._written.add(effect)

    def commit_skip(self) -> None:
        """Advance past the current card once its effects are persisted."""
        self._require_presenting("skip")
        self._written.clear()
        self._index += 1

        if self._index >= len(self._queue):
            self.state = SwipeState.EXHAUSTED
            logger.debug("Swipe session exhausted", extra={"session_id": self.id, "cards": len(self._queue)})
            return

        self._shown.add(self._queue[self._index].id)

    def skip(self) -> list[CounterEffect]:
        """Skip the current card and present the next one, if any."""
        effects = self.plan_skip()
        self.commit_skip()
        return effects

    def accept(self) -> ScoredTask:
        """Accept the current card; its points are fixed here and carried to settlement."""
        task = self._require_presenting("accept")
        self._accepted = score_task(task)
        self.state = SwipeState.ACCEPTED
        return self._accepted

    def to_view(self) -> SwipeSessionView:
        current = self.current_task
        return SwipeSessionView(
            id=self.id,
            state=self.state,
            position=self._index,
            total=len(self._queue),
            current=score_task(current) if current else None,
            accepted=self._accepted,
            suggestions=list(FALLBACK_SUGGESTIONS) if self.state is SwipeState.EXHAUSTED else [],
        )


class SwipeSessionStore:
    """In-process registry of live swipe sessions, one per user.

    Starting a new session replaces the user's previous one. Abandoned
    sessions need no cleanup: counters already written stay written.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SwipeSession] = {}
        self._by_user: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, session: SwipeSession) -> None:
        with self._lock:
            previous = self._by_user.get(session.user_id)
            if previous is not None:
                self._sessions.pop(previous, None)
            self._sessions[session.id] = session
            self._by_user[session.user_id] = session.id

    def get(self, session_id: str, *, user_id: str) -> SwipeSession:
        """Look up a session owned by `user_id`."""
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None or session.user_id != user_id:
            msg = f"Swipe session not found: {session_id}"
            raise SessionNotFoundError(msg)
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None and self._by_user.get(session.user_id) == session_id:
                del self._by_user[session.user_id]

    def __len__(self) -> int:
        return len(self._sessions)
