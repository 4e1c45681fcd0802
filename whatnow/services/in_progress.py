"""Tasks a user has accepted or started and not yet completed.

The registry holds the `ScoredTask` fixed when the task was accepted from a
swipe session or started from the task list. Completion claims that entry,
so the awarded points always come from here and never from the client.
"""

import logging
import threading

from whatnow.models.service_models import ScoredTask


logger = logging.getLogger(__name__)


class TaskNotStartedError(Exception):
    """Raised when completing a task that was never accepted or started."""


class InProgressTasks:
    """Application-owned registry keyed by (user id, task id)."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], ScoredTask] = {}
        self._lock = threading.Lock()

    def begin(self, *, user_id: str, scored: ScoredTask) -> None:
        """Mark a task in progress. Starting it again re-fixes its points."""
        with self._lock:
            self._entries[(user_id, scored.task.id)] = scored
        logger.debug("Task in progress", extra={"user_id": user_id, "task_id": scored.task.id})

    def claim(self, *, user_id: str, task_id: str) -> ScoredTask:
        """Remove and return the entry for a completion.

        Raises:
            TaskNotStartedError: If the task is not in progress for this user
        """
        with self._lock:
            scored = self._entries.pop((user_id, task_id), None)
        if scored is None:
            msg = f"Task {task_id} is not in progress: accept or start it before completing"
            raise TaskNotStartedError(msg)
        return scored

    def stop(self, *, user_id: str, task_id: str) -> bool:
        """Drop an entry without completing it; returns whether one existed."""
        with self._lock:
            return self._entries.pop((user_id, task_id), None) is not None

    def is_in_progress(self, *, user_id: str, task_id: str) -> bool:
        with self._lock:
            return (user_id, task_id) in self._entries

    def for_user(self, user_id: str) -> list[ScoredTask]:
        with self._lock:
            return [scored for (owner, _), scored in self._entries.items() if owner == user_id]

    def __len__(self) -> int:
        return len(self._entries)
