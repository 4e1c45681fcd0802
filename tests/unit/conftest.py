"""Pytest configuration and fixtures for unit tests."""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from whatnow.core.auth_client import AuthenticationError, AuthUser
from whatnow.domain.task import Task
from whatnow.main import create_app
from whatnow.services.in_progress import InProgressTasks
from whatnow.services.swipe_session import SwipeSessionStore
from tests.unit.mocks import USER_ID, InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


async def _mock_invalidate_cache() -> None:
    """Mock cache invalidation that does nothing."""


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches whatnow.core.db_client functions to use InMemoryDBClient.

    Also stubs out leaderboard cache invalidation so settlement never touches Redis.
    """
    monkeypatch.setattr("whatnow.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("whatnow.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("whatnow.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("whatnow.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("whatnow.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("whatnow.core.db_client.list_all_records", in_memory_db.list_all_records)
    monkeypatch.setattr("whatnow.core.db_client.get_first_record", in_memory_db.get_first_record)

    monkeypatch.setattr(
        "whatnow.services.analytics_service.invalidate_leaderboard_cache",
        _mock_invalidate_cache,
    )

    return in_memory_db


def build_task(task_id: str = "t1", **overrides: Any) -> Task:
    """Build a Task without touching storage."""
    data: dict[str, Any] = {
        "id": task_id,
        "user_id": USER_ID,
        "name": f"Task {task_id}",
        "type": "Chores",
        "time": 15,
        "energy": "low",
        "social": "low",
    }
    data.update(overrides)
    return Task(**data)


@pytest.fixture
def make_task():
    """Factory fixture for in-memory Task objects."""
    return build_task


@pytest.fixture
def seed_task(patched_db):
    """Factory fixture that stores a task record and returns it as a Task."""

    async def _seed(**overrides: Any) -> Task:
        data: dict[str, Any] = {
            "user_id": USER_ID,
            "name": "Do the dishes",
            "description": "",
            "type": "Chores",
            "time": 15,
            "energy": "low",
            "social": "low",
            "due_date": "",
            "recurring": "",
            "times_shown": 0,
            "times_skipped": 0,
            "times_completed": 0,
            "points_earned": 0,
        }
        data.update(overrides)
        record = await patched_db.create_record(collection="tasks", data=data)
        return Task(**record)

    return _seed


class FakeAuthClient:
    """Accepts tokens of the form `token-<user_id>`."""

    async def verify_token(self, token: str) -> AuthUser:
        if not token.startswith("token-"):
            raise AuthenticationError("Authentication failed: invalid token")
        user_id = token.removeprefix("token-")
        return AuthUser(id=user_id, email=f"{user_id}@example.com", name=user_id)


@pytest.fixture
def session_store() -> SwipeSessionStore:
    return SwipeSessionStore()


@pytest.fixture
def in_progress() -> InProgressTasks:
    return InProgressTasks()


@pytest.fixture
def api_client(patched_db) -> TestClient:
    """TestClient over a fresh app with fake auth and in-memory storage."""
    app = create_app(auth_client=FakeAuthClient())  # type: ignore[arg-type]
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer token-{USER_ID}"}
