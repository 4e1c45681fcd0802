"""HTTP-level tests for the routers and error mapping."""

import pytest

from tests.unit.mocks import OTHER_USER_ID, USER_ID


def _create_task(api_client, headers, **overrides):
    payload = {"name": "Water plants", "type": "Chores", "time": 5, "energy": "low", "social": "low"}
    payload.update(overrides)
    response = api_client.post("/tasks", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.unit
class TestAuth:
    def test_missing_token(self, api_client):
        assert api_client.get("/tasks").status_code == 401

    def test_invalid_token(self, api_client):
        response = api_client.get("/tasks", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_sign_out(self, api_client, auth_headers):
        assert api_client.post("/auth/signout", headers=auth_headers).status_code == 204


@pytest.mark.unit
class TestTasksApi:
    def test_create_and_list(self, api_client, auth_headers):
        created = _create_task(api_client, auth_headers)

        response = api_client.get("/tasks", headers=auth_headers)

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [created["id"]]
        assert created["times_shown"] == 0

    def test_empty_name_is_rejected(self, api_client, auth_headers):
        response = api_client.post(
            "/tasks", json={"name": " ", "energy": "low", "social": "low"}, headers=auth_headers
        )

        assert response.status_code == 422

    def test_other_users_task_is_forbidden(self, api_client, auth_headers):
        created = _create_task(api_client, auth_headers)
        other = {"Authorization": f"Bearer token-{OTHER_USER_ID}"}

        response = api_client.delete(f"/tasks/{created['id']}", headers=other)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ERR_PERMISSION_DENIED"

    def test_missing_task_is_404(self, api_client, auth_headers):
        response = api_client.get("/tasks/nope", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ERR_RECORD_NOT_FOUND"

    def test_import_and_calendar(self, api_client, auth_headers):
        response = api_client.post("/tasks/import", json={"text": "One\nTwo"}, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["imported"] == 2

        _create_task(api_client, auth_headers, due_date="2000-01-01")
        calendar = api_client.get("/tasks/calendar", headers=auth_headers).json()

        assert [t["due_date"] for t in calendar["overdue"]] == ["2000-01-01"]
        assert calendar["upcoming"] == []

    def test_empty_import_is_400(self, api_client, auth_headers):
        response = api_client.post("/tasks/import", json={"text": "  "}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ERR_VALIDATION"

    def test_start_then_complete(self, api_client, auth_headers):
        created = _create_task(api_client, auth_headers, time=30, energy="high")

        started = api_client.post(f"/tasks/{created['id']}/start", headers=auth_headers).json()
        response = api_client.post(
            f"/tasks/{created['id']}/complete", json={"elapsed_seconds": 95}, headers=auth_headers
        )

        assert started["points"] == 40
        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["time_spent"] == 1.58
        assert body["profile"]["total_points"] == 40

        profile = api_client.get("/profile", headers=auth_headers).json()
        assert profile["profile"]["total_tasks_completed"] == 1
        assert profile["rank"]["current_rank"] == "Task Newbie"
        assert profile["rank"]["progress"] == 40

        history = api_client.get("/profile/completed", headers=auth_headers).json()
        assert [c["points"] for c in history] == [40]

    def test_client_points_are_ignored(self, api_client, auth_headers):
        created = _create_task(api_client, auth_headers)
        api_client.post(f"/tasks/{created['id']}/start", headers=auth_headers)

        response = api_client.post(
            f"/tasks/{created['id']}/complete", json={"points": 1_000_000}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["points"] == 15
        assert response.json()["profile"]["total_points"] == 15

    def test_complete_without_start_is_409(self, api_client, auth_headers, patched_db):
        created = _create_task(api_client, auth_headers)

        response = api_client.post(f"/tasks/{created['id']}/complete", json={"points": 40}, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ERR_TASK_NOT_STARTED"
        assert patched_db.records("completed_tasks") == []

    def test_second_completion_is_409(self, api_client, auth_headers):
        created = _create_task(api_client, auth_headers)
        api_client.post(f"/tasks/{created['id']}/start", headers=auth_headers)

        first = api_client.post(f"/tasks/{created['id']}/complete", json={}, headers=auth_headers)
        second = api_client.post(f"/tasks/{created['id']}/complete", json={}, headers=auth_headers)

        assert first.status_code == 200
        assert second.status_code == 409

    def test_other_user_cannot_complete_my_started_task(self, api_client, auth_headers):
        created = _create_task(api_client, auth_headers)
        api_client.post(f"/tasks/{created['id']}/start", headers=auth_headers)
        other = {"Authorization": f"Bearer token-{OTHER_USER_ID}"}

        response = api_client.post(f"/tasks/{created['id']}/complete", json={}, headers=other)

        assert response.status_code == 409
        assert len(api_client.get("/tasks/in-progress", headers=auth_headers).json()) == 1

    def test_in_progress_list_and_stop(self, api_client, auth_headers):
        created = _create_task(api_client, auth_headers)
        api_client.post(f"/tasks/{created['id']}/start", headers=auth_headers)

        listed = api_client.get("/tasks/in-progress", headers=auth_headers).json()
        assert [(t["task"]["id"], t["points"]) for t in listed] == [(created["id"], 15)]

        assert api_client.delete(f"/tasks/{created['id']}/start", headers=auth_headers).status_code == 204
        assert api_client.get("/tasks/in-progress", headers=auth_headers).json() == []
        response = api_client.post(f"/tasks/{created['id']}/complete", json={}, headers=auth_headers)
        assert response.status_code == 409

    def test_partial_settlement_is_200(self, api_client, auth_headers, patched_db):
        created = _create_task(api_client, auth_headers)
        api_client.post(f"/tasks/{created['id']}/start", headers=auth_headers)
        patched_db.fail_on.add(("update_record", "profiles"))

        response = api_client.post(f"/tasks/{created['id']}/complete", json={}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["success"] is False


@pytest.mark.unit
class TestWhatNextApi:
    def test_requires_a_selection(self, api_client, auth_headers):
        response = api_client.post("/what-next/sessions", json={}, headers=auth_headers)

        assert response.status_code == 422

    def test_swipe_flow(self, api_client, auth_headers):
        _create_task(api_client, auth_headers, name="First")
        _create_task(api_client, auth_headers, name="Second")

        session = api_client.post("/what-next/sessions", json={"max_time": 15}, headers=auth_headers).json()
        assert session["state"] == "presenting"
        assert session["total"] == 2

        skipped = api_client.post(f"/what-next/sessions/{session['id']}/skip", headers=auth_headers).json()
        assert skipped["position"] == 1

        accepted = api_client.post(f"/what-next/sessions/{session['id']}/accept", headers=auth_headers)
        assert accepted.status_code == 200
        assert accepted.json()["points"] == 15

        task_id = accepted.json()["task"]["id"]
        completed = api_client.post(f"/tasks/{task_id}/complete", json={}, headers=auth_headers)
        assert completed.status_code == 200
        assert completed.json()["points"] == 15

        again = api_client.post(f"/what-next/sessions/{session['id']}/skip", headers=auth_headers)
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "ERR_INVALID_SESSION_TRANSITION"

    def test_exhausted_session_offers_suggestions(self, api_client, auth_headers):
        session = api_client.post("/what-next/sessions", json={"max_energy": "low"}, headers=auth_headers).json()

        assert session["state"] == "exhausted"
        assert len(session["suggestions"]) == 12

    def test_session_of_other_user_is_404(self, api_client, auth_headers):
        session = api_client.post("/what-next/sessions", json={"max_time": 5}, headers=auth_headers).json()
        other = {"Authorization": f"Bearer token-{OTHER_USER_ID}"}

        assert api_client.get(f"/what-next/sessions/{session['id']}", headers=other).status_code == 404


@pytest.mark.unit
class TestGroupsApi:
    def test_create_join_and_leaderboard(self, api_client, auth_headers):
        group = api_client.post("/groups", json={"name": "Flatmates"}, headers=auth_headers).json()
        other = {"Authorization": f"Bearer token-{OTHER_USER_ID}"}

        joined = api_client.post("/groups/join", json={"invite_code": group["invite_code"].lower()}, headers=other)
        assert joined.status_code == 200

        duplicate = api_client.post("/groups/join", json={"invite_code": group["invite_code"]}, headers=other)
        assert duplicate.status_code == 400
        assert duplicate.json()["error"]["code"] == "ERR_ALREADY_MEMBER"

        task = _create_task(api_client, auth_headers)
        api_client.post(f"/tasks/{task['id']}/start", headers=auth_headers)
        api_client.post(f"/tasks/{task['id']}/complete", json={}, headers=auth_headers)

        board = api_client.get(f"/groups/{group['id']}/leaderboard", headers=other).json()
        assert [(e["user_id"], e["weekly_points"]) for e in board] == [(USER_ID, 15)]

        assert api_client.delete(f"/groups/{group['id']}/membership", headers=other).status_code == 204
        assert api_client.get("/groups", headers=other).json() == []

    def test_bad_invite_code(self, api_client, auth_headers):
        response = api_client.post("/groups/join", json={"invite_code": "??"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ERR_INVALID_INVITE_CODE"


@pytest.mark.unit
def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
