"""End-to-end tests through the HTTP API."""

import pytest

from conftest import TEST_PASSWORD, FailingNarrativeGenerator
from timetrack.services.daily_summary import NARRATIVE_UNAVAILABLE


async def _create_task(client, headers, title="Write report", **fields):
    response = await client.post("/tasks", json={"title": title, **fields}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _error_code(response):
    return response.json()["detail"]["error"]["code"]


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_register_login_and_me(client):
    response = await client.post(
        "/auth/register",
        json={"email": "carol@example.com", "name": "Carol", "password": "s3cret-pass"},
    )
    assert response.status_code == 201

    duplicate = await client.post(
        "/auth/register",
        json={"email": "carol@example.com", "name": "Carol", "password": "s3cret-pass"},
    )
    assert duplicate.status_code == 400

    login = await client.post("/auth/login", json={"email": "carol@example.com", "password": "s3cret-pass"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "carol@example.com"


@pytest.mark.asyncio
async def test_login_rejects_wrong_password(client, user):
    response = await client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD + "x"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_cannot_authenticate(client, user):
    login = await client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    refresh = login.json()["refresh_token"]

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {refresh}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    response = await client.get("/tasks")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_create_task_validates_title(client, auth_headers):
    response = await client.post("/tasks", json={"title": ""}, headers=auth_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_task_detail_and_history(client, auth_headers):
    task = await _create_task(client, auth_headers, priority="High")
    assert task["status"] == "Pending"
    assert [h["status"] for h in task["status_history"]] == ["Pending"]

    response = await client.patch(f"/tasks/{task['id']}/status", json={"status": "On Hold"}, headers=auth_headers)
    assert response.status_code == 200
    assert [h["status"] for h in response.json()["status_history"]] == ["Pending", "On Hold"]

    response = await client.patch(f"/tasks/{task['id']}/status", json={}, headers=auth_headers)
    assert response.status_code == 422
    assert _error_code(response) == "VALIDATION_ERROR"

    response = await client.post(f"/tasks/{task['id']}/remarks", json={"text": "Waiting on data"}, headers=auth_headers)
    assert response.status_code == 200
    assert [r["text"] for r in response.json()["remarks"]] == ["Waiting on data"]

    detail = await client.get(f"/tasks/{task['id']}", headers=auth_headers)
    assert detail.status_code == 200
    assert detail.json()["task"]["priority"] == "High"
    assert detail.json()["time_logs"] == []


@pytest.mark.asyncio
async def test_task_ownership_is_enforced(client, auth_headers, other_auth_headers):
    task = await _create_task(client, auth_headers)

    response = await client.get(f"/tasks/{task['id']}", headers=other_auth_headers)
    assert response.status_code == 403
    assert _error_code(response) == "FORBIDDEN"

    response = await client.post(f"/tasks/{task['id']}/time-logs:start", headers=other_auth_headers)
    assert response.status_code == 403

    response = await client.get("/tasks/9999", headers=auth_headers)
    assert response.status_code == 404
    assert _error_code(response) == "TASK_NOT_FOUND"


@pytest.mark.asyncio
async def test_tracking_flow(client, auth_headers):
    task = await _create_task(client, auth_headers)

    started = await client.post(f"/tasks/{task['id']}/time-logs:start", headers=auth_headers)
    assert started.status_code == 201
    log = started.json()
    assert log["is_active"] is True
    assert log["duration"] is None

    again = await client.post(f"/tasks/{task['id']}/time-logs:start", headers=auth_headers)
    assert again.status_code == 400
    assert _error_code(again) == "TIME_LOG_ALREADY_ACTIVE"

    active = await client.get("/time-logs/active", headers=auth_headers)
    assert [(item["id"], item["task"]["title"]) for item in active.json()] == [(log["id"], "Write report")]

    stopped = await client.post(f"/time-logs/{log['id']}:stop", headers=auth_headers)
    assert stopped.status_code == 200
    assert stopped.json()["is_active"] is False
    assert stopped.json()["duration"] >= 0

    stopped_again = await client.post(f"/time-logs/{log['id']}:stop", headers=auth_headers)
    assert stopped_again.status_code == 400
    assert _error_code(stopped_again) == "TIME_LOG_ALREADY_STOPPED"

    paused = await client.post(f"/time-logs/{log['id']}:pause", headers=auth_headers)
    assert paused.status_code == 400

    active = await client.get("/time-logs/active", headers=auth_headers)
    assert active.json() == []

    task_logs = await client.get(f"/tasks/{task['id']}/time-logs", headers=auth_headers)
    assert task_logs.json()["count"] == 1
    assert task_logs.json()["total_time_spent"] == stopped.json()["duration"]

    by_date = await client.get("/time-logs", params={"date": log["date"]}, headers=auth_headers)
    assert [item["id"] for item in by_date.json()] == [log["id"]]


@pytest.mark.asyncio
async def test_pause_puts_task_on_hold(client, auth_headers):
    task = await _create_task(client, auth_headers)
    log = (await client.post(f"/tasks/{task['id']}/time-logs:start", headers=auth_headers)).json()

    paused = await client.post(f"/time-logs/{log['id']}:pause", headers=auth_headers)
    assert paused.status_code == 200

    detail = await client.get(f"/tasks/{task['id']}", headers=auth_headers)
    assert detail.json()["task"]["status"] == "On Hold"
    assert [h["status"] for h in detail.json()["task"]["status_history"]] == ["Pending", "In Progress", "On Hold"]


@pytest.mark.asyncio
async def test_completed_task_cannot_be_started(client, auth_headers):
    task = await _create_task(client, auth_headers)
    await client.patch(f"/tasks/{task['id']}/status", json={"status": "Completed"}, headers=auth_headers)

    response = await client.post(f"/tasks/{task['id']}/time-logs:start", headers=auth_headers)

    assert response.status_code == 400
    assert _error_code(response) == "TASK_CLOSED"


@pytest.mark.asyncio
async def test_daily_summary_endpoints(client, auth_headers, other_auth_headers):
    task = await _create_task(client, auth_headers)
    idle = await _create_task(client, auth_headers, title="Idle")
    log = (await client.post(f"/tasks/{task['id']}/time-logs:start", headers=auth_headers)).json()
    await client.post(f"/time-logs/{log['id']}:stop", headers=auth_headers)

    response = await client.get(f"/daily-summaries/date/{log['date']}", headers=auth_headers)
    assert response.status_code == 200
    summary = response.json()
    assert summary["date"] == log["date"]
    assert [entry["task_id"] for entry in summary["tasks"]] == [task["id"], idle["id"]]
    assert summary["in_progress_tasks"] + summary["pending_tasks"] + summary["completed_tasks"] == 2

    generated = await client.post("/daily-summaries/generate", json={"date": log["date"]}, headers=auth_headers)
    assert generated.json()["id"] == summary["id"]

    by_id = await client.get(f"/daily-summaries/{summary['id']}", headers=auth_headers)
    assert by_id.status_code == 200
    assert by_id.json()["total_time_spent"] == summary["total_time_spent"]

    listed = await client.get("/daily-summaries", headers=auth_headers)
    assert [item["id"] for item in listed.json()] == [summary["id"]]

    forbidden = await client.get(f"/daily-summaries/{summary['id']}", headers=other_auth_headers)
    assert forbidden.status_code == 403

    narrative = await client.post(f"/daily-summaries/{summary['id']}:generate-summary", headers=auth_headers)
    assert narrative.status_code == 200
    assert narrative.json()["narrative_message"] == "Daily summary generated successfully"
    assert narrative.json()["summary"]["summary"].startswith("You spent 0h ")


@pytest.mark.asyncio
@pytest.mark.parametrize("narrative_generator", [FailingNarrativeGenerator()])
async def test_narrative_outage_returns_stored_summary(client, auth_headers, narrative_generator):
    task = await _create_task(client, auth_headers)
    log = (await client.post(f"/tasks/{task['id']}/time-logs:start", headers=auth_headers)).json()
    await client.post(f"/time-logs/{log['id']}:stop", headers=auth_headers)
    summary = (await client.get(f"/daily-summaries/date/{log['date']}", headers=auth_headers)).json()

    response = await client.post(f"/daily-summaries/{summary['id']}:generate-summary", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["narrative_message"] == NARRATIVE_UNAVAILABLE
    assert response.json()["summary"]["summary"] == ""
    assert response.json()["summary"]["tasks"][0]["task_id"] == task["id"]


@pytest.mark.asyncio
async def test_assisted_task_creation(client, auth_headers):
    response = await client.post("/tasks/assist", json={"user_input": "prepare demo"}, headers=auth_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["task"]["title"] == "prepare demo"
    assert body["title_message"] == "Task title taken from input"


@pytest.mark.asyncio
async def test_delete_task(client, auth_headers):
    task = await _create_task(client, auth_headers)
    log = (await client.post(f"/tasks/{task['id']}/time-logs:start", headers=auth_headers)).json()
    await client.post(f"/time-logs/{log['id']}:stop", headers=auth_headers)

    response = await client.delete(f"/tasks/{task['id']}", headers=auth_headers)
    assert response.status_code == 200

    assert (await client.get(f"/tasks/{task['id']}", headers=auth_headers)).status_code == 404
    summary = (await client.get(f"/daily-summaries/date/{log['date']}", headers=auth_headers)).json()
    assert summary["tasks"] == []
    assert summary["total_time_spent"] == 0


@pytest.mark.asyncio
async def test_refresh_issues_new_tokens(client, user):
    login = await client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD})

    refreshed = await client.post("/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
    assert refreshed.status_code == 200
    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {refreshed.json()['access_token']}"})
    assert me.json()["id"] == user.id

    misuse = await client.post("/auth/refresh", json={"refresh_token": login.json()["access_token"]})
    assert misuse.status_code == 401


@pytest.mark.asyncio
async def test_profile_and_password_updates(client, user, auth_headers):
    renamed = await client.put("/auth/me", json={"name": "Alice Doe"}, headers=auth_headers)
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Alice Doe"

    wrong = await client.put(
        "/auth/password",
        json={"current_password": "not-my-password", "new_password": "brand-new-pass"},
        headers=auth_headers,
    )
    assert wrong.status_code == 400

    changed = await client.put(
        "/auth/password",
        json={"current_password": TEST_PASSWORD, "new_password": "brand-new-pass"},
        headers=auth_headers,
    )
    assert changed.status_code == 200

    old = await client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    new = await client.post("/auth/login", json={"email": user.email, "password": "brand-new-pass"})
    assert old.status_code == 401
    assert new.status_code == 200
