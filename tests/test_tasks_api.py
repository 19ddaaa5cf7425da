# tests/test_tasks_api.py

from __future__ import annotations

from taskflow.exceptions import UpstreamDegraded
from taskflow.models import Task
from taskflow.services.assistant import DEFAULT_BREAKDOWN

from .fakes import ExplodingAssistant


def _create(client, headers, **body):
    body.setdefault("title", "Write tests")
    response = client.post("/tasks", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_requires_bearer_token(client):
    assert client.get("/tasks").status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/tasks", headers=bad).status_code == 401


def test_create_applies_defaults(client, auth_headers):
    task = _create(client, auth_headers())
    assert task["status"] == "todo"
    assert task["priority"] == "medium"
    assert task["owner_id"] == "owner-1"
    assert task["time_spent"] == 0
    assert task["progress"] == 0
    assert task["progress_percent"] == 0
    assert task["dependencies"] == []
    assert task["ai_meta"] is None


def test_create_requires_title(client, auth_headers):
    assert client.post("/tasks", json={"title": "   "}, headers=auth_headers()).status_code == 422
    assert client.post("/tasks", json={"description": "no title"}, headers=auth_headers()).status_code == 422


def test_create_with_subtasks_reports_progress(client, auth_headers):
    task = _create(
        client,
        auth_headers(),
        subtasks=[
            {"title": "Outline", "completed": True, "order": 0},
            {"title": "Draft", "order": 1},
            {"title": "Polish", "order": 1},
            {"title": "Publish", "completed": True, "order": 3},
        ],
    )
    assert [s["title"] for s in task["subtasks"]] == ["Outline", "Draft", "Polish", "Publish"]
    assert task["progress"] == 0.5
    assert task["progress_percent"] == 50


def test_list_is_owner_scoped_and_newest_first(client, auth_headers):
    first = _create(client, auth_headers(), title="First")
    second = _create(client, auth_headers(), title="Second")
    _create(client, auth_headers("owner-2"), title="Someone else's")

    listed = client.get("/tasks", headers=auth_headers()).json()
    assert [t["id"] for t in listed] == [second["id"], first["id"]]


def test_unknown_is_404_and_foreign_is_401(client, auth_headers):
    task = _create(client, auth_headers())

    missing = client.get("/tasks/9999", headers=auth_headers())
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Task not found"

    for method in ("get", "put", "delete"):
        kwargs = {"json": {"title": "stolen"}} if method == "put" else {}
        response = getattr(client, method)(f"/tasks/{task['id']}", headers=auth_headers("owner-2"), **kwargs)
        assert response.status_code == 401


def test_partial_update_keeps_other_fields(client, auth_headers):
    task = _create(client, auth_headers(), description="keep me", tags=["a"], priority="high")

    updated = client.put(f"/tasks/{task['id']}", json={"status": "in-progress"}, headers=auth_headers()).json()
    assert updated["status"] == "in-progress"
    assert updated["description"] == "keep me"
    assert updated["tags"] == ["a"]
    assert updated["priority"] == "high"

    updated = client.put(
        f"/tasks/{task['id']}",
        json={"subtasks": [{"title": "only one", "completed": True}]},
        headers=auth_headers(),
    ).json()
    assert updated["status"] == "in-progress"
    assert updated["progress"] == 1


def test_update_cannot_overwrite_tracked_time(client, auth_headers, db_session):
    task = _create(client, auth_headers())
    db_task = db_session.get(Task, task["id"])
    db_task.time_spent = 40
    db_session.commit()

    response = client.put(f"/tasks/{task['id']}", json={"time_spent": 999, "title": "Renamed"}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert response.json()["time_spent"] == 40


def test_duplicate_dependencies_collapse(client, auth_headers):
    a = _create(client, auth_headers(), title="A")
    b = _create(client, auth_headers(), title="B")

    task = _create(client, auth_headers(), dependencies=[a["id"], a["id"], b["id"], a["id"]])
    assert task["dependencies"] == [a["id"], b["id"]]

    view = client.get(f"/tasks/{task['id']}/dependencies", headers=auth_headers()).json()
    assert [d["title"] for d in view["dependencies"]] == ["A", "B"]

    updated = client.put(
        f"/tasks/{task['id']}", json={"dependencies": [b["id"], b["id"], a["id"]]}, headers=auth_headers()
    ).json()
    assert updated["dependencies"] == [b["id"], a["id"]]


def test_update_rejects_null_title_and_bad_status(client, auth_headers):
    task = _create(client, auth_headers())
    assert client.put(f"/tasks/{task['id']}", json={"title": None}, headers=auth_headers()).status_code == 422
    assert client.put(f"/tasks/{task['id']}", json={"status": "blocked"}, headers=auth_headers()).status_code == 422


def test_status_can_jump_from_done_to_todo(client, auth_headers):
    task = _create(client, auth_headers(), status="done")
    response = client.patch(f"/tasks/{task['id']}/status", json={"status": "todo"}, headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["status"] == "todo"


def test_done_is_not_blocked_by_open_dependencies(client, auth_headers):
    blocker = _create(client, auth_headers(), title="Blocker")
    task = _create(client, auth_headers(), dependencies=[blocker["id"]])
    response = client.patch(f"/tasks/{task['id']}/status", json={"status": "done"}, headers=auth_headers())
    assert response.json()["status"] == "done"


def test_board_groups_columns(client, auth_headers):
    _create(client, auth_headers(), title="A")
    _create(client, auth_headers(), title="B", status="in-progress")
    _create(client, auth_headers(), title="C", status="done")

    board = client.get("/tasks/board", headers=auth_headers()).json()
    assert [t["title"] for t in board["todo"]] == ["A"]
    assert [t["title"] for t in board["in-progress"]] == ["B"]
    assert [t["title"] for t in board["done"]] == ["C"]


def test_dependency_edges_and_view(client, auth_headers):
    parent = _create(client, auth_headers(), title="Epic")
    dep = _create(client, auth_headers(), title="Design")
    task = _create(client, auth_headers(), title="Build", parent_task_id=parent["id"])

    url = f"/tasks/{task['id']}/dependencies"
    for _ in range(2):
        added = client.post(url, json={"dependsOnId": dep["id"]}, headers=auth_headers())
        assert added.status_code == 200
    assert added.json()["dependencies"] == [dep["id"]]

    view = client.get(url, headers=auth_headers()).json()
    assert view["task"]["title"] == "Build"
    assert [d["title"] for d in view["dependencies"]] == ["Design"]
    assert view["parent"]["title"] == "Epic"
    assert view["missing"] == []

    removed = client.delete(f"{url}/{dep['id']}", headers=auth_headers())
    assert removed.json()["dependencies"] == []
    assert client.delete(f"{url}/{dep['id']}", headers=auth_headers()).status_code == 200


def test_cycle_allowed_unless_enforced(client, auth_headers):
    a = _create(client, auth_headers(), title="A")
    b = _create(client, auth_headers(), title="B", dependencies=[a["id"]])

    enforced = client.post(
        f"/tasks/{a['id']}/dependencies?enforce_acyclic=true", json={"depends_on_id": b["id"]}, headers=auth_headers()
    )
    assert enforced.status_code == 400
    assert client.get(f"/tasks/{a['id']}", headers=auth_headers()).json()["dependencies"] == []

    permissive = client.post(f"/tasks/{a['id']}/dependencies", json={"depends_on_id": b["id"]}, headers=auth_headers())
    assert permissive.json()["dependencies"] == [b["id"]]


def test_delete_leaves_dangling_reference_by_default(client, auth_headers):
    dep = _create(client, auth_headers(), title="Gone soon")
    task = _create(client, auth_headers(), dependencies=[dep["id"]])

    assert client.delete(f"/tasks/{dep['id']}", headers=auth_headers()).json() == {"message": "Task removed"}
    assert client.get(f"/tasks/{dep['id']}", headers=auth_headers()).status_code == 404

    view = client.get(f"/tasks/{task['id']}/dependencies", headers=auth_headers())
    assert view.status_code == 200
    assert view.json()["dependencies"] == []
    assert view.json()["missing"] == [dep["id"]]


def test_delete_with_sweep_clears_references(client, auth_headers):
    target = _create(client, auth_headers(), title="Target")
    child = _create(client, auth_headers(), parent_task_id=target["id"], dependencies=[target["id"]])

    client.delete(f"/tasks/{target['id']}?sweep_references=true", headers=auth_headers())

    refreshed = client.get(f"/tasks/{child['id']}", headers=auth_headers()).json()
    assert refreshed["dependencies"] == []
    assert refreshed["parent_task_id"] is None


def test_attachment_metadata(client, auth_headers):
    task = _create(client, auth_headers())
    url = f"/tasks/{task['id']}/attachments"
    body = {"filename": "a1b2.pdf", "original_name": "plan.pdf", "mime_type": "application/pdf",
            "size": 2048, "url": "/uploads/a1b2.pdf"}

    created = client.post(url, json=body, headers=auth_headers())
    assert created.status_code == 201
    attachment = created.json()
    assert attachment["original_name"] == "plan.pdf"

    fetched = client.get(f"/tasks/{task['id']}", headers=auth_headers()).json()
    assert [a["id"] for a in fetched["attachments"]] == [attachment["id"]]

    assert client.delete(f"{url}/{attachment['id']}", headers=auth_headers()).status_code == 200
    assert client.delete(f"{url}/{attachment['id']}", headers=auth_headers()).status_code == 404
    assert client.get(f"/tasks/{task['id']}", headers=auth_headers()).json()["attachments"] == []


def test_attachment_validation(client, auth_headers):
    task = _create(client, auth_headers())
    url = f"/tasks/{task['id']}/attachments"
    base = {"filename": "x", "mime_type": "application/octet-stream", "url": "/uploads/x"}

    assert client.post(url, json={**base, "size": -1}, headers=auth_headers()).status_code == 400
    assert client.post(url, json={**base, "size": 10 ** 12}, headers=auth_headers()).status_code == 400
    blocked = {**base, "filename": "setup.exe", "size": 10}
    assert client.post(url, json=blocked, headers=auth_headers()).status_code == 400


def test_breakdown_on_create_is_stored_verbatim(client, auth_headers, assistant):
    assistant.response = {"steps": [{"step": "x", "estimateHours": "?", "difficulty": "weird"}], "extra": True}

    task = client.post("/tasks?breakdown=true", json={"title": "Plan trip", "tags": ["travel"]},
                       headers=auth_headers()).json()

    assert task["ai_meta"] == assistant.response
    assert assistant.calls[0]["title"] == "Plan trip"
    assert assistant.calls[0]["tags"] == ["travel"]


def test_degraded_assistant_never_fails_task_save(client, auth_headers, assistant):
    assistant.error = UpstreamDegraded("down")

    created = client.post("/tasks?breakdown=true", json={"title": "Still saved"}, headers=auth_headers())
    assert created.status_code == 201
    assert created.json()["ai_meta"] == DEFAULT_BREAKDOWN

    updated = client.put(f"/tasks/{created.json()['id']}?breakdown=true", json={"title": "Renamed"},
                         headers=auth_headers())
    assert updated.status_code == 200
    assert updated.json()["title"] == "Renamed"


def test_unexpected_assistant_crash_keeps_task(client, auth_headers, assistant, monkeypatch):
    monkeypatch.setattr(assistant, "breakdown", ExplodingAssistant().breakdown)

    created = client.post("/tasks?breakdown=true", json={"title": "Survives"}, headers=auth_headers())
    assert created.status_code == 201
    assert created.json()["title"] == "Survives"
    assert created.json()["ai_meta"] is None


def test_breakdown_endpoint_for_existing_task(client, auth_headers, assistant):
    task = _create(client, auth_headers())
    response = client.post(f"/tasks/{task['id']}/breakdown", headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["ai_meta"] == assistant.response
    assert client.post(f"/tasks/{task['id']}/breakdown", headers=auth_headers("owner-2")).status_code == 401


def test_ai_breakdown_does_not_store(client, auth_headers, assistant):
    response = client.post("/ai/breakdown", json={"title": "Loose idea"}, headers=auth_headers())
    assert response.status_code == 200
    assert response.json() == assistant.response
    assert client.get("/tasks", headers=auth_headers()).json() == []


def test_due_today_alert_disappears_when_done(client, auth_headers):
    task = _create(client, auth_headers(), title="Ship it", due_date="2030-01-10T09:00:00")
    url = "/notifications?at=2030-01-10T12:00:00"

    alerts = client.get(url, headers=auth_headers()).json()
    assert [(a["type"], a["target_task_id"], a["message"]) for a in alerts] == [("today", task["id"], "Ship it")]
    assert client.get(url, headers=auth_headers("owner-2")).json() == []

    client.put(f"/tasks/{task['id']}", json={"status": "done"}, headers=auth_headers())
    assert client.get(url, headers=auth_headers()).json() == []


def test_aware_due_date_is_normalized_to_utc(client, auth_headers):
    task = _create(client, auth_headers(), due_date="2030-01-10T01:00:00+02:00")
    assert task["due_date"].startswith("2030-01-09T23:00:00")
