# tests/test_tasks_api.py
from helpers import days_from_today


def _project(client, name="Task API project"):
    return client.post("/api/projects", json={"name": name}).json()["data"]


def _task(client, project_id, **fields):
    response = client.post("/api/tasks", json={"title": "API task", "projectId": project_id, **fields})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_project_task_lifecycle(client):
    project = client.post("/api/projects", json={"name": "Lifecycle"})
    assert project.status_code == 201
    project = project.json()["data"]
    assert project["status"] == "active"

    task = client.post("/api/tasks", json={"title": "T1", "projectId": project["id"]})
    assert task.status_code == 201
    task = task.json()["data"]
    assert task["status"] == "pending"
    assert task["priority"] == "medium"

    completed = client.patch(f"/api/tasks/{task['id']}/complete")
    assert completed.status_code == 200
    assert completed.json()["data"]["status"] == "completed"

    assert client.delete(f"/api/projects/{project['id']}").status_code == 200
    assert client.get(f"/api/tasks/{task['id']}").status_code == 404


def test_task_under_missing_project_is_404_and_not_persisted(client):
    response = client.post("/api/tasks", json={"title": "Orphan", "projectId": 4040})

    assert response.status_code == 404
    assert client.get("/api/tasks").json()["pagination"]["total"] == 0


def test_create_task_requires_project_id(client):
    response = client.post("/api/tasks", json={"title": "No project"})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "projectId"


def test_status_shortcuts(client):
    project = _project(client)
    task = _task(client, project["id"])

    assert client.patch(f"/api/tasks/{task['id']}/start").json()["data"]["status"] == "in_progress"
    assert client.patch(f"/api/tasks/{task['id']}/cancel").json()["data"]["status"] == "cancelled"
    assert client.patch("/api/tasks/999/complete").status_code == 404


def test_overdue_invariant_on_listed_tasks(client):
    project = _project(client)
    _task(client, project["id"], title="Late", dueDate=days_from_today(-2).isoformat())
    _task(client, project["id"], title="Late but done", dueDate=days_from_today(-2).isoformat(), status="completed")
    _task(client, project["id"], title="Future", dueDate=days_from_today(4).isoformat())

    for item in client.get("/api/tasks").json()["data"]:
        due = item["dueDate"]
        expected = bool(due) and due < days_from_today(0).isoformat() and item["status"] not in ("completed", "cancelled")
        assert item["isOverdue"] is expected

    overdue = client.get("/api/tasks/overdue").json()
    assert [t["title"] for t in overdue["data"]] == ["Late"]


def test_collection_routes_answer_without_redirect(client):
    project = _project(client)
    _task(client, project["id"])

    response = client.get("/api/tasks")
    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 1
    assert client.get("/api/github-repos").status_code == 200


def test_overdue_flag_values(client):
    project = _project(client)
    _task(client, project["id"], title="Late", dueDate=days_from_today(-2).isoformat())
    _task(client, project["id"], title="Future", dueDate=days_from_today(4).isoformat())

    empty = client.get("/api/tasks?overdue=")
    assert empty.status_code == 200
    assert empty.json()["pagination"]["total"] == 2

    assert [t["title"] for t in client.get("/api/tasks?overdue=true").json()["data"]] == ["Late"]
    assert client.get("/api/tasks?overdue=false").json()["pagination"]["total"] == 2

    nested = client.get(f"/api/projects/{project['id']}/tasks?overdue=")
    assert nested.status_code == 200
    assert len(nested.json()["data"]) == 2
    assert [t["title"] for t in client.get(f"/api/projects/{project['id']}/tasks?overdue=1").json()["data"]] == ["Late"]

    bad = client.get("/api/tasks?overdue=maybe")
    assert bad.status_code == 400
    assert bad.json()["errors"][0]["field"] == "overdue"


def test_update_invalidates_cached_detail(client):
    project = _project(client)
    task = _task(client, project["id"])
    client.get(f"/api/tasks/{task['id']}")

    client.put(f"/api/tasks/{task['id']}", json={"title": "Renamed task", "priority": "critical"})
    data = client.get(f"/api/tasks/{task['id']}").json()["data"]
    assert data["title"] == "Renamed task"
    assert data["priority"] == "critical"


def test_filters_and_query_validation(client):
    project = _project(client)
    _task(client, project["id"], title="Soon", dueDate=days_from_today(1).isoformat(), priority="high")
    _task(client, project["id"], title="Low", priority="low")

    assert [t["title"] for t in client.get("/api/tasks", params={"dueInDays": 3}).json()["data"]] == ["Soon"]
    assert [t["title"] for t in client.get("/api/tasks", params={"projectId": project["id"]}).json()["data"]] == ["Soon", "Low"]
    assert [t["title"] for t in client.get("/api/tasks/by-priority/low").json()["data"]] == ["Low"]
    assert len(client.get("/api/tasks/by-status/pending").json()["data"]) == 2
    assert [t["title"] for t in client.get("/api/tasks/due-in/2").json()["data"]] == ["Soon"]

    assert client.get("/api/tasks", params={"dueInDays": 400}).status_code == 400
    assert client.get("/api/tasks/by-status/blocked").status_code == 400
    assert client.get("/api/tasks/due-in/-1").status_code == 400


def test_stats_and_search(client):
    project = _project(client)
    _task(client, project["id"], title="Refactor parser")
    _task(client, project["id"], title="Write changelog", status="completed")

    stats = client.get("/api/tasks/stats", params={"projectId": project["id"]}).json()["data"]
    assert stats["totalTasks"] == 2
    assert stats["statusCounts"] == {"pending": 1, "completed": 1}

    found = client.get("/api/tasks/search", params={"q": "parser"}).json()
    assert found["meta"]["count"] == 1
    assert found["data"][0]["project"]["id"] == project["id"]


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["message"] == "Route not found: GET /api/nothing-here"


def test_health_and_banner(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["checks"] == {"database": "ok", "cache": "ok"}

    banner = client.get("/api")
    assert banner.json()["data"]["endpoints"]["projects"] == "/api/projects"


def test_cache_admin(client):
    project = _project(client)
    client.get(f"/api/projects/{project['id']}")

    stats = client.get("/api/cache/stats").json()["data"]
    assert stats["backend"] == "memory"
    assert stats["totalItems"] >= 1

    assert client.delete("/api/cache").status_code == 200
    assert client.get("/api/cache/stats").json()["data"]["totalItems"] == 0
