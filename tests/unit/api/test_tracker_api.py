"""Tracker API endpoint tests

The app runs on an in-memory document store through dependency overrides;
callers authenticate with real signed access tokens.
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from spaceborn.core.security import create_access_token
from spaceborn.models.group import GroupMember
from spaceborn.repositories.store import MemoryDocumentStore
from spaceborn.services.group_service import GroupService
from spaceborn.services.topic_aggregator import TopicAggregator


# ===== Fixtures =====


@pytest.fixture
def api_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
async def api_client(api_store: MemoryDocumentStore):
    """Async client on the app, backed by the memory store"""
    from spaceborn.api.dependencies import get_document_store, get_topic_aggregator
    from spaceborn.main import app

    aggregator = TopicAggregator(api_store, max_retries=3)
    app.dependency_overrides[get_document_store] = lambda: api_store
    app.dependency_overrides[get_topic_aggregator] = lambda: aggregator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.pop(get_document_store, None)
    app.dependency_overrides.pop(get_topic_aggregator, None)


def auth(user_id: str, role: str, name: str | None = None) -> dict:
    token = create_access_token(user_id, role, name)
    return {"Authorization": f"Bearer {token}"}


ADMIN = auth("admin-1", "admin", "Admin")
LEAD = auth("core-1", "core_employee", "Core Employee")
EMPLOYEE = auth("emp-1", "normal_employee", "Employee One")
INTERN = auth("intern-1", "intern", "Intern One")


@pytest.fixture
async def group_id(api_store: MemoryDocumentStore) -> str:
    group = await GroupService(api_store).create_group_with_members(
        "Engineering",
        [
            GroupMember(group_id="", user_id="core-1", role="core_employee", is_lead=True),
            GroupMember(group_id="", user_id="emp-1", role="normal_employee"),
            GroupMember(group_id="", user_id="intern-1", role="intern"),
        ],
    )
    return group.id


# ===== Health / auth =====


@pytest.mark.asyncio
async def test_health(api_client: AsyncClient):
    response = await api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_missing_token(api_client: AsyncClient):
    response = await api_client.get("/api/v1/topics")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token(api_client: AsyncClient):
    response = await api_client.get(
        "/api/v1/topics", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "INVALID_TOKEN"


# ===== Topics / Subtopics =====


@pytest.mark.asyncio
async def test_topic_progress_flow(api_client: AsyncClient):
    response = await api_client.post(
        "/api/v1/topics", json={"title": "Auth Module", "assignedGroupIds": ["g1"]}, headers=ADMIN
    )
    assert response.status_code == 201
    topic = response.json()
    assert topic["progress"] == 0
    assert topic["status"] == "pending"
    assert topic["totalSubtopics"] == 0
    assert topic["assignedGroupIds"] == ["g1"]
    topic_id = topic["id"]

    subtopic_ids = []
    for title in ("Login", "Logout", "Reset", "Sessions"):
        response = await api_client.post(
            f"/api/v1/topics/{topic_id}/subtopics", json={"title": title}, headers=ADMIN
        )
        assert response.status_code == 201
        subtopic_ids.append(response.json()["id"])

    response = await api_client.post(
        f"/api/v1/topics/{topic_id}/subtopics/{subtopic_ids[0]}/toggle",
        json={"currentStatus": "pending"},
        headers=EMPLOYEE,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    topic = (await api_client.get(f"/api/v1/topics/{topic_id}", headers=ADMIN)).json()
    assert (topic["completedSubtopics"], topic["totalSubtopics"]) == (1, 4)
    assert topic["progress"] == 25
    assert topic["status"] == "in_progress"

    response = await api_client.get(f"/api/v1/topics/{topic_id}/subtopics", headers=ADMIN)
    assert [s["title"] for s in response.json()["items"]] == ["Login", "Logout", "Reset", "Sessions"]

    response = await api_client.delete(
        f"/api/v1/topics/{topic_id}/subtopics/{subtopic_ids[1]}", headers=ADMIN
    )
    assert response.status_code == 204

    topic = (await api_client.post(f"/api/v1/topics/{topic_id}/recompute", headers=ADMIN)).json()
    assert (topic["completedSubtopics"], topic["totalSubtopics"], topic["progress"]) == (1, 3, 33)


@pytest.mark.asyncio
async def test_topic_rollup_not_editable(api_client: AsyncClient):
    topic_id = (
        await api_client.post("/api/v1/topics", json={"title": "Auth"}, headers=ADMIN)
    ).json()["id"]

    response = await api_client.patch(
        f"/api/v1/topics/{topic_id}", json={"progress": 100}, headers=ADMIN
    )
    assert response.status_code == 422

    response = await api_client.patch(
        f"/api/v1/topics/{topic_id}", json={"title": "Auth v2"}, headers=ADMIN
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Auth v2"
    assert response.json()["progress"] == 0


@pytest.mark.asyncio
async def test_topic_delete_cascades(api_client: AsyncClient):
    topic_id = (
        await api_client.post("/api/v1/topics", json={"title": "Auth"}, headers=ADMIN)
    ).json()["id"]
    await api_client.post(f"/api/v1/topics/{topic_id}/subtopics", json={"title": "a"}, headers=ADMIN)

    response = await api_client.delete(f"/api/v1/topics/{topic_id}", headers=ADMIN)
    assert response.status_code == 204

    response = await api_client.get(f"/api/v1/topics/{topic_id}", headers=ADMIN)
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NOT_FOUND"

    response = await api_client.get(f"/api/v1/topics/{topic_id}/subtopics", headers=ADMIN)
    assert response.json()["items"] == []

    response = await api_client.post(f"/api/v1/topics/{topic_id}/recompute", headers=ADMIN)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_subtopic_under_missing_topic(api_client: AsyncClient):
    response = await api_client.post(
        "/api/v1/topics/missing/subtopics", json={"title": "a"}, headers=ADMIN
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_blank_topic_title(api_client: AsyncClient):
    response = await api_client.post("/api/v1/topics", json={"title": "   "}, headers=ADMIN)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "BAD_REQUEST"


# ===== Resources =====


@pytest.mark.asyncio
async def test_resource_sharing(api_client: AsyncClient, group_id: str):
    response = await api_client.post(
        "/api/v1/resources",
        json={
            "title": "Style guide",
            "url": "https://example.com/style",
            "groupId": group_id,
            "target": {"mode": "individuals", "memberIds": ["emp-1"]},
        },
        headers=LEAD,
    )
    assert response.status_code == 201
    assert response.json()["assignedTo"] == ["emp-1"]
    assert response.json()["targetAudience"] == "individuals"

    response = await api_client.post(
        "/api/v1/resources",
        json={
            "title": "Runbook",
            "url": "https://example.com/runbook",
            "groupId": group_id,
            "target": {"mode": "all_my_groups"},
        },
        headers=LEAD,
    )
    assert response.status_code == 201
    assert response.json()["assignedToGroups"] == [group_id]

    mine = (await api_client.get("/api/v1/resources/mine", headers=EMPLOYEE)).json()["items"]
    assert sorted(r["title"] for r in mine) == ["Runbook", "Style guide"]

    intern_items = (await api_client.get("/api/v1/resources/mine", headers=INTERN)).json()["items"]
    assert [r["title"] for r in intern_items] == ["Runbook"]

    group_items = (
        await api_client.get(f"/api/v1/resources/groups/{group_id}", headers=LEAD)
    ).json()["items"]
    assert len(group_items) == 2


@pytest.mark.asyncio
async def test_resource_empty_selection(api_client: AsyncClient, group_id: str):
    response = await api_client.post(
        "/api/v1/resources",
        json={
            "title": "Style guide",
            "url": "https://example.com",
            "groupId": group_id,
            "target": {"mode": "individuals", "memberIds": []},
        },
        headers=LEAD,
    )

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Select at least one member"


@pytest.mark.asyncio
async def test_resource_unknown_mode(api_client: AsyncClient, group_id: str):
    response = await api_client.post(
        "/api/v1/resources",
        json={
            "title": "Style guide",
            "url": "https://example.com",
            "groupId": group_id,
            "target": {"mode": "everyone"},
        },
        headers=LEAD,
    )

    assert response.status_code == 422


# ===== Tasks =====


@pytest.mark.asyncio
async def test_task_lifecycle(api_client: AsyncClient, group_id: str):
    response = await api_client.post(
        "/api/v1/tasks",
        json={
            "title": "Write docs",
            "groupId": group_id,
            "target": {"mode": "individual", "userId": "emp-1", "userName": "Employee One"},
        },
        headers=LEAD,
    )
    assert response.status_code == 201
    task = response.json()
    assert task["status"] == "pending"
    task_id = task["id"]

    # not the assignee
    response = await api_client.patch(
        f"/api/v1/tasks/{task_id}/status", json={"status": "in_progress"}, headers=INTERN
    )
    assert response.status_code == 403

    for status in ("in_progress", "review"):
        response = await api_client.patch(
            f"/api/v1/tasks/{task_id}/status", json={"status": status}, headers=EMPLOYEE
        )
        assert response.status_code == 200
        assert response.json()["status"] == status

    response = await api_client.patch(
        f"/api/v1/tasks/{task_id}/status", json={"status": "completed"}, headers=EMPLOYEE
    )
    assert response.status_code == 400

    response = await api_client.post(f"/api/v1/tasks/{task_id}/verify", headers=EMPLOYEE)
    assert response.status_code == 403

    response = await api_client.post(f"/api/v1/tasks/{task_id}/verify", headers=LEAD)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["verifiedByName"] == "Core Employee"

    mine = (await api_client.get("/api/v1/tasks/mine", headers=EMPLOYEE)).json()["items"]
    assert [t["id"] for t in mine] == [task_id]

    created = (await api_client.get("/api/v1/tasks/created", headers=LEAD)).json()["items"]
    assert [t["id"] for t in created] == [task_id]


@pytest.mark.asyncio
async def test_group_task_listing_and_delete(api_client: AsyncClient, group_id: str):
    response = await api_client.post(
        "/api/v1/tasks",
        json={"title": "Sprint", "target": {"mode": "group", "groupId": group_id}},
        headers=ADMIN,
    )
    assert response.status_code == 201
    task_id = response.json()["id"]

    items = (await api_client.get(f"/api/v1/tasks/groups/{group_id}", headers=LEAD)).json()["items"]
    assert [t["id"] for t in items] == [task_id]

    response = await api_client.patch(
        f"/api/v1/tasks/{task_id}/status", json={"status": "bogus"}, headers=INTERN
    )
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Invalid task status"

    response = await api_client.patch(
        f"/api/v1/tasks/{task_id}", json={"priority": "high"}, headers=ADMIN
    )
    assert response.status_code == 200
    assert response.json()["priority"] == "high"

    response = await api_client.delete(f"/api/v1/tasks/{task_id}", headers=ADMIN)
    assert response.status_code == 204

    response = await api_client.delete(f"/api/v1/tasks/{task_id}", headers=ADMIN)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_task_planning_fields(api_client: AsyncClient, group_id: str):
    response = await api_client.post(
        "/api/v1/tasks",
        json={
            "title": "Ship login",
            "groupId": group_id,
            "target": {"mode": "individual", "userId": "emp-1"},
            "difficulty": "hard",
            "estimatedHours": 8,
            "tags": ["auth"],
            "subtasks": [{"title": "Form"}],
        },
        headers=LEAD,
    )
    assert response.status_code == 201
    task = response.json()
    assert task["difficulty"] == "hard"
    assert task["estimatedHours"] == 8
    assert task["blockers"] == []
    subtask_id = task["subtasks"][0]["id"]
    assert task["subtasks"] == [{"id": subtask_id, "title": "Form", "completed": False}]

    response = await api_client.patch(
        f"/api/v1/tasks/{task['id']}",
        json={
            "subtasks": [{"id": subtask_id, "title": "Form", "completed": True}],
            "blockers": ["waiting on API keys"],
        },
        headers=LEAD,
    )
    assert response.status_code == 200
    assert response.json()["subtasks"][0]["completed"] is True
    assert response.json()["blockers"] == ["waiting on API keys"]
    assert response.json()["tags"] == ["auth"]

    response = await api_client.patch(
        f"/api/v1/tasks/{task['id']}", json={"estimatedHours": -1}, headers=LEAD
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_all_tasks_overview(api_client: AsyncClient, group_id: str):
    for title in ("First", "Second"):
        response = await api_client.post(
            "/api/v1/tasks",
            json={"title": title, "target": {"mode": "group", "groupId": group_id}},
            headers=ADMIN,
        )
        assert response.status_code == 201
        await asyncio.sleep(0.001)

    response = await api_client.get("/api/v1/tasks", headers=ADMIN)
    assert response.status_code == 200
    assert [t["title"] for t in response.json()["items"]] == ["Second", "First"]

    response = await api_client.get("/api/v1/tasks", headers=EMPLOYEE)
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "FORBIDDEN"
