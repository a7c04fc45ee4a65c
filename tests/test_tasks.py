"""
Tests for the task endpoints.

Covers completed_at bookkeeping, due-date ordering with undated tasks
last, the assigned_to=me filter, and reference checks.
"""

from httpx import AsyncClient

from immicrm.auth.models import User
from tests.conftest import TaskFactory


def _full_update(**overrides) -> dict:
    data = {
        "title": "Updated task",
        "description": None,
        "assigned_to": None,
        "status": "In Progress",
        "priority": "Low",
        "due_date": None,
    }
    data.update(overrides)
    return data


class TestCreateTask:
    """POST /api/tasks"""

    async def test_create_task_defaults(self, staff_client: AsyncClient, staff_user: User):
        resp = await staff_client.post("/api/tasks", json={"title": "Collect photos"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "To Do"
        assert body["priority"] == "Medium"
        assert body["case_id"] is None
        assert body["completed_at"] is None
        assert body["created_by"] == staff_user.id

    async def test_create_completed_task_stamps_completed_at(self, staff_client: AsyncClient):
        resp = await staff_client.post("/api/tasks", json=TaskFactory(status="Completed"))
        assert resp.status_code == 201
        assert resp.json()["completed_at"] is not None

    async def test_create_for_case(self, staff_client: AsyncClient, sample_case: dict):
        resp = await staff_client.post("/api/tasks", json=TaskFactory(case_id=sample_case["id"]))
        assert resp.status_code == 201
        assert resp.json()["case_id"] == sample_case["id"]

    async def test_missing_case(self, staff_client: AsyncClient):
        resp = await staff_client.post("/api/tasks", json=TaskFactory(case_id=999))
        assert resp.status_code == 404

    async def test_unknown_assignee(self, staff_client: AsyncClient):
        resp = await staff_client.post("/api/tasks", json=TaskFactory(assigned_to=999))
        assert resp.status_code == 422

    async def test_title_required(self, staff_client: AsyncClient):
        resp = await staff_client.post("/api/tasks", json={"description": "no title"})
        assert resp.status_code == 422

    async def test_requires_auth(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json=TaskFactory())
        assert resp.status_code == 401


class TestCompletedAt:
    """PUT /api/tasks/{id} keeps completed_at in step with status"""

    async def test_completion_lifecycle(self, staff_client: AsyncClient):
        task = (await staff_client.post("/api/tasks", json=TaskFactory())).json()

        done = await staff_client.put(f"/api/tasks/{task['id']}", json=_full_update(status="Completed"))
        assert done.status_code == 200
        completed_at = done.json()["completed_at"]
        assert completed_at is not None

        still_done = await staff_client.put(
            f"/api/tasks/{task['id']}", json=_full_update(status="Completed", title="Renamed")
        )
        assert still_done.json()["completed_at"] == completed_at
        assert still_done.json()["title"] == "Renamed"

        reopened = await staff_client.put(f"/api/tasks/{task['id']}", json=_full_update(status="To Do"))
        assert reopened.json()["completed_at"] is None

    async def test_partial_body_rejected(self, staff_client: AsyncClient):
        task = (await staff_client.post("/api/tasks", json=TaskFactory())).json()
        resp = await staff_client.put(f"/api/tasks/{task['id']}", json={"status": "Completed"})
        assert resp.status_code == 422

    async def test_update_missing_task(self, staff_client: AsyncClient):
        resp = await staff_client.put("/api/tasks/999", json=_full_update())
        assert resp.status_code == 404


class TestListTasks:
    """GET /api/tasks"""

    async def test_due_date_order_with_undated_last(self, staff_client: AsyncClient):
        late = (await staff_client.post("/api/tasks", json=TaskFactory(due_date="2026-05-01"))).json()
        undated = (await staff_client.post("/api/tasks", json=TaskFactory())).json()
        early = (await staff_client.post("/api/tasks", json=TaskFactory(due_date="2026-03-01"))).json()

        body = (await staff_client.get("/api/tasks")).json()
        assert [t["id"] for t in body] == [early["id"], late["id"], undated["id"]]

    async def test_list_is_denormalized(
        self, admin_client: AsyncClient, sample_client: dict, sample_case: dict, staff_user: User
    ):
        await admin_client.post("/api/tasks", json=TaskFactory(case_id=sample_case["id"], assigned_to=staff_user.id))
        [item] = (await admin_client.get("/api/tasks")).json()
        assert item["case_number"] == sample_case["case_number"]
        assert item["client_name"] == sample_client["name"]
        assert item["assigned_to_name"] == "Sam Staff"

    async def test_assigned_to_me(
        self, admin_client: AsyncClient, staff_client: AsyncClient, staff_user: User, admin_user: User
    ):
        mine = (await admin_client.post("/api/tasks", json=TaskFactory(assigned_to=staff_user.id))).json()
        await admin_client.post("/api/tasks", json=TaskFactory(assigned_to=admin_user.id))
        await admin_client.post("/api/tasks", json=TaskFactory())

        resp = await staff_client.get("/api/tasks", params={"assigned_to": "me"})
        assert resp.status_code == 200
        body = resp.json()
        assert [t["id"] for t in body] == [mine["id"]]
        assert body[0]["assigned_to_name"] is None

        everything = (await staff_client.get("/api/tasks")).json()
        assert len(everything) == 3

    async def test_assigned_to_other_value_rejected(self, staff_client: AsyncClient):
        resp = await staff_client.get("/api/tasks", params={"assigned_to": "someone"})
        assert resp.status_code == 422


class TestGetAndDeleteTask:
    async def test_get_task(self, staff_client: AsyncClient):
        task = (await staff_client.post("/api/tasks", json=TaskFactory())).json()
        resp = await staff_client.get(f"/api/tasks/{task['id']}")
        assert resp.status_code == 200
        assert resp.json()["title"] == task["title"]

    async def test_delete_task(self, staff_client: AsyncClient):
        task = (await staff_client.post("/api/tasks", json=TaskFactory())).json()
        assert (await staff_client.delete(f"/api/tasks/{task['id']}")).status_code == 204
        assert (await staff_client.get(f"/api/tasks/{task['id']}")).status_code == 404
