"""Tests for API endpoints."""

import pytest
from datetime import date, timedelta
from httpx import AsyncClient


async def create_task(client: AsyncClient, title: str, **fields) -> dict:
    payload = {"title": title, "status": "pending", "priority": "medium"}
    payload.update(fields)
    response = await client.post("/api/tasks", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def create_category(client: AsyncClient, name: str, parent_id: int | None = None) -> dict:
    response = await client.post(
        "/api/categories", json={"name": name, "parent_id": parent_id}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthCheck:
    """Tests for health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Test health check returns healthy status."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestTasksAPI:
    """Tests for task endpoints."""

    @pytest.mark.asyncio
    async def test_create_task(self, client: AsyncClient):
        """Test creating a task with a category."""
        work = await create_category(client, "Work")

        data = await create_task(
            client,
            "Write report",
            description="Quarterly numbers",
            priority="high",
            due_date="2024-03-01",
            category_id=work["id"],
        )

        assert data["title"] == "Write report"
        assert data["priority"] == "high"
        assert data["due_date"] == "2024-03-01"
        assert data["category"]["name"] == "Work"
        assert data["deleted_at"] is None

    @pytest.mark.asyncio
    async def test_create_task_requires_status_and_priority(self, client: AsyncClient):
        """Test that status and priority have no defaults."""
        response = await client.post("/api/tasks", json={"title": "No status"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_task_rejects_long_title(self, client: AsyncClient):
        """Test the title length limit."""
        response = await client.post(
            "/api/tasks",
            json={"title": "x" * 256, "status": "pending", "priority": "low"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_task_rejects_unknown_category(self, client: AsyncClient):
        """Test that the category must exist."""
        response = await client.post(
            "/api/tasks",
            json={"title": "Lost", "status": "pending", "priority": "low", "category_id": 999},
        )
        assert response.status_code == 422
        assert response.json()["detail"] == {"category_id": ["Selected category is invalid."]}

    @pytest.mark.asyncio
    async def test_get_task(self, client: AsyncClient):
        """Test getting a task by ID."""
        created = await create_task(client, "Fetch me")

        response = await client.get(f"/api/tasks/{created['id']}")

        assert response.status_code == 200
        assert response.json()["title"] == "Fetch me"

    @pytest.mark.asyncio
    async def test_get_missing_task(self, client: AsyncClient):
        """Test 404 for an unknown task."""
        response = await client.get("/api/tasks/12345")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_patch_task(self, client: AsyncClient):
        """Test that PATCH only touches the given fields."""
        created = await create_task(client, "Original", description="keep me")

        response = await client.patch(
            f"/api/tasks/{created['id']}", json={"status": "completed"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["title"] == "Original"
        assert data["description"] == "keep me"

    @pytest.mark.asyncio
    async def test_update_missing_task(self, client: AsyncClient):
        """Test 404 when updating an unknown task."""
        response = await client.put("/api/tasks/12345", json={"title": "x"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_overdue_flag(self, client: AsyncClient):
        """Test is_overdue in responses."""
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        late = await create_task(client, "Late", due_date=yesterday)
        done = await create_task(client, "Done", status="completed", due_date=yesterday)

        assert late["is_overdue"] is True
        assert done["is_overdue"] is False


class TestTaskTrashAPI:
    """Tests for soft delete, restore and permanent delete."""

    @pytest.mark.asyncio
    async def test_delete_and_restore(self, client: AsyncClient):
        """Test the full trash round trip."""
        task = await create_task(client, "Trash me")

        response = await client.delete(f"/api/tasks/{task['id']}")
        assert response.status_code == 204

        assert (await client.get(f"/api/tasks/{task['id']}")).status_code == 404
        trashed = await client.get(f"/api/tasks/{task['id']}", params={"trashed": "with_trashed"})
        assert trashed.status_code == 200
        assert trashed.json()["deleted_at"] is not None

        response = await client.post(f"/api/tasks/{task['id']}/restore")
        assert response.status_code == 200
        assert response.json()["deleted_at"] is None

    @pytest.mark.asyncio
    async def test_restore_live_task_is_404(self, client: AsyncClient):
        """Test that only trashed tasks can be restored."""
        task = await create_task(client, "Alive")

        response = await client.post(f"/api/tasks/{task['id']}/restore")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_force_delete_requires_trash(self, client: AsyncClient):
        """Test that permanent delete only applies to trashed tasks."""
        task = await create_task(client, "Doomed")

        assert (await client.delete(f"/api/tasks/{task['id']}/force")).status_code == 404

        await client.delete(f"/api/tasks/{task['id']}")
        assert (await client.delete(f"/api/tasks/{task['id']}/force")).status_code == 204

        response = await client.get(f"/api/tasks/{task['id']}", params={"trashed": "with_trashed"})
        assert response.status_code == 404


class TestTaskListingAPI:
    """Tests for filters, sorting and pagination over HTTP."""

    @pytest.mark.asyncio
    async def test_list_echoes_options(self, client: AsyncClient):
        """Test pagination metadata and normalized options."""
        for i in range(3):
            await create_task(client, f"Task {i}")

        response = await client.get(
            "/api/tasks",
            params={"page_size": 2, "sort_by": "bogus", "sort_dir": "sideways", "status": ""},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["page_size"] == 2
        assert [t["title"] for t in data["items"]] == ["Task 2", "Task 1"]
        assert data["sorting"] == {"sort_by": "created_at", "sort_dir": "desc"}
        assert data["filters"]["status"] is None
        assert data["filters"]["trashed"] == "default"

    @pytest.mark.asyncio
    async def test_filter_and_sort(self, client: AsyncClient):
        """Test combining filters with a ranked sort."""
        await create_task(client, "High", priority="high")
        await create_task(client, "Low", priority="low")
        await create_task(client, "Medium", priority="medium")
        await create_task(client, "Finished", priority="low", status="completed")

        response = await client.get(
            "/api/tasks",
            params={"status": "pending", "sort_by": "priority", "sort_dir": "asc"},
        )

        assert [t["title"] for t in response.json()["items"]] == ["Low", "Medium", "High"]

    @pytest.mark.asyncio
    async def test_search_and_due_range(self, client: AsyncClient):
        """Test text search and the inclusive due-date window."""
        await create_task(client, "Pay rent", due_date="2024-01-01")
        await create_task(client, "Pay taxes", due_date="2024-04-15")
        await create_task(client, "Walk dog", due_date="2024-01-31")

        response = await client.get(
            "/api/tasks",
            params={"search": "PAY", "due_from": "2024-01-01", "due_to": "2024-01-31"},
        )

        assert [t["title"] for t in response.json()["items"]] == ["Pay rent"]

    @pytest.mark.asyncio
    async def test_invalid_filter_value(self, client: AsyncClient):
        """Test that a malformed filter is a 422."""
        response = await client.get("/api/tasks", params={"status": "sleeping"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_only_trashed_listing(self, client: AsyncClient):
        """Test the trash view."""
        await create_task(client, "Kept")
        gone = await create_task(client, "Gone")
        await client.delete(f"/api/tasks/{gone['id']}")

        response = await client.get("/api/tasks", params={"trashed": "only_trashed"})

        assert [t["title"] for t in response.json()["items"]] == ["Gone"]

    @pytest.mark.asyncio
    async def test_lookup(self, client: AsyncClient):
        """Test the lightweight lookup feed."""
        await create_task(client, "Alpha")
        await create_task(client, "Beta")

        response = await client.get("/api/tasks/lookup", params={"search": "alp"})

        assert response.status_code == 200
        assert [t["title"] for t in response.json()] == ["Alpha"]

    @pytest.mark.asyncio
    async def test_task_statistics(self, client: AsyncClient):
        """Test the live task counters."""
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        await create_task(client, "Late", due_date=yesterday)
        await create_task(client, "Busy", status="in_progress")
        await create_task(client, "Done", status="completed")

        response = await client.get("/api/tasks/statistics")

        assert response.json() == {
            "total": 3,
            "pending": 1,
            "in_progress": 1,
            "completed": 1,
            "overdue": 1,
        }


class TestCategoriesAPI:
    """Tests for category endpoints."""

    @pytest.mark.asyncio
    async def test_create_child_category(self, client: AsyncClient):
        """Test creating a child shows its parent."""
        work = await create_category(client, "Work")

        child = await create_category(client, "Reports", parent_id=work["id"])

        assert child["parent_id"] == work["id"]
        assert child["parent_name"] == "Work"

    @pytest.mark.asyncio
    async def test_third_level_is_rejected(self, client: AsyncClient):
        """Test the depth limit on create."""
        work = await create_category(client, "Work")
        reports = await create_category(client, "Reports", parent_id=work["id"])

        response = await client.post(
            "/api/categories", json={"name": "Q1", "parent_id": reports["id"]}
        )

        assert response.status_code == 422
        assert response.json()["detail"] == {
            "parent_id": ["Category hierarchy allows at most 2 levels."]
        }

    @pytest.mark.asyncio
    async def test_self_parent_is_rejected(self, client: AsyncClient):
        """Test that a category cannot parent itself."""
        work = await create_category(client, "Work")

        response = await client.patch(
            f"/api/categories/{work['id']}", json={"parent_id": work["id"]}
        )

        assert response.status_code == 422
        assert "parent_id" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_move_to_root_with_null_parent(self, client: AsyncClient):
        """Test that an explicit null parent moves a category to the top."""
        work = await create_category(client, "Work")
        reports = await create_category(client, "Reports", parent_id=work["id"])

        response = await client.patch(
            f"/api/categories/{reports['id']}", json={"parent_id": None}
        )

        assert response.status_code == 200
        assert response.json()["parent_id"] is None

    @pytest.mark.asyncio
    async def test_tree_listing(self, client: AsyncClient):
        """Test roots come back with their children nested."""
        work = await create_category(client, "Work")
        await create_category(client, "Reports", parent_id=work["id"])
        await create_category(client, "Home")

        response = await client.get("/api/categories", params={"tree": True})

        tree = {c["name"]: [child["name"] for child in c["children"]] for c in response.json()}
        assert tree == {"Home": [], "Work": ["Reports"]}

    @pytest.mark.asyncio
    async def test_roots(self, client: AsyncClient):
        """Test the parent picker list."""
        work = await create_category(client, "Work")
        await create_category(client, "Reports", parent_id=work["id"])

        response = await client.get("/api/categories/roots")

        assert [c["name"] for c in response.json()] == ["Work"]

    @pytest.mark.asyncio
    async def test_category_tasks(self, client: AsyncClient):
        """Test listing the tasks of one category."""
        work = await create_category(client, "Work")
        await create_task(client, "Filed", category_id=work["id"])
        await create_task(client, "Loose")

        response = await client.get(f"/api/categories/{work['id']}/tasks")

        assert response.status_code == 200
        data = response.json()
        assert [t["title"] for t in data["items"]] == ["Filed"]
        assert data["filters"]["category_id"] == work["id"]

        assert (await client.get("/api/categories/999/tasks")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_restore_and_force(self, client: AsyncClient):
        """Test the category trash lifecycle."""
        work = await create_category(client, "Work")
        task = await create_task(client, "Filed", category_id=work["id"])

        assert (await client.delete(f"/api/categories/{work['id']}/force")).status_code == 404
        assert (await client.delete(f"/api/categories/{work['id']}")).status_code == 204
        assert (await client.get(f"/api/categories/{work['id']}")).status_code == 404

        restored = await client.post(f"/api/categories/{work['id']}/restore")
        assert restored.status_code == 200

        await client.delete(f"/api/categories/{work['id']}")
        assert (await client.delete(f"/api/categories/{work['id']}/force")).status_code == 204

        orphan = (await client.get(f"/api/tasks/{task['id']}")).json()
        assert orphan["category_id"] is None


class TestCategoryStatisticsAPI:
    """Tests for the cached category statistics endpoint."""

    @pytest.mark.asyncio
    async def test_statistics_follow_writes(self, client: AsyncClient):
        """Test that committed writes are reflected on the next read."""
        work = await create_category(client, "Work")

        first = (await client.get("/api/categories/statistics")).json()
        assert first["stats"][0]["tasks_total_count"] == 0
        assert first["totals"]["total"] == 0

        task = await create_task(client, "Filed", category_id=work["id"])
        second = (await client.get("/api/categories/statistics")).json()
        assert second["stats"][0]["tasks_pending_count"] == 1

        await client.patch(f"/api/tasks/{task['id']}", json={"status": "completed"})
        third = (await client.get("/api/categories/statistics")).json()
        assert third["stats"][0]["tasks_pending_count"] == 0
        assert third["stats"][0]["tasks_completed_count"] == 1

        await client.delete(f"/api/tasks/{task['id']}")
        fourth = (await client.get("/api/categories/statistics")).json()
        assert fourth["totals"]["total"] == 0
