"""
Issue endpoint tests.
Covers: key assignment, partial updates, assignee rules, time logging,
watchers, filters, lookup by key, and access control.
"""
from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

from issuetracker.models.user import User

pytestmark = pytest.mark.asyncio


async def _create_issue(
    client: AsyncClient, headers: dict, project_id: str, **payload: Any
) -> dict[str, Any]:
    body = {"project_id": project_id, "title": "Untitled", **payload}
    response = await client.post("/api/v1/issues/", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateIssue:
    async def test_create_defaults(
        self, issue: dict, project: dict, developer: User
    ) -> None:
        assert issue["key"] == f"{project['key']}-1"
        assert issue["sequence"] == 1
        assert issue["status"] == "todo"
        assert issue["type"] == "bug"
        assert issue["priority"] == "high"
        assert issue["reporter_id"] == str(developer.id)
        assert issue["logged_hours"] == 0
        assert issue["time_remaining"] == 4
        assert issue["progress_percentage"] == 0
        assert [w["id"] for w in issue["watchers"]] == [str(developer.id)]

    async def test_keys_increase_per_project(
        self, client: AsyncClient, project: dict, issue: dict, developer_headers: dict
    ) -> None:
        second = await _create_issue(client, developer_headers, project["id"])
        assert second["key"] == f"{project['key']}-2"
        assert second["type"] == "task"
        assert second["priority"] == "medium"

    async def test_assign_to_member(
        self, client: AsyncClient, project: dict, manager_headers: dict, developer: User
    ) -> None:
        data = await _create_issue(
            client, manager_headers, project["id"], assignee_id=str(developer.id)
        )
        assert data["assignee"]["id"] == str(developer.id)

    async def test_assign_to_non_member_rejected(
        self, client: AsyncClient, project: dict, manager_headers: dict, outsider: User
    ) -> None:
        response = await client.post(
            "/api/v1/issues/",
            json={
                "project_id": project["id"],
                "title": "Nope",
                "assignee_id": str(outsider.id),
            },
            headers=manager_headers,
        )
        assert response.status_code == 400

    async def test_outsider_cannot_create(
        self, client: AsyncClient, project: dict, outsider_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/issues/",
            json={"project_id": project["id"], "title": "Intrusion"},
            headers=outsider_headers,
        )
        assert response.status_code == 403

    async def test_invalid_type_rejected(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/issues/",
            json={"project_id": project["id"], "title": "Bad", "type": "feature"},
            headers=developer_headers,
        )
        assert response.status_code == 422

    async def test_blank_title_rejected(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/issues/",
            json={"project_id": project["id"], "title": "   "},
            headers=developer_headers,
        )
        assert response.status_code == 422

    async def test_text_fields_are_trimmed(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/issues/",
            json={
                "project_id": project["id"],
                "title": "  Crash on save ",
                "labels": [" backend "],
                "fix_version": " 1.2 ",
            },
            headers=developer_headers,
        )
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["title"] == "Crash on save"
        assert data["labels"] == ["backend"]
        assert data["fix_version"] == "1.2"


class TestReadIssue:
    async def test_get_issue_with_comments(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await client.get(f"/api/v1/issues/{issue['id']}", headers=developer_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == issue["id"]
        assert data["comments"] == []

    async def test_get_by_key(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await client.get(
            f"/api/v1/issues/key/{issue['key'].lower()}", headers=developer_headers
        )
        assert response.status_code == 200
        assert response.json()["id"] == issue["id"]

    async def test_get_missing_key(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        response = await client.get("/api/v1/issues/key/NOPE-99", headers=developer_headers)
        assert response.status_code == 404

    async def test_outsider_forbidden(
        self, client: AsyncClient, issue: dict, outsider_headers: dict
    ) -> None:
        response = await client.get(f"/api/v1/issues/{issue['id']}", headers=outsider_headers)
        assert response.status_code == 403

    async def test_issue_hidden_after_project_deleted(
        self, client: AsyncClient, project: dict, issue: dict, admin_headers: dict
    ) -> None:
        response = await client.delete(
            f"/api/v1/projects/{project['id']}", headers=admin_headers
        )
        assert response.status_code == 204
        response = await client.get(f"/api/v1/issues/{issue['id']}", headers=admin_headers)
        assert response.status_code == 404


class TestUpdateIssue:
    async def test_partial_update(
        self, client: AsyncClient, issue: dict, developer_headers: dict, developer: User
    ) -> None:
        response = await client.put(
            f"/api/v1/issues/{issue['id']}",
            json={"status": "in_progress", "assignee_id": str(developer.id)},
            headers=developer_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["assignee_id"] == str(developer.id)
        assert data["title"] == issue["title"]
        assert data["priority"] == "high"

    async def test_explicit_null_clears_optional_fields(
        self, client: AsyncClient, issue: dict, developer_headers: dict, developer: User
    ) -> None:
        await client.put(
            f"/api/v1/issues/{issue['id']}",
            json={"assignee_id": str(developer.id), "fix_version": "1.2"},
            headers=developer_headers,
        )
        response = await client.put(
            f"/api/v1/issues/{issue['id']}",
            json={"assignee_id": None, "fix_version": None, "title": None},
            headers=developer_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["assignee_id"] is None
        assert data["fix_version"] is None
        # Required columns keep their value
        assert data["title"] == issue["title"]

    async def test_reassign_to_non_member_rejected(
        self, client: AsyncClient, issue: dict, developer_headers: dict, outsider: User
    ) -> None:
        response = await client.put(
            f"/api/v1/issues/{issue['id']}",
            json={"assignee_id": str(outsider.id)},
            headers=developer_headers,
        )
        assert response.status_code == 400

    async def test_blank_title_rejected(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await client.put(
            f"/api/v1/issues/{issue['id']}",
            json={"title": "  "},
            headers=developer_headers,
        )
        assert response.status_code == 422

    async def test_labels_replaced(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await client.put(
            f"/api/v1/issues/{issue['id']}",
            json={"labels": ["frontend", "urgent"], "components": ["auth"]},
            headers=developer_headers,
        )
        assert response.json()["labels"] == ["frontend", "urgent"]
        assert response.json()["components"] == ["auth"]


class TestDeleteIssue:
    async def test_delete_issue(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        await client.post(
            f"/api/v1/issues/{issue['id']}/comments",
            json={"content": "Will be removed"},
            headers=developer_headers,
        )
        response = await client.delete(f"/api/v1/issues/{issue['id']}", headers=developer_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/v1/issues/{issue['id']}", headers=developer_headers)
        assert response.status_code == 404

    async def test_outsider_cannot_delete(
        self, client: AsyncClient, issue: dict, outsider_headers: dict
    ) -> None:
        response = await client.delete(f"/api/v1/issues/{issue['id']}", headers=outsider_headers)
        assert response.status_code == 403


class TestTimeTracking:
    async def test_log_time_updates_hours_and_adds_comment(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await client.post(
            f"/api/v1/issues/{issue['id']}/time",
            json={"hours": 1.5, "description": "Reproduced the bug"},
            headers=developer_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["logged_hours"] == 1.5
        assert data["time_remaining"] == 2.5
        assert data["progress_percentage"] == 37.5

        response = await client.post(
            f"/api/v1/issues/{issue['id']}/time",
            json={"hours": 1},
            headers=developer_headers,
        )
        assert response.json()["logged_hours"] == 2.5

        response = await client.get(f"/api/v1/issues/{issue['id']}", headers=developer_headers)
        comments = response.json()["comments"]
        assert [c["content"] for c in comments] == ["Logged 1.5 hours: Reproduced the bug"]

    async def test_overrun_caps_progress(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await client.post(
            f"/api/v1/issues/{issue['id']}/time",
            json={"hours": 6},
            headers=developer_headers,
        )
        data = response.json()
        assert data["time_remaining"] == 0
        assert data["progress_percentage"] == 100

    @pytest.mark.parametrize("hours", [0, -1, 1001])
    async def test_invalid_hours(
        self, client: AsyncClient, issue: dict, developer_headers: dict, hours: float
    ) -> None:
        response = await client.post(
            f"/api/v1/issues/{issue['id']}/time",
            json={"hours": hours},
            headers=developer_headers,
        )
        assert response.status_code == 422


class TestWatchers:
    async def test_watch_and_unwatch(
        self, client: AsyncClient, issue: dict, manager_headers: dict, manager: User
    ) -> None:
        response = await client.post(
            f"/api/v1/issues/{issue['id']}/watchers", headers=manager_headers
        )
        assert response.status_code == 200
        assert str(manager.id) in {w["id"] for w in response.json()["watchers"]}

        # Watching twice is a no-op
        response = await client.post(
            f"/api/v1/issues/{issue['id']}/watchers", headers=manager_headers
        )
        assert len(response.json()["watchers"]) == 2

        response = await client.delete(
            f"/api/v1/issues/{issue['id']}/watchers", headers=manager_headers
        )
        assert response.status_code == 200
        assert str(manager.id) not in {w["id"] for w in response.json()["watchers"]}

    async def test_reporter_cannot_unwatch(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await client.delete(
            f"/api/v1/issues/{issue['id']}/watchers", headers=developer_headers
        )
        assert response.status_code == 400


class TestListIssues:
    async def _seed(self, client: AsyncClient, headers: dict, project_id: str) -> None:
        await _create_issue(
            client, headers, project_id,
            title="Broken navbar", labels=["frontend", "ui"], components=["web"],
        )
        await _create_issue(
            client, headers, project_id,
            title="Slow query", type="bug", priority="highest", labels=["backend"],
        )
        await _create_issue(
            client, headers, project_id,
            title="Write docs", type="story", description="Document the navbar",
        )

    async def test_list_all(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        await self._seed(client, developer_headers, project["id"])
        response = await client.get(
            "/api/v1/issues/", params={"project_id": project["id"]}, headers=developer_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["page"] == 1

    async def test_filter_by_label(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        await self._seed(client, developer_headers, project["id"])
        response = await client.get(
            "/api/v1/issues/", params={"labels": ["ui"]}, headers=developer_headers
        )
        assert [i["title"] for i in response.json()["items"]] == ["Broken navbar"]

        response = await client.get(
            "/api/v1/issues/", params={"components": ["web"]}, headers=developer_headers
        )
        assert response.json()["total"] == 1

    async def test_filter_by_type_and_priority(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        await self._seed(client, developer_headers, project["id"])
        response = await client.get(
            "/api/v1/issues/",
            params={"type": ["bug"], "priority": ["highest", "high"]},
            headers=developer_headers,
        )
        assert [i["title"] for i in response.json()["items"]] == ["Slow query"]

    async def test_search_title_and_description(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        await self._seed(client, developer_headers, project["id"])
        response = await client.get(
            "/api/v1/issues/",
            params={"search": "navbar", "sort_by": "title", "sort_order": "asc"},
            headers=developer_headers,
        )
        assert [i["title"] for i in response.json()["items"]] == ["Broken navbar", "Write docs"]

    async def test_pagination(
        self, client: AsyncClient, project: dict, developer_headers: dict
    ) -> None:
        await self._seed(client, developer_headers, project["id"])
        response = await client.get(
            "/api/v1/issues/",
            params={"size": 2, "page": 2, "sort_by": "key", "sort_order": "asc"},
            headers=developer_headers,
        )
        body = response.json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["items"]) == 1

    async def test_outsider_sees_nothing(
        self, client: AsyncClient, project: dict, issue: dict, outsider_headers: dict
    ) -> None:
        response = await client.get("/api/v1/issues/", headers=outsider_headers)
        assert response.json()["total"] == 0

        response = await client.get(
            "/api/v1/issues/", params={"project_id": project["id"]}, headers=outsider_headers
        )
        assert response.status_code == 403
