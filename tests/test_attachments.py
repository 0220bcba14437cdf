"""
Attachment upload tests.
"""
from __future__ import annotations

import os

import pytest
from httpx import AsyncClient

from issuetracker.core.config import settings

pytestmark = pytest.mark.asyncio


async def _upload(client: AsyncClient, headers: dict, issue_id: str, name: str = "log.txt"):
    return await client.post(
        f"/api/v1/issues/{issue_id}/attachments",
        files={"file": (name, b"stack trace here", "text/plain")},
        headers=headers,
    )


class TestAttachments:
    async def test_upload_and_list(
        self, client: AsyncClient, issue: dict, developer_headers: dict
    ) -> None:
        response = await _upload(client, developer_headers, issue["id"])
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["original_name"] == "log.txt"
        assert data["mime_type"] == "text/plain"
        assert data["size"] == len(b"stack trace here")
        assert os.path.exists(os.path.join(settings.UPLOAD_DIR, data["filename"]))

        response = await client.get(
            f"/api/v1/issues/{issue['id']}/attachments", headers=developer_headers
        )
        assert [a["id"] for a in response.json()] == [data["id"]]

    async def test_file_too_large(
        self,
        client: AsyncClient,
        issue: dict,
        developer_headers: dict,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)
        response = await _upload(client, developer_headers, issue["id"])
        assert response.status_code == 413
        assert response.json()["error"] == "FILE_TOO_LARGE"

    async def test_only_uploader_deletes(
        self,
        client: AsyncClient,
        issue: dict,
        developer_headers: dict,
        manager_headers: dict,
    ) -> None:
        attachment = (await _upload(client, developer_headers, issue["id"])).json()
        url = f"/api/v1/issues/{issue['id']}/attachments/{attachment['id']}"

        response = await client.delete(url, headers=manager_headers)
        assert response.status_code == 403

        response = await client.delete(url, headers=developer_headers)
        assert response.status_code == 204
        assert not os.path.exists(os.path.join(settings.UPLOAD_DIR, attachment["filename"]))

    async def test_outsider_cannot_upload(
        self, client: AsyncClient, issue: dict, outsider_headers: dict
    ) -> None:
        response = await _upload(client, outsider_headers, issue["id"])
        assert response.status_code == 403
