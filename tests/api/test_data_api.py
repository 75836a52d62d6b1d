"""Tests for the REST data API (FastAPI)."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

import trellis.api as api_module
from trellis.api import create_app
from trellis.core import TrellisDB


@pytest.fixture
async def client(db: TrellisDB) -> AsyncIterator[AsyncClient]:
    """Test client backed by the seeded TrellisDB."""
    api_module._db = db
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    api_module._db = None


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["timestamp"].endswith("Z")


class TestRead:
    @pytest.mark.parametrize(("resource", "count"), [("projects", 2), ("issues", 8), ("sprints", 1), ("users", 3), ("structures", 1)])
    async def test_read_collection(self, client: AsyncClient, resource: str, count: int) -> None:
        resp = await client.get(f"/api/{resource}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert len(body["data"]) == count

    async def test_records_are_returned_as_stored(self, client: AsyncClient, data_dir: Path) -> None:
        resp = await client.get("/api/issues")
        assert resp.json()["data"] == json.loads((data_dir / "issues.json").read_text())

    async def test_invalid_resource(self, client: AsyncClient) -> None:
        resp = await client.get("/api/secrets")
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Invalid resource: secrets. Valid resources: projects, issues, sprints, users, structures"

    async def test_unreadable_collection(self, client: AsyncClient, data_dir: Path) -> None:
        (data_dir / "users.json").write_text("{oops")
        resp = await client.get("/api/users")
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Failed to read users"}


class TestWrite:
    async def test_replace_collection(self, client: AsyncClient, data_dir: Path) -> None:
        sprints = [{"id": "sprint-9", "name": "Hardening", "projectId": "proj-1", "status": "planned"}]
        resp = await client.put("/api/sprints", json=sprints)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": sprints, "message": "sprints updated successfully"}
        assert json.loads((data_dir / "sprints.json").read_text()) == sprints

    async def test_write_is_visible_to_tools(self, client: AsyncClient, db: TrellisDB) -> None:
        issues = (await client.get("/api/issues")).json()["data"]
        issues[0]["title"] = "Renamed in the browser"
        await client.put("/api/issues", json=issues)
        assert db.get_issue("PHX-1").title == "Renamed in the browser"

    async def test_body_must_be_array(self, client: AsyncClient) -> None:
        resp = await client.put("/api/users", json={"id": "user-9"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Request body must be an array"

    async def test_invalid_json(self, client: AsyncClient) -> None:
        resp = await client.put("/api/users", content=b"[{", headers={"content-type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    async def test_invalid_resource(self, client: AsyncClient) -> None:
        resp = await client.put("/api/secrets", json=[])
        assert resp.status_code == 400


class TestUninitialized:
    async def test_no_database(self) -> None:
        api_module._db = None
        transport = ASGITransport(app=create_app())
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/api/issues")
        assert resp.status_code == 500
