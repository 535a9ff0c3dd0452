"""Tests for authentication boundaries.

Verifies that every stored-resource endpoint requires X-User-Id and that
callers cannot see each other's uploads or templates.
"""
import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS, AUTH_HEADERS_USER2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    ["/api/data-files/", "/api/documents/", "/api/templates/"],
)
async def test_list_requires_auth_header(client: AsyncClient, path: str):
    """Listing without X-User-Id should return 401."""
    resp = await client.get(path)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Missing X-User-Id header."


@pytest.mark.asyncio
async def test_blank_user_id_is_rejected(client: AsyncClient):
    resp = await client.get("/api/documents/", headers={"X-User-Id": "   "})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_analysis_requires_auth_header(client: AsyncClient):
    resp = await client.post("/api/analysis/structure", json={"text": "INTRODUCTION"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_wrong_user_cannot_access_template(client: AsyncClient):
    """User 2 should get 404 when accessing user 1's template."""
    resp = await client.post(
        "/api/templates/",
        json={
            "template_name": "Private",
            "template_type": "memo",
            "content": "SUMMARY\nText",
            "generate_embedding": False,
        },
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 201
    template_id = resp.json()["id"]

    resp = await client.get(f"/api/templates/{template_id}", headers=AUTH_HEADERS_USER2)
    assert resp.status_code == 404

    resp = await client.delete(f"/api/templates/{template_id}", headers=AUTH_HEADERS_USER2)
    assert resp.status_code == 404

    # Still there for the owner
    resp = await client.get(f"/api/templates/{template_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_wrong_user_cannot_access_data_file(client: AsyncClient):
    resp = await client.post(
        "/api/data-files/upload?generate_embedding=false",
        headers=AUTH_HEADERS,
        files={"file": ("t.csv", b"a,b\n1,x\n2,y\n", "text/csv")},
    )
    assert resp.status_code == 201
    data_file_id = resp.json()["id"]

    resp = await client.get(f"/api/data-files/{data_file_id}", headers=AUTH_HEADERS_USER2)
    assert resp.status_code == 404

    resp = await client.get("/api/data-files/", headers=AUTH_HEADERS_USER2)
    assert resp.json() == []
