"""Tests for data file upload, analysis, listing and deletion."""
import io

import pytest
from httpx import AsyncClient
from openpyxl import Workbook

from docsight.config import settings
from tests.conftest import AUTH_HEADERS

CSV_BYTES = (
    b"name,amount,joined,active\n"
    b"alice,10,2024-01-05,yes\n"
    b"bob,20,2024-02-10,no\n"
    b"carol,30,2024-03-15,yes\n"
)


async def _upload(client: AsyncClient, name: str, content: bytes, query: str = "generate_embedding=false"):
    return await client.post(
        f"/api/data-files/upload?{query}",
        headers=AUTH_HEADERS,
        files={"file": (name, content, "application/octet-stream")},
    )


@pytest.mark.asyncio
async def test_upload_csv(client: AsyncClient):
    resp = await _upload(client, "people.csv", CSV_BYTES)
    assert resp.status_code == 201
    data = resp.json()

    assert data["file_name"] == "people.csv"
    assert data["file_type"] == "csv"
    assert data["processing_status"] == "completed"
    assert data["processing_progress"] == 100
    assert data["row_count"] == 3
    assert data["column_count"] == 4
    assert data["column_headers"] == ["name", "amount", "joined", "active"]
    assert data["schema_description"] == "Dataset with 4 columns and 3 rows"
    assert data["has_embedding"] is False
    assert len(data["data_preview"]) == 3
    assert data["data_preview"][0]["name"] == "alice"

    types = {col["name"]: col["type"] for col in data["column_types"]}
    assert types == {"name": "string", "amount": "number", "joined": "date", "active": "boolean"}

    joined = data["analysis"]["columns"][2]
    assert joined["stats"] == {"earliest": "2024-01-05T00:00:00", "latest": "2024-03-15T00:00:00"}
    assert data["quality"]["completeness"] == 100.0
    assert data["correlations"] == []


@pytest.mark.asyncio
async def test_upload_with_embedding(client: AsyncClient, fake_embeddings):
    resp = await _upload(client, "people.csv", CSV_BYTES, query="generate_embedding=true")
    assert resp.status_code == 201
    assert resp.json()["has_embedding"] is True
    assert fake_embeddings == ["Dataset with 4 columns and 3 rows"]


@pytest.mark.asyncio
async def test_upload_tsv(client: AsyncClient):
    resp = await _upload(client, "t.tsv", b"x\ty\n3\t6\n5\t10\n8\t17\n")
    assert resp.status_code == 201
    data = resp.json()
    assert data["column_headers"] == ["x", "y"]
    assert data["correlations"][0]["column1"] == "x"
    assert data["correlations"][0]["strength"] == "strong"


@pytest.mark.asyncio
async def test_upload_xlsx(client: AsyncClient):
    wb = Workbook()
    ws = wb.active
    ws.append(["product", "price"])
    ws.append(["pen", 1.5])
    ws.append(["book", 12.0])
    buf = io.BytesIO()
    wb.save(buf)

    resp = await _upload(client, "sheet.xlsx", buf.getvalue())
    assert resp.status_code == 201
    data = resp.json()
    assert data["column_headers"] == ["product", "price"]
    assert data["column_types"][1]["type"] == "number"


@pytest.mark.asyncio
async def test_sample_size_query_param(client: AsyncClient):
    resp = await _upload(client, "people.csv", CSV_BYTES, query="generate_embedding=false&sample_size=2")
    data = resp.json()
    assert data["row_count"] == 3
    assert data["analysis"]["analyzed_row_count"] == 2
    assert len(data["data_preview"]) == 2


@pytest.mark.asyncio
async def test_upload_unsupported_type(client: AsyncClient):
    resp = await _upload(client, "data.json", b"{}")
    assert resp.status_code == 400
    assert "Unsupported file type" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_upload_header_only_csv_is_marked_failed(client: AsyncClient):
    resp = await _upload(client, "empty.csv", b"a,b\n")
    assert resp.status_code == 422
    assert "no data rows" in resp.json()["detail"]

    listing = await client.get("/api/data-files/", headers=AUTH_HEADERS)
    entries = listing.json()
    assert len(entries) == 1
    assert entries[0]["processing_status"] == "failed"

    status_resp = await client.get(f"/api/data-files/{entries[0]['id']}/status", headers=AUTH_HEADERS)
    assert status_resp.json()["error_message"]


@pytest.mark.asyncio
async def test_upload_empty_file(client: AsyncClient):
    resp = await _upload(client, "blank.csv", b"")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_upload_too_large(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 10)
    resp = await _upload(client, "people.csv", CSV_BYTES)
    assert resp.status_code == 413


@pytest.mark.asyncio
async def test_list_get_status_delete(client: AsyncClient):
    created = (await _upload(client, "people.csv", CSV_BYTES)).json()
    data_file_id = created["id"]

    listing = await client.get("/api/data-files/", headers=AUTH_HEADERS)
    assert [entry["id"] for entry in listing.json()] == [data_file_id]

    detail = await client.get(f"/api/data-files/{data_file_id}", headers=AUTH_HEADERS)
    assert detail.status_code == 200
    assert detail.json()["row_count"] == 3

    status_resp = await client.get(f"/api/data-files/{data_file_id}/status", headers=AUTH_HEADERS)
    assert status_resp.json()["processing_status"] == "completed"

    deleted = await client.delete(f"/api/data-files/{data_file_id}", headers=AUTH_HEADERS)
    assert deleted.status_code == 204

    missing = await client.get(f"/api/data-files/{data_file_id}", headers=AUTH_HEADERS)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_nonexistent_data_file(client: AsyncClient):
    resp = await client.delete("/api/data-files/999999", headers=AUTH_HEADERS)
    assert resp.status_code == 404
