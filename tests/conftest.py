# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for Compass LK maintenance tests."""

import json
import os

import httpx
import pytest

# Set test environment variables before importing the package
os.environ.setdefault("DISABLE_LOGGING", "1")

from compass.models import Entity
from compass.store import SupabaseStore

REST_URL = "https://test-project.supabase.co/rest/v1"


def _parse_in(value: str) -> set[str]:
    inner = value[len("in.("):-1]
    return {part.strip().strip('"') for part in inner.split(",") if part.strip()}


class FakePostgrest:
    """In-memory stand-in for a PostgREST table, served through httpx.MockTransport."""

    def __init__(self, rows, protected=(), delete_status=None, patch_status=None):
        self.rows = {str(r["id"]): dict(r) for r in rows}
        # Ids that policies silently hide from delete/update
        self.protected = set(protected)
        self.delete_status = delete_status
        self.patch_status = patch_status
        self.requests: list[httpx.Request] = []

    def requests_by(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    def _filter(self, params) -> list[dict]:
        rows = list(self.rows.values())
        for key, value in params.multi_items():
            if key in ("select", "limit", "offset", "order"):
                continue
            if value == "is.null":
                rows = [r for r in rows if r.get(key) is None]
            elif value.startswith("eq."):
                rows = [r for r in rows if str(r.get(key)) == value[3:]]
            elif value.startswith("in.("):
                wanted = _parse_in(value)
                rows = [r for r in rows if str(r.get(key)) in wanted]
        # "name.asc,id.asc": sort by the last key first so the sorts compose
        for part in reversed(params.get("order", "").split(",")):
            column = part.split(".")[0]
            if column:
                rows.sort(key=lambda r: str(r.get(column) or ""))
        return rows

    def _error(self, status: int) -> httpx.Response:
        return httpx.Response(status, json={"code": "42501", "message": "permission denied for table destinations"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        matched = self._filter(params)

        if request.method == "GET":
            offset = int(params.get("offset", 0))
            limit = int(params.get("limit", len(matched) or 1))
            page = matched[offset:offset + limit]
            if params.get("select") == "id":
                page = [{"id": r["id"]} for r in page]
            return httpx.Response(200, json=page)

        if request.method == "DELETE":
            if self.delete_status:
                return self._error(self.delete_status)
            deleted = [r for r in matched if str(r["id"]) not in self.protected]
            for r in deleted:
                del self.rows[str(r["id"])]
            return httpx.Response(200, json=deleted)

        if request.method == "PATCH":
            if self.patch_status:
                return self._error(self.patch_status)
            fields = json.loads(request.content)
            updated = []
            for r in matched:
                if str(r["id"]) in self.protected:
                    continue
                r.update(fields)
                updated.append(r)
            return httpx.Response(200, json=updated)

        return httpx.Response(405)


@pytest.fixture
def make_store():
    """Factory returning (store, backend) over an in-memory table."""
    clients = []

    def _make(rows, page_size: int = 1000, **backend_options):
        backend = FakePostgrest(rows, **backend_options)
        client = httpx.Client(transport=httpx.MockTransport(backend))
        clients.append(client)
        store = SupabaseStore(REST_URL, "test-key", page_size=page_size, http_client=client)
        return store, backend

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def sample_rows() -> list[dict]:
    """Destination rows with two duplicate groups and one singleton."""
    return [
        {
            "id": "b",
            "name": "Sigiriya Rock",
            "description": "Ancient rock fortress.",
            "province_id": "p-central",
            "image_url": "/src/pictures/sigiriya.jpg",
            "location_lat": 7.957,
            "location_lng": 80.760,
            "provinces": {"name": "Central"},
        },
        {
            "id": "a",
            "name": "sigiriya rock!!",
            "description": None,
            "province_id": None,
            "image_url": None,
            "location_lat": None,
            "location_lng": None,
        },
        {
            "id": "z9",
            "name": "Temple A",
            "description": None,
            "province_id": None,
            "image_url": None,
            "location_lat": None,
            "location_lng": None,
        },
        {
            "id": "a1",
            "name": "temple a",
            "description": None,
            "province_id": None,
            "image_url": None,
            "location_lat": None,
            "location_lng": None,
        },
        {
            "id": "k1",
            "name": "Kandy Lake",
            "description": None,
            "province_id": "p-central",
            "image_url": None,
            "location_lat": None,
            "location_lng": None,
            "provinces": {"name": "Central"},
        },
    ]


@pytest.fixture
def sample_entities(sample_rows) -> list[Entity]:
    return [Entity.from_row(r) for r in sample_rows]
