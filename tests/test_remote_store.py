# tests/test_remote_store.py

from __future__ import annotations

import json

import httpx
import pytest

from zenpriority.core.errors import TaskTableError
from zenpriority.tasks.remote_store import SupabaseTaskTable

from .fakes import make_row


class Recorder:
    """httpx.MockTransport handler that records requests and replays canned responses."""

    def __init__(self, response: httpx.Response | None = None, exc: Exception | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.response = response or httpx.Response(204)
        self.exc = exc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return self.response


def _table(recorder: Recorder) -> SupabaseTaskTable:
    return SupabaseTaskTable(
        base_url="https://example.supabase.co/",
        api_key="anon-key",
        transport=httpx.MockTransport(recorder),
    )


@pytest.mark.asyncio
async def test_select_ordered_hits_rest_endpoint_with_auth_headers() -> None:
    rows = [make_row("a", 0), make_row("b", 1)]
    rec = Recorder(httpx.Response(200, json=rows))
    table = _table(rec)

    assert await table.select_ordered() == rows

    req = rec.requests[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/tasks"
    assert req.url.params["order"] == "order_index.asc"
    assert req.url.params["select"] == "*"
    assert req.headers["apikey"] == "anon-key"
    assert req.headers["authorization"] == "Bearer anon-key"
    await table.aclose()


@pytest.mark.asyncio
async def test_insert_update_delete_requests() -> None:
    rec = Recorder()
    table = _table(rec)

    await table.insert(make_row("a", 0))
    await table.update("a", {"title": "x"})
    await table.delete("a")

    insert, update, delete = rec.requests
    assert insert.method == "POST"
    assert json.loads(insert.content)["id"] == "a"
    assert update.method == "PATCH"
    assert update.url.params["id"] == "eq.a"
    assert json.loads(update.content) == {"title": "x"}
    assert delete.method == "DELETE"
    assert delete.url.params["id"] == "eq.a"
    await table.aclose()


@pytest.mark.asyncio
async def test_upsert_merges_on_id() -> None:
    rec = Recorder()
    table = _table(rec)

    await table.upsert([make_row("a", 0), make_row("b", 1)])
    await table.upsert([])

    assert len(rec.requests) == 1
    req = rec.requests[0]
    assert req.method == "POST"
    assert req.url.params["on_conflict"] == "id"
    assert "resolution=merge-duplicates" in req.headers["prefer"]
    assert [r["id"] for r in json.loads(req.content)] == ["a", "b"]
    await table.aclose()


@pytest.mark.asyncio
async def test_rejection_raises_with_status_and_message() -> None:
    rec = Recorder(httpx.Response(401, json={"message": "JWT expired"}))
    table = _table(rec)

    with pytest.raises(TaskTableError) as ei:
        await table.insert(make_row("a", 0))
    assert ei.value.status_code == 401
    assert "JWT expired" in str(ei.value)
    await table.aclose()


@pytest.mark.asyncio
async def test_transport_error_raises_task_table_error() -> None:
    rec = Recorder(exc=httpx.ConnectError("connection refused"))
    table = _table(rec)

    with pytest.raises(TaskTableError):
        await table.select_ordered()
    await table.aclose()


@pytest.mark.asyncio
async def test_select_rejects_non_array_body() -> None:
    rec = Recorder(httpx.Response(200, json={"rows": []}))
    table = _table(rec)

    with pytest.raises(TaskTableError):
        await table.select_ordered()
    await table.aclose()


def test_missing_credentials_fail_fast() -> None:
    with pytest.raises(RuntimeError):
        SupabaseTaskTable(base_url="", api_key="k")
    with pytest.raises(RuntimeError):
        SupabaseTaskTable(base_url="https://example.supabase.co", api_key="")
