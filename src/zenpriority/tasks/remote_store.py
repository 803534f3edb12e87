# src/zenpriority/tasks/remote_store.py

"""
Hosted "tasks" table reached through the Supabase REST (PostgREST) API.

Only the five operations the board needs are implemented:
select-all ordered, insert, update by id, delete by id, upsert on id.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..core.errors import TaskTableError
from ..core.ports import TaskRow

logger = logging.getLogger(__name__)


class SupabaseTaskTable:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        name: str = "tasks",
        connect_timeout: float = 5.0,
        read_timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise RuntimeError("Task store URL is not set. Set ZEN_SUPABASE_URL in your .env.")
        if not api_key or not api_key.strip():
            raise RuntimeError("Task store key is not set. Set ZEN_SUPABASE_ANON_KEY in your .env.")

        self.name = name
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(
                connect=connect_timeout,
                read=read_timeout,
                write=10.0,
                pool=connect_timeout,
            ),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = {"Prefer": prefer} if prefer else None
        t0 = time.monotonic()
        try:
            resp = await self._client.request(method, f"/{self.name}", params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Store %s /%s transport error: %s", method, self.name, e.__class__.__name__)
            raise TaskTableError(f"{method} {self.name}: {e.__class__.__name__}: {e}") from e

        logger.info(
            "Store %s /%s -> %s (%.2fs)", method, self.name, resp.status_code, time.monotonic() - t0
        )
        if resp.is_error:
            detail = _error_detail(resp)
            raise TaskTableError(
                f"{method} {self.name} rejected ({resp.status_code}): {detail}",
                status_code=resp.status_code,
            )
        return resp

    async def select_ordered(self) -> list[TaskRow]:
        resp = await self._request("GET", params={"select": "*", "order": "order_index.asc"})
        try:
            data = resp.json()
        except ValueError as e:
            raise TaskTableError(f"GET {self.name}: response is not JSON") from e
        if data is None:
            return []
        if not isinstance(data, list):
            raise TaskTableError(f"GET {self.name}: expected a JSON array, got {type(data).__name__}")
        return [r for r in data if isinstance(r, dict)]

    async def insert(self, row: TaskRow) -> None:
        await self._request("POST", json=row, prefer="return=minimal")

    async def update(self, task_id: str, fields: TaskRow) -> None:
        await self._request("PATCH", params={"id": f"eq.{task_id}"}, json=fields, prefer="return=minimal")

    async def delete(self, task_id: str) -> None:
        await self._request("DELETE", params={"id": f"eq.{task_id}"})

    async def upsert(self, rows: list[TaskRow]) -> None:
        if not rows:
            return
        await self._request(
            "POST",
            params={"on_conflict": "id"},
            json=rows,
            prefer="resolution=merge-duplicates,return=minimal",
        )


def _error_detail(resp: httpx.Response) -> str:
    """PostgREST errors are JSON objects with a "message"; fall back to raw text."""
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip()[:300] or resp.reason_phrase
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error") or body.get("hint")
        if msg:
            return str(msg)
    return str(body)[:300]
