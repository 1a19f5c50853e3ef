# sceneflix/db/gateway.py
"""
Shared execution helper for PostgREST queries.

Every table module builds its query and hands it to ``execute()`` which
awaits it and normalizes backend/network failures into ``GatewayError``.
"""
from __future__ import annotations

from typing import Any

import httpx
from postgrest.exceptions import APIError

from sceneflix.errors import GatewayError


def _extract_postgrest_error(e: APIError) -> dict[str, Any]:
    """
    Normalize PostgREST APIError across versions.
    We try to recover the dict that contains: message, code, details, hint.
    """
    raw = getattr(e, "json", None)
    if callable(raw):
        data = raw()
        if isinstance(data, dict):
            return data
    if getattr(e, "args", None) and len(e.args) >= 1 and isinstance(e.args[0], dict):
        return e.args[0]
    return {"message": str(e)}


async def execute(operation: str, query: Any) -> list[dict[str, Any]]:
    """Await ``query.execute()`` and return its rows (never None)."""
    try:
        resp = await query.execute()
    except APIError as e:
        err = _extract_postgrest_error(e)
        raise GatewayError(
            operation,
            str(err.get("message") or "backend error"),
            code=str(err["code"]) if err.get("code") is not None else None,
            details=err,
        ) from e
    except httpx.HTTPError as e:
        raise GatewayError(operation, f"{type(e).__name__}: {e}") from e

    data: Any = getattr(resp, "data", None)
    if not data:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


async def execute_one(operation: str, query: Any) -> dict[str, Any] | None:
    rows = await execute(operation, query)
    return rows[0] if rows else None
