# tests/supabase_mock.py
"""
Async Supabase double shared by the test modules.

Query builders are MagicMocks whose chain methods return the builder
itself; ``execute`` is an AsyncMock. Per-table behaviour:
  - list of rows   -> every execute() returns those rows
  - Exception      -> every execute() raises it
  - callable       -> called per execute(); may return rows or raise
"""
from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
from postgrest.exceptions import APIError

CHAIN_METHODS = [
    "select", "like", "ilike", "in_", "order", "limit",
    "lte", "gte", "eq", "neq", "update", "insert", "upsert",
]


def api_error(message: str = "boom", code: str = "500") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def network_error() -> httpx.ConnectError:
    return httpx.ConnectError("connection refused")


def _result(rows: Any) -> MagicMock:
    result = MagicMock()
    result.data = rows
    return result


def mock_supabase(tables: dict[str, Any] | None = None) -> MagicMock:
    tables = dict(tables or {})
    sb = MagicMock()
    builders: dict[str, MagicMock] = {}

    def table_factory(name: str) -> MagicMock:
        builder = MagicMock()
        for method in CHAIN_METHODS:
            getattr(builder, method).return_value = builder

        async def _execute():
            spec = tables.get(name, [])
            if isinstance(spec, BaseException):
                raise spec
            if callable(spec):
                spec = spec()
            return _result(spec)

        builder.execute = AsyncMock(side_effect=_execute)
        return builder

    def table_dispatch(name: str) -> MagicMock:
        if name not in builders:
            builders[name] = table_factory(name)
        return builders[name]

    sb.table.side_effect = table_dispatch
    sb.builders = builders
    sb.tables = tables

    sb.auth = MagicMock()
    for method in [
        "sign_up", "sign_in_with_password", "sign_out", "get_session",
        "get_user", "reset_password_for_email", "update_user",
    ]:
        setattr(sb.auth, method, AsyncMock(return_value=None))
    return sb


def auth_user(user_id: str = "user-1", email: str = "fan@example.com") -> SimpleNamespace:
    return SimpleNamespace(id=user_id, email=email)


def auth_response(user: Any = None, session: Any = None) -> SimpleNamespace:
    return SimpleNamespace(user=user, session=session)


def event_row(event_id: str, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": event_id,
        "title": f"Event {event_id}",
        "description": "Late night set",
        "cover_image": f"https://img.example.com/{event_id}.jpg",
        "hero_image": None,
        "start_time": "2026-11-20T21:00:00+00:00",
        "end_time": None,
        "price_start": 499,
        "venue": {"name": "Warehouse", "city": "Mumbai"},
        "category": {"name": "Techno", "slug": "techno"},
        "is_trending": False,
        "created_at": "2026-10-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def profile_row(user_id: str = "user-1", **overrides: Any) -> dict[str, Any]:
    row = {
        "id": user_id,
        "email": "fan@example.com",
        "full_name": "Asha Rao",
        "phone": None,
        "avatar_url": None,
        "role": "user",
    }
    row.update(overrides)
    return row
