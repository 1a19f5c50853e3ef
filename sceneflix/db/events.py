# sceneflix/db/events.py
"""
Queries against public.events.

Rows come back joined with their venue and category so the catalog can
build ``Event`` models directly.
"""
from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from .gateway import execute, execute_one

LIST_COLUMNS = """
    *,
    venue:venues(name, city),
    category:categories(name, slug)
"""

# !inner so the category filter drops events without a matching category
CATEGORY_COLUMNS = """
    *,
    venue:venues(name, city),
    category:categories!inner(name, slug)
"""

DETAIL_COLUMNS = """
    *,
    venue:venues(*),
    category:categories(*)
"""


async def fetch_trending(supabase: AsyncClient, *, limit: int = 5) -> list[dict[str, Any]]:
    query = (
        supabase.table("events")
        .select(LIST_COLUMNS)
        .eq("is_trending", True)
        .order("created_at", desc=True)
        .limit(limit)
    )
    return await execute("events.trending", query)


async def fetch_by_category(
    supabase: AsyncClient, slug: str, *, limit: int = 10
) -> list[dict[str, Any]]:
    query = (
        supabase.table("events")
        .select(CATEGORY_COLUMNS)
        .eq("category.slug", slug)
        .limit(limit)
    )
    return await execute(f"events.category[{slug}]", query)


async def fetch_by_id(supabase: AsyncClient, event_id: str) -> dict[str, Any] | None:
    query = (
        supabase.table("events")
        .select(DETAIL_COLUMNS)
        .eq("id", event_id)
        .limit(1)
    )
    return await execute_one(f"events.by_id[{event_id}]", query)


def escape_like(text: str) -> str:
    """Make ``%``/``_`` (and the escape char itself) match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def search_by_title(
    supabase: AsyncClient, text: str, *, limit: int = 20
) -> list[dict[str, Any]]:
    query = (
        supabase.table("events")
        .select(LIST_COLUMNS)
        .ilike("title", f"%{escape_like(text)}%")
        .limit(limit)
    )
    return await execute("events.search", query)
