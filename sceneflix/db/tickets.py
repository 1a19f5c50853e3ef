# sceneflix/db/tickets.py
from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from .gateway import execute


async def fetch_event_tickets(supabase: AsyncClient, event_id: str) -> list[dict[str, Any]]:
    """All ticket offerings of one event, cheapest first."""
    query = (
        supabase.table("tickets")
        .select("*")
        .eq("event_id", event_id)
        .order("price", desc=False)
    )
    return await execute(f"tickets.by_event[{event_id}]", query)
