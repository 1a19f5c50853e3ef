# sceneflix/db/profiles.py
from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from .gateway import execute, execute_one


async def insert_profile(
    supabase: AsyncClient,
    *,
    user_id: str,
    email: str,
    full_name: str,
    role: str = "user",
) -> None:
    payload = {
        "id": user_id,
        "email": email,
        "full_name": full_name,
        "role": role,
    }
    await execute("user_profiles.insert", supabase.table("user_profiles").insert(payload))


async def fetch_profile(supabase: AsyncClient, user_id: str) -> dict[str, Any] | None:
    query = (
        supabase.table("user_profiles")
        .select("*")
        .eq("id", user_id)
        .limit(1)
    )
    return await execute_one(f"user_profiles.by_id[{user_id}]", query)


async def update_profile(supabase: AsyncClient, user_id: str, updates: dict[str, Any]) -> None:
    """Partial update; keys absent from ``updates`` are left untouched."""
    if not updates:
        return
    query = supabase.table("user_profiles").update(updates).eq("id", user_id)
    await execute(f"user_profiles.update[{user_id}]", query)
