# sceneflix/db/bookings.py
"""
Mutations and reads on public.bookings.

The backend owns booking rows; the client only inserts a confirmed
checkout and flips status afterwards.
"""
from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from sceneflix.errors import GatewayError

from .gateway import execute, execute_one

BOOKING_STATUSES = ("pending", "confirmed", "cancelled")


async def insert_booking(
    supabase: AsyncClient,
    *,
    user_id: str,
    event_id: str,
    ticket_id: str,
    quantity: int,
    total_price: float,
    status: str = "confirmed",
) -> dict[str, Any]:
    """Insert one booking row and return it as stored by the backend."""
    payload: dict[str, Any] = {
        "user_id": user_id,
        "event_id": event_id,
        "ticket_id": ticket_id,
        "quantity": quantity,
        "total_price": total_price,
        "status": status,
    }
    row = await execute_one("bookings.insert", supabase.table("bookings").insert(payload))
    if row is None:
        # RLS can hide the inserted row from the returning select
        raise GatewayError("bookings.insert", "insert returned no row")
    return row


async def fetch_user_bookings(supabase: AsyncClient, user_id: str) -> list[dict[str, Any]]:
    query = (
        supabase.table("bookings")
        .select("*, event:events(*)")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
    )
    return await execute("bookings.by_user", query)


async def fetch_booking(supabase: AsyncClient, booking_id: str) -> dict[str, Any] | None:
    query = (
        supabase.table("bookings")
        .select("*, event:events(*)")
        .eq("id", booking_id)
        .limit(1)
    )
    return await execute_one(f"bookings.by_id[{booking_id}]", query)


async def update_booking_status(supabase: AsyncClient, booking_id: str, status: str) -> None:
    if status not in BOOKING_STATUSES:
        raise ValueError(f"Invalid booking status: {status!r}")
    query = supabase.table("bookings").update({"status": status}).eq("id", booking_id)
    await execute(f"bookings.status[{booking_id}]", query)
