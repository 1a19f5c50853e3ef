# sceneflix/booking/history.py
"""
Read-through cache of the signed-in user's booking records.

The backend owns the rows; this only remembers what was fetched so the
confirmation and profile pages don't refetch the same record.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from supabase import AsyncClient

from sceneflix.auth.session import AuthState, SessionStore
from sceneflix.db import bookings as bookings_db
from sceneflix.errors import GatewayError
from sceneflix.models import BookingRecord, BookingStatus, UserProfile

logger = logging.getLogger(__name__)


def parse_bookings(rows: Sequence[Mapping[str, Any]]) -> list[BookingRecord]:
    records: list[BookingRecord] = []
    for row in rows:
        try:
            records.append(BookingRecord.model_validate(row))
        except ValueError as e:
            logger.warning("[history] SKIP malformed booking id=%r | %s", row.get("id"), e)
    return records


class BookingHistory:
    def __init__(self, supabase: AsyncClient, session: SessionStore) -> None:
        self._supabase = supabase
        self._session = session
        self._cache: dict[str, BookingRecord] = {}
        self._subscription = session.subscribe(self._on_session_change)

    def _on_session_change(self, state: AuthState, user: UserProfile | None) -> None:
        # another identity must never see the previous user's records
        if state is not AuthState.AUTHENTICATED:
            self._cache.clear()

    def close(self) -> None:
        self._subscription.unsubscribe()
        self._cache.clear()

    def cached(self, booking_id: str) -> BookingRecord | None:
        return self._cache.get(booking_id)

    def remember(self, record: BookingRecord) -> None:
        self._cache[record.id] = record

    async def list_mine(self) -> list[BookingRecord]:
        """Newest first. [] when signed out or on fetch failure."""
        user = self._session.user
        if user is None:
            return []
        try:
            rows = await bookings_db.fetch_user_bookings(self._supabase, user.id)
        except GatewayError as e:
            logger.error("[history] list failed user_id=%s | %s", user.id, e)
            return []
        records = parse_bookings(rows)
        for r in records:
            self._cache[r.id] = r
        return records

    async def get(self, booking_id: str) -> BookingRecord | None:
        hit = self._cache.get(booking_id)
        if hit is not None:
            return hit
        try:
            row = await bookings_db.fetch_booking(self._supabase, booking_id)
        except GatewayError as e:
            logger.error("[history] get failed booking_id=%s | %s", booking_id, e)
            return None
        if row is None:
            return None
        found = parse_bookings([row])
        if not found:
            return None
        self._cache[booking_id] = found[0]
        return found[0]

    async def cancel(self, booking_id: str) -> BookingRecord | None:
        """Mark a booking cancelled. Raises on failure (this is a mutation)."""
        self._session.require_user("cancel booking")
        await bookings_db.update_booking_status(
            self._supabase, booking_id, BookingStatus.CANCELLED.value
        )
        self._cache.pop(booking_id, None)
        return await self.get(booking_id)
