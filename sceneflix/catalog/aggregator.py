# sceneflix/catalog/aggregator.py
"""
Event catalog reads.

Each ``fetch_*_result`` returns Ok(events) / Err(reason) with the failure
reason kept. The public ``get_*``/``search`` methods collapse Err to an
empty/absent value: catalog reads never raise past this module.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Mapping, Sequence

from supabase import AsyncClient

from sceneflix.db import events as events_db
from sceneflix.errors import GatewayError
from sceneflix.models import Event
from sceneflix.result import Err, Ok, Result, unwrap_or

logger = logging.getLogger(__name__)

DEFAULT_TRENDING_LIMIT = 5
DEFAULT_CATEGORY_LIMIT = 10
DEFAULT_SEARCH_LIMIT = 20


def normalize_slug(slug: str | None) -> str:
    return (slug or "").strip().lower()


def parse_events(rows: Sequence[Mapping[str, Any]], *, source: str) -> list[Event]:
    """Build Event models; malformed rows are skipped, never fatal."""
    events: list[Event] = []
    skipped = 0
    for row in rows:
        try:
            events.append(Event.model_validate(row))
        except ValueError as e:
            skipped += 1
            logger.warning("[catalog] SKIP malformed row source=%s id=%r | %s", source, row.get("id"), e)
    if skipped:
        logger.info("[catalog] source=%s parsed=%d skipped=%d", source, len(events), skipped)
    return events


class EventCatalog:
    def __init__(self, supabase: AsyncClient) -> None:
        self._supabase = supabase

    async def _fetch(
        self, source: str, call: Awaitable[list[dict[str, Any]]]
    ) -> Result[list[Event]]:
        try:
            rows = await call
        except GatewayError as e:
            logger.error("[catalog] fetch failed source=%s | %s", source, e)
            return Err(reason=str(e), error=e)
        return Ok(parse_events(rows, source=source))

    # ---- results (Ok/Err) ----

    async def fetch_trending_result(self, limit: int = DEFAULT_TRENDING_LIMIT) -> Result[list[Event]]:
        return await self._fetch(
            "trending", events_db.fetch_trending(self._supabase, limit=limit)
        )

    async def fetch_by_category_result(
        self, slug: str, limit: int = DEFAULT_CATEGORY_LIMIT
    ) -> Result[list[Event]]:
        slug = normalize_slug(slug)
        if not slug:
            return Err(reason="empty category slug")
        return await self._fetch(
            f"category:{slug}",
            events_db.fetch_by_category(self._supabase, slug, limit=limit),
        )

    async def fetch_search_result(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> Result[list[Event]]:
        text = (query or "").strip()
        if not text:
            return Ok([])
        return await self._fetch(
            "search", events_db.search_by_title(self._supabase, text, limit=limit)
        )

    # ---- read boundary (never raises) ----

    async def get_trending(self, limit: int = DEFAULT_TRENDING_LIMIT) -> list[Event]:
        return unwrap_or(await self.fetch_trending_result(limit), [])

    async def get_by_category(self, slug: str, limit: int = DEFAULT_CATEGORY_LIMIT) -> list[Event]:
        return unwrap_or(await self.fetch_by_category_result(slug, limit), [])

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[Event]:
        return unwrap_or(await self.fetch_search_result(query, limit), [])

    async def get_by_id(self, event_id: str) -> Event | None:
        if not event_id:
            return None
        try:
            row = await events_db.fetch_by_id(self._supabase, event_id)
        except GatewayError as e:
            logger.error("[catalog] fetch failed event_id=%s | %s", event_id, e)
            return None
        if row is None:
            return None
        found = parse_events([row], source=f"event:{event_id}")
        return found[0] if found else None
