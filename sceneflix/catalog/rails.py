# sceneflix/catalog/rails.py
"""
Rails: themed, ordered views over catalog results.

A rail is a view, not storage: ``merge_rails`` concatenates and truncates
without de-duplicating, so one event may show up twice in "Trending Now"
when it belongs to both source categories.

HomeFeed and CategoryView guard against late results: each ``load()``
takes a generation number, and a result is committed to ``view`` only if
that generation is still current and the view has not been closed.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from sceneflix.models import Event

from .aggregator import EventCatalog, normalize_slug

logger = logging.getLogger(__name__)

TRENDING_RAIL_LIMIT = 10

HOME_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("techno", "Techno & House"),
    ("live", "Live Concerts"),
)


def merge_rails(*rails: Iterable[Event], limit: int = TRENDING_RAIL_LIMIT) -> list[Event]:
    merged: list[Event] = []
    for rail in rails:
        merged.extend(rail)
    return merged[:limit]


@dataclass(frozen=True)
class Rail:
    title: str
    events: list[Event] = field(default_factory=list)


@dataclass(frozen=True)
class HomeView:
    hero: Event | None
    rails: list[Rail]

    def rail(self, title: str) -> Rail | None:
        for r in self.rails:
            if r.title == title:
                return r
        return None


class _Relevance:
    """Generation counter shared by views that load asynchronously."""

    def __init__(self) -> None:
        self._generation = 0
        self._closed = False

    def begin(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class HomeFeed:
    def __init__(self, catalog: EventCatalog) -> None:
        self._catalog = catalog
        self._relevance = _Relevance()
        self.view: HomeView | None = None

    @property
    def closed(self) -> bool:
        return self._relevance.closed

    async def load(self) -> HomeView | None:
        """
        Fetch trending + home categories concurrently and build the view.
        Returns None (and leaves ``view`` untouched) if the result is stale.
        """
        generation = self._relevance.begin()

        # each get_* already degrades to [] on its own failure
        trending, *categories = await asyncio.gather(
            self._catalog.get_trending(),
            *(self._catalog.get_by_category(slug) for slug, _ in HOME_CATEGORIES),
        )

        rails = [
            Rail(title=title, events=events)
            for (_, title), events in zip(HOME_CATEGORIES, categories)
        ]
        rails.append(Rail(title="Trending Now", events=merge_rails(*categories)))
        view = HomeView(hero=trending[0] if trending else None, rails=rails)

        if not self._relevance.is_current(generation):
            logger.info("[rails] discard stale home load generation=%d", generation)
            return None
        self.view = view
        return view

    def close(self) -> None:
        self._relevance.close()


class CategoryView:
    def __init__(self, catalog: EventCatalog, slug: str) -> None:
        self._catalog = catalog
        self.slug = normalize_slug(slug)
        self._relevance = _Relevance()
        self.events: list[Event] = []
        self.loaded = False

    @property
    def title(self) -> str:
        return f"All {self.slug} Events"

    async def load(self) -> list[Event] | None:
        generation = self._relevance.begin()
        events = await self._catalog.get_by_category(self.slug)
        if not self._relevance.is_current(generation):
            logger.info("[rails] discard stale category load slug=%s", self.slug)
            return None
        self.events = events
        self.loaded = True
        return events

    def close(self) -> None:
        self._relevance.close()
