# sceneflix/watchlist/store.py
"""
Watchlist ("My List") of favorited events.

Entries are Event snapshots keyed by ``Event.id``; at most one entry per
id, insertion order preserved. Every mutation reads the whole collection,
modifies it and writes it back in a single ``storage.set`` before
returning.

Storage failures never reach the caller: reads degrade to an empty list,
writes degrade to a no-op. Both are logged.
"""
from __future__ import annotations

import logging

from pydantic import TypeAdapter

from sceneflix.config import BOOKMARKS_KEY
from sceneflix.errors import StorageError
from sceneflix.models import Event

from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

_EVENTS = TypeAdapter(list[Event])


def serialize_events(events: list[Event]) -> str:
    return _EVENTS.dump_json(events).decode("utf-8")


def deserialize_events(raw: str) -> list[Event]:
    return _EVENTS.validate_json(raw)


class WatchlistStore:
    def __init__(self, storage: KeyValueStorage, key: str = BOOKMARKS_KEY) -> None:
        self._storage = storage
        self._key = key

    def list(self) -> list[Event]:
        try:
            raw = self._storage.get(self._key)
            if not raw:
                return []
            return deserialize_events(raw)
        except (StorageError, ValueError) as e:
            logger.error("[watchlist] read failed key=%s | %s", self._key, e)
            return []

    def contains(self, event_id: str) -> bool:
        return any(e.id == event_id for e in self.list())

    def add(self, event: Event) -> None:
        events = self.list()
        if any(e.id == event.id for e in events):
            return
        events.append(event)
        self._write(events)

    def remove(self, event_id: str) -> None:
        events = self.list()
        kept = [e for e in events if e.id != event_id]
        self._write(kept)

    def toggle(self, event: Event) -> bool:
        """Flip membership of *event*; returns True if it is now in the list."""
        if self.contains(event.id):
            self.remove(event.id)
            return False
        self.add(event)
        return True

    def clear(self) -> None:
        self._write([])

    def _write(self, events: list[Event]) -> None:
        try:
            self._storage.set(self._key, serialize_events(events))
        except StorageError as e:
            logger.error(
                "[watchlist] write failed key=%s size=%d | %s", self._key, len(events), e
            )
