# sceneflix/app.py
"""
Composition root: one SceneflixApp per process.

    app = await bootstrap()
    view = await app.home.load()
    flow = await app.checkout(event_id)   # NotAuthenticatedError -> go to login
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from supabase import AsyncClient

from .auth.session import SessionStore
from .booking.flow import BookingFlow
from .booking.history import BookingHistory
from .catalog.aggregator import EventCatalog
from .catalog.rails import CategoryView, HomeFeed
from .config import Settings
from .db.supabase_client import get_supabase_client
from .log import configure_logging
from .watchlist.storage import JsonFileStorage, KeyValueStorage
from .watchlist.store import WatchlistStore

logger = logging.getLogger(__name__)


@dataclass
class SceneflixApp:
    supabase: AsyncClient
    session: SessionStore
    catalog: EventCatalog
    watchlist: WatchlistStore
    bookings: BookingHistory
    home: HomeFeed

    def category(self, slug: str) -> CategoryView:
        return CategoryView(self.catalog, slug)

    async def checkout(self, event_id: str, **kwargs) -> BookingFlow:
        return await BookingFlow.open(self.supabase, self.session, event_id, **kwargs)

    def close(self) -> None:
        self.home.close()
        self.bookings.close()
        self.session.detach()


def build_app(
    supabase: AsyncClient,
    settings: Settings,
    storage: KeyValueStorage | None = None,
) -> SceneflixApp:
    session = SessionStore(supabase, reset_redirect_url=settings.reset_redirect_url)
    catalog = EventCatalog(supabase)
    storage = storage or JsonFileStorage(os.path.join(settings.data_dir, "storage"))
    return SceneflixApp(
        supabase=supabase,
        session=session,
        catalog=catalog,
        watchlist=WatchlistStore(storage, key=settings.bookmarks_key),
        bookings=BookingHistory(supabase, session),
        home=HomeFeed(catalog),
    )


async def bootstrap(
    settings: Settings | None = None,
    *,
    supabase: AsyncClient | None = None,
    storage: KeyValueStorage | None = None,
) -> SceneflixApp:
    settings = settings or Settings()
    configure_logging(settings.log_level)

    if supabase is None:
        supabase = await get_supabase_client(settings)

    app = build_app(supabase, settings, storage)
    app.session.attach()
    state = await app.session.restore()
    logger.info("[app] ready session=%s", state.value)
    return app
