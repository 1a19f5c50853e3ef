# sceneflix/db/supabase_client.py
from __future__ import annotations

from supabase import AsyncClient, acreate_client

from sceneflix.config import Settings


async def get_supabase_client(settings: Settings | None = None) -> AsyncClient:
    settings = settings or Settings()
    settings.require_supabase()
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key)
