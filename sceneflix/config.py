# sceneflix/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()  # loads .env if present

BOOKMARKS_KEY = "sceneflix_bookmarks"


def _first_env(*names: str) -> str:
    for name in names:
        v = (os.getenv(name) or "").strip()
        if v:
            return v
    return ""


@dataclass(frozen=True)
class Settings:
    supabase_url: str = field(
        default_factory=lambda: _first_env("SUPABASE_URL", "VITE_SUPABASE_URL")
    )
    supabase_anon_key: str = field(
        default_factory=lambda: _first_env(
            "SUPABASE_ANON_KEY",
            "NEXT_PUBLIC_SUPABASE_ANON_KEY",
            "VITE_SUPABASE_ANON_KEY",
        )
    )
    data_dir: str = field(
        default_factory=lambda: os.getenv("SCENEFLIX_DATA_DIR", ".sceneflix")
    )
    reset_redirect_url: str = field(
        default_factory=lambda: os.getenv(
            "SCENEFLIX_RESET_REDIRECT", "http://localhost:5173/reset-password"
        )
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    bookmarks_key: str = BOOKMARKS_KEY

    def require_supabase(self) -> None:
        # Fail fast if required env vars are missing
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")
        if missing:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Copy .env.example to .env and fill in your Supabase credentials."
            )
