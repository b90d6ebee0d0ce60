from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Supabase
        raw_url = os.getenv("SUPABASE_URL", "")
        self.supabase_url: str = raw_url.rstrip("/")
        self.supabase_key: str = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY", "")
        self.supabase_query_timeout: float = float(os.getenv("SUPABASE_QUERY_TIMEOUT", "5"))
        self.auth_whoami_timeout: float = float(os.getenv("AUTH_WHOAMI_TIMEOUT", "5"))
        # Quiz sessions live in process memory only
        self.quiz_session_ttl_seconds: int = int(os.getenv("QUIZ_SESSION_TTL_SECONDS", "3600"))
        # App meta
        self.app_name: str = "Video Quiz Tracker"
        self.app_version: str = os.getenv("APP_VERSION", "dev")
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.allow_origins: list[str] = [
            o.strip().rstrip("/")
            for o in os.getenv("ALLOW_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
            if o.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
