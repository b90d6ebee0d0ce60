"""Async Supabase client shared by every repository.

Import using: from app.DB.supabase import get_supabase
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional
from supabase import AsyncClient, create_async_client
from app.core.config import get_settings

logger = logging.getLogger("db.supabase")

_client: Optional[AsyncClient] = None
_lock = asyncio.Lock()


async def get_supabase() -> AsyncClient:
    """Return the process-wide client, creating it on first use.

    Creation is clamped by ``SUPABASE_QUERY_TIMEOUT``. Missing credentials or a
    failed handshake raise ``RuntimeError`` and leave nothing cached, so the
    next call tries again.
    """
    global _client
    if _client is not None:
        return _client
    async with _lock:
        if _client is None:
            settings = get_settings()
            if not settings.supabase_url or not settings.supabase_key:
                raise RuntimeError("Supabase is not configured (SUPABASE_URL / SUPABASE_KEY)")
            try:
                _client = await asyncio.wait_for(
                    create_async_client(settings.supabase_url, settings.supabase_key),
                    timeout=settings.supabase_query_timeout,
                )
            except Exception as exc:
                logger.warning("supabase_client_init_failed error=%s", exc)
                raise RuntimeError("Could not create Supabase async client") from exc
            logger.info("supabase_client_ready url=%s", settings.supabase_url)
    return _client


__all__ = ["get_supabase"]
