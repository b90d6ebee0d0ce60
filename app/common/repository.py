"""Shared plumbing for the Supabase-backed repositories."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, List

from app.core.config import get_settings

logger = logging.getLogger("supabase.exec")


class SupabaseRepository:
    """Base class: clamps every query with a timeout and logs slow/failed calls.

    Subclasses fetch the client through ``_client()`` so tests can swap the
    module-level ``get_supabase`` of the subclass module.
    """

    async def _client(self):
        raise NotImplementedError

    async def _exec(self, awaitable: Awaitable[Any], op: str) -> Any:
        timeout = get_settings().supabase_query_timeout
        t0 = time.perf_counter()
        try:
            resp = await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("supabase_%s_timeout after=%ss", op, timeout)
            raise RuntimeError(f"Supabase {op} timed out after {timeout}s") from exc
        except Exception as exc:
            logger.warning("supabase_%s_failed error=%s", op, exc)
            raise RuntimeError(f"Supabase {op} failed") from exc
        ms = int((time.perf_counter() - t0) * 1000)
        if ms > 50:
            logger.info("supabase_%s_ms=%d", op, ms)
        return resp

    @staticmethod
    def _rows(resp: Any) -> List[Dict[str, Any]]:
        data = getattr(resp, "data", None)
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return [data]
        return []
