from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.DB.supabase import get_supabase
from app.common.repository import SupabaseRepository

logger = logging.getLogger("modules.repository")


class ModuleRepository(SupabaseRepository):
    """Pass-through CRUD for the ``modules`` and ``questions`` tables."""

    async def _client(self):
        return await get_supabase()

    async def get_modules(self) -> List[Dict[str, Any]]:
        client = await self._client()
        resp = await self._exec(
            client.table("modules").select("*").order("created_at", desc=True).execute(),
            op="modules.list",
        )
        return self._rows(resp)

    async def get_module(self, module_id: str) -> Optional[Dict[str, Any]]:
        client = await self._client()
        resp = await self._exec(
            client.table("modules").select("*").eq("id", module_id).execute(),
            op="modules.select_by_id",
        )
        rows = self._rows(resp)
        return rows[0] if rows else None

    async def create_module(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._client()
        resp = await self._exec(client.table("modules").insert(fields).execute(), op="modules.insert")
        rows = self._rows(resp)
        if not rows:
            raise RuntimeError("Failed to create module record")
        return rows[0]

    async def update_module(self, module_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        client = await self._client()
        resp = await self._exec(
            client.table("modules").update(fields).eq("id", module_id).execute(),
            op="modules.update",
        )
        rows = self._rows(resp)
        return rows[0] if rows else None

    async def delete_module(self, module_id: str) -> bool:
        client = await self._client()
        resp = await self._exec(
            client.table("modules").delete().eq("id", module_id).execute(),
            op="modules.delete",
        )
        return bool(self._rows(resp))

    async def get_questions(self, module_id: str) -> List[Dict[str, Any]]:
        client = await self._client()
        resp = await self._exec(
            client.table("questions").select("*").eq("module_id", module_id).execute(),
            op="questions.by_module",
        )
        return self._rows(resp)

    async def replace_questions(self, module_id: str, questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Delete every question of the module, then insert ``questions``."""
        client = await self._client()
        await self._exec(
            client.table("questions").delete().eq("module_id", module_id).execute(),
            op="questions.delete_by_module",
        )
        if not questions:
            return []
        rows = [{**q, "module_id": module_id} for q in questions]
        resp = await self._exec(client.table("questions").insert(rows).execute(), op="questions.insert")
        return self._rows(resp)

    async def delete_questions(self, module_id: str) -> None:
        client = await self._client()
        await self._exec(
            client.table("questions").delete().eq("module_id", module_id).execute(),
            op="questions.delete_by_module",
        )


module_repository = ModuleRepository()
