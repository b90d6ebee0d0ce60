from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.DB.supabase import get_supabase
from app.common.repository import SupabaseRepository

logger = logging.getLogger("quiz.repository")


class QuizRepository(SupabaseRepository):
    """Reads and appends ``quiz_attempts`` rows.

    Attempts are append-only from this service's point of view: nothing here
    updates or deletes them.
    """

    async def _client(self):
        return await get_supabase()

    async def get_attempts(
        self,
        user_id: Optional[str] = None,
        module_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        client = await self._client()
        query = client.table("quiz_attempts").select("*")
        if user_id is not None:
            query = query.eq("user_id", user_id)
        if module_id is not None:
            query = query.eq("module_id", module_id)
        resp = await self._exec(query.order("completed_at").execute(), op="quiz_attempts.list")
        return self._rows(resp)

    async def get_questions(self, module_id: str) -> List[Dict[str, Any]]:
        client = await self._client()
        resp = await self._exec(
            client.table("questions").select("*").eq("module_id", module_id).execute(),
            op="questions.by_module",
        )
        return self._rows(resp)

    async def module_exists(self, module_id: str) -> bool:
        client = await self._client()
        resp = await self._exec(
            client.table("modules").select("id").eq("id", module_id).limit(1).execute(),
            op="modules.exists",
        )
        return bool(self._rows(resp))

    async def submit_attempt(self, user_id: str, module_id: str, score: int) -> Dict[str, Any]:
        client = await self._client()
        record = {"user_id": user_id, "module_id": module_id, "score": score}
        resp = await self._exec(client.table("quiz_attempts").insert(record).execute(), op="quiz_attempts.insert")
        rows = self._rows(resp)
        if not rows:
            raise RuntimeError("Failed to save quiz attempt")
        logger.info("quiz_attempt_saved user_id=%s module_id=%s score=%s", user_id, module_id, score)
        return rows[0]


quiz_repository = QuizRepository()
