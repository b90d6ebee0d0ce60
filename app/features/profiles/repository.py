from typing import Any, Dict, List, Optional
from app.DB.supabase import get_supabase
from app.common.repository import SupabaseRepository
import logging

logger = logging.getLogger("profiles.repository")


class ProfileRepository(SupabaseRepository):
    async def _client(self):
        return await get_supabase()

    async def get_by_id(self, profile_id: str) -> Optional[dict]:
        client = await self._client()
        resp = await self._exec(
            client.table("profiles").select("*").eq("id", profile_id).execute(),
            op="profiles.select_by_id",
        )
        rows = self._rows(resp)
        return rows[0] if rows else None

    async def get_profiles(self) -> List[Dict[str, Any]]:
        client = await self._client()
        resp = await self._exec(
            client.table("profiles").select("id, full_name, role").execute(),
            op="profiles.list",
        )
        return self._rows(resp)


profile_repository = ProfileRepository()
