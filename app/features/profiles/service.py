from typing import Optional, List, Dict, Any
from .repository import profile_repository


async def get_profile_by_id(profile_id: str) -> Optional[Dict[str, Any]]:
    return await profile_repository.get_by_id(profile_id)


async def list_profiles() -> List[Dict[str, Any]]:
    return await profile_repository.get_profiles()
