from __future__ import annotations
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ProfileRole(str, Enum):
    admin = "admin"
    user = "user"


class Profile(BaseModel):
    id: str
    full_name: Optional[str] = None
    role: ProfileRole = ProfileRole.user

    class Config:
        from_attributes = True
