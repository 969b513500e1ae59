from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lapor.models.profile import ProfileRole


class ProfileOut(BaseModel):
    id: str
    name: str
    role: ProfileRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileRoleUpdate(BaseModel):
    role: ProfileRole
