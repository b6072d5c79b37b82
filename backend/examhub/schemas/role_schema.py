from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime

from ..dependencies import PERMISSION_CATALOG


class RoleData(BaseModel):
    name: str = Field(..., max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    permissions: List[str]

    @field_validator("name")
    def name_not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("permissions")
    def dedupe_permissions(cls, v):
        seen = []
        for p in v:
            p = p.strip()
            if not p or p in seen:
                continue
            if p not in PERMISSION_CATALOG:
                raise ValueError(f"Unknown permission: {p}")
            seen.append(p)
        return seen


class RoleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role_id: int
    name: str
    description: Optional[str] = None
    permissions: List[str] = []
    is_system: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
