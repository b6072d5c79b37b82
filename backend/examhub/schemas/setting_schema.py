from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, List


class SettingValue(BaseModel):
    setting_value: Any

    @field_validator("setting_value")
    def not_empty(cls, v):
        if v is None or v == "":
            raise ValueError("setting_value must not be empty")
        return v


class SettingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    setting_key: str
    setting_value: Any = None


class RoleCount(BaseModel):
    role: str
    count: int


class UserMetrics(BaseModel):
    total_users: int
    active_students: int
    administrators: int
    by_role: List[RoleCount]
