from fastapi_users import schemas
from examhub.models.user_model import UserRole
from typing import Any, Dict, Optional
import uuid
from pydantic import BaseModel

# fields only a superuser may change, through PATCH /users/{id}
PRIVILEGED_USER_FIELDS = {"role", "role_id", "is_superuser"}


class UserRead(schemas.BaseUser[uuid.UUID]):
    full_name: Optional[str] = None
    role: UserRole
    role_id: Optional[int] = None
    username: Optional[str] = None
    student_id: Optional[str] = None
    status: Optional[str] = None

class UserCreate(schemas.BaseUserCreate):
    # no role field: self-registered accounts get the model default, student
    full_name: str
    username: Optional[str] = None
    student_id: Optional[str] = None

class UserUpdate(schemas.BaseUserUpdate):
    full_name : str | None = None
    role: UserRole | None = None
    role_id: int | None = None
    is_superuser : bool = False

    def create_update_dict(self) -> Dict[str, Any]:
        # self-service update (PATCH /users/me)
        data = super().create_update_dict()
        for field in PRIVILEGED_USER_FIELDS:
            data.pop(field, None)
        return data

class LoginRequest(BaseModel):
    email: str
    password: str
