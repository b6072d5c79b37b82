from fastapi import Depends, HTTPException, status, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_async_session
from .models.user_model import User, UserRole
from .models.role_model import Role
from .security import current_active_user


PERMISSION_CATALOG = [
    "users.read", "users.write", "users.delete", "users.invite",
    "roles.read", "roles.write", "roles.delete",
    "subjects.read", "subjects.write", "subjects.delete",
    "exams.read", "exams.write", "exams.delete",
    "results.read", "results.publish",
    "settings.read", "settings.update",
]


def current_user_has_role(required_role: UserRole):
    async def current_user_contains_role(user: User = Depends(current_active_user)):
        if user.role != required_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation not permitted",
            )
        return user
    return current_user_contains_role


current_admin = current_user_has_role(UserRole.ADMIN)


def require_permission(permission: str):
    """Admin gate scoped by the permissions of the admin's assigned role.

    Superusers and admins without a role_id are unrestricted. Admins bound to a
    role may only call routes whose permission string the role lists.
    """
    async def check_permission(
        user: User = Depends(current_admin),
        session: AsyncSession = Depends(get_async_session),
    ):
        if user.is_superuser or user.role_id is None:
            return user
        res = await session.execute(select(Role.permissions).where(Role.role_id == user.role_id))
        permissions = res.scalar_one_or_none() or []
        if permission not in permissions:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return user
    return check_permission


async def users_router_permission(request: Request, user: User = Depends(current_active_user)):
    # writes through /users are admin-only, reads are handled by fastapi-users itself
    method = request.method.upper()
    if method in ("POST", "PUT", "PATCH", "DELETE"):
        if user.role != UserRole.ADMIN:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")
    return True
