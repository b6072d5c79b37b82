from fastapi import APIRouter, Depends
from typing import List
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import require_permission
from ..models.role_model import Role
from ..models.setting_model import Setting
from ..models.user_model import User, UserRole, UserStatus
from ..schemas.setting_schema import SettingValue, SettingRead, UserMetrics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])

can_read = require_permission("settings.read")
can_update = require_permission("settings.update")

DEFAULT_ROLES_KEY = "default_roles"


def default_roles_for(role_names) -> dict:
    names = {n.lower() for n in role_names if n}
    if "instructor" in names:
        teachers = "instructor"
    elif "teacher" in names:
        teachers = "teacher"
    else:
        teachers = "instructor"
    return {"new_students": "student", "teachers": teachers, "administrators": "admin"}


@router.get("", response_model=List[SettingRead], dependencies=[Depends(can_read)])
async def get_settings(session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(select(Setting).order_by(Setting.setting_key))
    return res.scalars().all()


@router.get("/metrics", response_model=UserMetrics, dependencies=[Depends(can_read)])
async def get_user_metrics(session: AsyncSession = Depends(get_async_session)):
    total_users = (await session.execute(select(func.count(User.id)))).scalar_one()
    active_students = (
        await session.execute(
            select(func.count(User.id)).where(User.role == UserRole.STUDENT, User.status == UserStatus.ACTIVE.value)
        )
    ).scalar_one()
    administrators = (
        await session.execute(select(func.count(User.id)).where(User.role == UserRole.ADMIN))
    ).scalar_one()

    res = await session.execute(select(User.role, func.count(User.id)).group_by(User.role))
    by_role = sorted(
        ({"role": getattr(role, "value", role), "count": count} for role, count in res.all() if role is not None),
        key=lambda r: r["role"],
    )
    return {
        "total_users": total_users or 0,
        "active_students": active_students or 0,
        "administrators": administrators or 0,
        "by_role": by_role,
    }


@router.get("/default-roles", dependencies=[Depends(can_read)])
async def get_default_roles(session: AsyncSession = Depends(get_async_session)):
    stored = await session.get(Setting, DEFAULT_ROLES_KEY)
    if stored is not None and stored.setting_value is not None:
        return stored.setting_value

    res = await session.execute(select(Role.name))
    return default_roles_for(res.scalars().all())


@router.put("/{key}")
async def update_setting(
    key: str,
    payload: SettingValue,
    user: User = Depends(can_update),
    session: AsyncSession = Depends(get_async_session),
):
    setting = await session.get(Setting, key)
    if setting is None:
        setting = Setting(setting_key=key)
        session.add(setting)
    setting.setting_value = payload.setting_value
    setting.updated_by = user.id
    await session.commit()
    logger.info("Setting %s updated by %s", key, user.id)
    return {"message": "Setting updated"}
