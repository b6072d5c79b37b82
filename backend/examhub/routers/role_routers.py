from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import logging

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import require_permission
from ..models.role_model import Role
from ..models.user_model import User
from ..schemas.role_schema import RoleData, RoleRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roles", tags=["Roles"])

ROLE_EXISTS = "A role with this name already exists"
ROLE_IN_USE = "Role is still assigned to users"


async def _role_or_404(session: AsyncSession, role_id: int) -> Role:
    role = await session.get(Role, role_id)
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return role


@router.get("", response_model=List[RoleRead], dependencies=[Depends(require_permission("roles.read"))])
async def list_roles(session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(select(Role).order_by(Role.name))
    return res.scalars().all()


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_permission("roles.write"))])
async def create_role(payload: RoleData, session: AsyncSession = Depends(get_async_session)):
    role = Role(name=payload.name, description=payload.description or None, permissions=payload.permissions)
    try:
        session.add(role)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ROLE_EXISTS)
    return {"message": "Role created", "role_id": role.role_id}


@router.put("/{role_id}", dependencies=[Depends(require_permission("roles.write"))])
async def update_role(role_id: int, payload: RoleData, session: AsyncSession = Depends(get_async_session)):
    role = await _role_or_404(session, role_id)
    if role.is_system:
        logger.warning("Ignoring update of system role %s (%s)", role_id, role.name)
        return {"message": "Role updated"}

    role.name = payload.name
    role.description = payload.description or None
    role.permissions = payload.permissions
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ROLE_EXISTS)
    return {"message": "Role updated"}


@router.delete("/{role_id}", dependencies=[Depends(require_permission("roles.delete"))])
async def delete_role(role_id: int, session: AsyncSession = Depends(get_async_session)):
    role = await _role_or_404(session, role_id)
    if role.is_system:
        logger.warning("Ignoring delete of system role %s (%s)", role_id, role.name)
        return {"message": "Role deleted"}

    assigned = await session.scalar(select(func.count()).select_from(User).where(User.role_id == role_id))
    if assigned:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ROLE_IN_USE)

    await session.delete(role)
    await session.commit()
    logger.info("Deleted role %s (%s)", role_id, role.name)
    return {"message": "Role deleted"}
