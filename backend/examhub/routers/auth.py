#  custom login route for the app
from fastapi import APIRouter
from ..security import get_jwt_strategy
from fastapi import Depends, HTTPException, status
from ..db import get_user_db
from ..models.user_model import UserStatus
from ..schemas.user_schema import LoginRequest, UserRead
from fastapi_users.password import PasswordHelper

import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/auth', tags=['auth'])


@router.post("/login")
async def login(payload: LoginRequest, user_db = Depends(get_user_db)):

    user = await user_db.get_by_email(payload.email)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    pwd_helper = PasswordHelper()
    valid, new_hash = pwd_helper.verify_and_update(payload.password, user.hashed_password)

    if not valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    # suspended or deactivated accounts cannot sign in
    if not user.is_active or user.status != UserStatus.ACTIVE.value:
        logger.warning("Login refused for %s (status=%s)", user.email, user.status)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")

    if new_hash:
        await user_db.update(user, {"hashed_password": new_hash})

    #  JWT token
    strategy = get_jwt_strategy()
    access_token = await strategy.write_token(user)

    # ORM user to schema for JSON
    user_out = UserRead.model_validate(user)

    # user and token
    return {"user": user_out, "token": access_token}
