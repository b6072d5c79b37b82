from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi import Depends
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .routers import (
    auth, exam_routers, question_routers, student_routers, result_routers, announcement_routers,
    previous_question_routers, settings_routers, role_routers, subject_routers, help_routers, dashboard_routers,
)
from contextlib import asynccontextmanager
from .config import CORS_ORIGINS, LOG_LEVEL, MEDIA_DIR, MEDIA_BASE_URL
from .db import create_db_and_tables
from .security import auth_backend, app_users
from .dependencies import users_router_permission
from .schemas.user_schema import UserCreate, UserRead, UserUpdate


from fastapi.staticfiles import StaticFiles
import logging
import os

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # run once when app starts. Make DB and media folder.
    await create_db_and_tables()
    os.makedirs(MEDIA_DIR, exist_ok=True)
    logger.info("ExamHub API started, media stored in %s", MEDIA_DIR)
    yield

app = FastAPI(title="ExamHub Admin API", lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,  # which sites can call this API
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _strip_value_error(msg: str) -> str:
    return msg[len("Value error, "):] if msg.startswith("Value error, ") else msg


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # 400 with an express-validator style error list, the client shows `message`
    errors = []
    for err in exc.errors():
        loc = list(err.get("loc") or [])
        location = str(loc[0]) if loc else "body"
        param = ".".join(str(p) for p in loc[1:]) or location
        errors.append({"param": param, "msg": _strip_value_error(str(err.get("msg", ""))), "location": location})
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message, "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# mount media static files at /media (frontend may request /media/...)
os.makedirs(MEDIA_DIR, exist_ok=True)
app.mount(MEDIA_BASE_URL if MEDIA_BASE_URL.startswith("/") else "/media", StaticFiles(directory=MEDIA_DIR), name="media")

# Attach users router with small permission check. This router provides /users and /users/me
app.include_router(
    app_users.get_users_router(UserRead, UserUpdate),
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(users_router_permission)],
)


for module in (
    exam_routers,
    question_routers,
    student_routers,
    result_routers,
    announcement_routers,
    previous_question_routers,
    settings_routers,
    role_routers,
    subject_routers,
    help_routers,
    dashboard_routers,
):
    app.include_router(module.router, prefix="/api")

# Auth routers
app.include_router(app_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"])
app.include_router(auth.router)
app.include_router(app_users.get_register_router(UserRead, UserCreate), prefix="/auth", tags=["auth"])
app.include_router(app_users.get_verify_router(UserRead), prefix="/auth", tags=["auth"])
