import os
import tempfile
from datetime import date, time, datetime

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="examhub-media-"))

from fastapi_users.password import PasswordHelper
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from examhub.app import app
from examhub.db import Base, get_async_session
from examhub.models.exam_model import Exam, ExamSubject
from examhub.models.student_exam_model import StudentExam
from examhub.models.user_model import User, UserRole
from examhub.security import current_active_user
from examhub.services.storage_service import MediaStorage, get_storage


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def make_user(session_maker):
    async def _make_user(email, role=UserRole.STUDENT, password="secret123", **fields):
        async with session_maker() as session:
            user = User(
                email=email,
                hashed_password=PasswordHelper().hash(password),
                is_active=True,
                is_superuser=False,
                is_verified=True,
                role=role,
                **fields,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user
    return _make_user


@pytest.fixture
async def admin(make_user):
    return await make_user("admin@example.com", role=UserRole.ADMIN, full_name="Admin", username="admin")


@pytest.fixture
def make_exam(session_maker):
    async def _make_exam(title="Mock Test", exam_type="IIT", exam_format="comprehensive", subjects=(), **fields):
        async with session_maker() as session:
            exam = Exam(
                title=title,
                exam_type=exam_type,
                exam_format=exam_format,
                total_marks=fields.pop("total_marks", 100),
                duration=fields.pop("duration", 180),
                start_date=fields.pop("start_date", date(2025, 1, 10)),
                start_time=fields.pop("start_time", time(10, 0)),
                **fields,
            )
            session.add(exam)
            await session.flush()
            for name in subjects:
                session.add(ExamSubject(exam_id=exam.exam_id, subject=name, marks=0))
            await session.commit()
            return exam
    return _make_exam


@pytest.fixture
def make_attempt(session_maker):
    async def _make_attempt(user, exam, status="completed", score=None, percentage=None, completed_at=None):
        async with session_maker() as session:
            attempt = StudentExam(
                user_id=getattr(user, "id", user),
                exam_id=getattr(exam, "exam_id", exam),
                status=status,
                score=score,
                percentage=percentage,
                completed_at=completed_at or (datetime(2025, 1, 10, 12, 0) if status == "completed" else None),
            )
            session.add(attempt)
            await session.commit()
            return attempt
    return _make_attempt


@pytest.fixture
def auth_state(admin):
    # tests swap the signed-in user by assigning auth_state["user"]
    return {"user": admin}


@pytest.fixture
def media_root(tmp_path):
    return tmp_path / "media"


@pytest.fixture
async def client(session_maker, auth_state, media_root):
    async def override_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[current_active_user] = lambda: auth_state["user"]
    app.dependency_overrides[get_storage] = lambda: MediaStorage(base_url="http://test/media", root=str(media_root))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
