from datetime import date

import pytest
from sqlalchemy import select

from examhub.models.help_model import Faq
from examhub.models.role_model import Role
from examhub.models.user_model import User, UserRole
from examhub.routers.role_routers import ROLE_EXISTS, ROLE_IN_USE


@pytest.fixture
def make_role(session_maker):
    async def _make_role(name, permissions=(), is_system=False):
        async with session_maker() as session:
            role = Role(name=name, permissions=list(permissions), is_system=is_system)
            session.add(role)
            await session.commit()
            return role
    return _make_role


# roles

async def test_create_and_list_roles(client):
    resp = await client.post(
        "/api/roles", json={"name": "Instructor", "permissions": ["exams.read", "exams.read", " exams.write "]}
    )
    assert resp.status_code == 201
    assert resp.json()["message"] == "Role created"

    roles = (await client.get("/api/roles")).json()
    assert roles[0]["name"] == "Instructor"
    assert roles[0]["permissions"] == ["exams.read", "exams.write"]
    assert roles[0]["is_system"] is False


async def test_duplicate_role_name(client):
    await client.post("/api/roles", json={"name": "Instructor", "permissions": []})
    resp = await client.post("/api/roles", json={"name": "Instructor", "permissions": []})
    assert resp.status_code == 409
    assert resp.json()["message"] == ROLE_EXISTS


async def test_system_roles_are_left_alone(client, make_role):
    role = await make_role("admin", ["exams.read"], is_system=True)

    resp = await client.put(f"/api/roles/{role.role_id}", json={"name": "root", "permissions": []})
    assert resp.status_code == 200
    resp = await client.delete(f"/api/roles/{role.role_id}")
    assert resp.status_code == 200

    roles = (await client.get("/api/roles")).json()
    assert [(r["name"], r["permissions"]) for r in roles] == [("admin", ["exams.read"])]


async def test_update_and_delete_role(client, make_role):
    role = await make_role("Teacher", ["exams.read"])

    resp = await client.put(
        f"/api/roles/{role.role_id}", json={"name": "Instructor", "description": "Runs exams", "permissions": ["exams.write"]}
    )
    assert resp.status_code == 200
    updated = (await client.get("/api/roles")).json()[0]
    assert updated["name"] == "Instructor"
    assert updated["permissions"] == ["exams.write"]

    assert (await client.delete(f"/api/roles/{role.role_id}")).status_code == 200
    assert (await client.get("/api/roles")).json() == []
    assert (await client.delete(f"/api/roles/{role.role_id}")).status_code == 404


async def test_assigned_role_cannot_be_deleted(client, make_role, make_user):
    role = await make_role("Exam editor", ["exams.read"])
    await make_user("editor@example.com", role=UserRole.ADMIN, role_id=role.role_id)

    resp = await client.delete(f"/api/roles/{role.role_id}")
    assert resp.status_code == 409
    assert resp.json()["message"] == ROLE_IN_USE
    assert [r["name"] for r in (await client.get("/api/roles")).json()] == ["Exam editor"]


async def test_unknown_permissions_are_rejected(client, make_role):
    resp = await client.post("/api/roles", json={"name": "Root", "permissions": ["exams.read", "everything"]})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Unknown permission: everything"

    role = await make_role("Teacher", ["exams.read"])
    resp = await client.put(f"/api/roles/{role.role_id}", json={"name": "Teacher", "permissions": ["roles.*"]})
    assert resp.status_code == 400
    assert (await client.get("/api/roles")).json()[0]["permissions"] == ["exams.read"]


# permissions

async def test_admin_role_permissions_are_enforced(client, auth_state, make_role, make_user):
    role = await make_role("Results viewer", ["results.read"])
    auth_state["user"] = await make_user("viewer@example.com", role=UserRole.ADMIN, role_id=role.role_id)

    assert (await client.get("/api/results")).status_code == 200
    resp = await client.get("/api/exams")
    assert resp.status_code == 403
    assert resp.json()["message"] == "Missing permission: exams.read"


async def test_self_update_keeps_role_limits(client, auth_state, make_role, make_user, session_maker):
    role = await make_role("Exam editor", ["exams.read"])
    editor = await make_user("editor@example.com", role=UserRole.ADMIN, role_id=role.role_id)
    auth_state["user"] = editor
    assert (await client.get("/api/roles")).status_code == 403

    token = (await client.post("/auth/login", json={"email": "editor@example.com", "password": "secret123"})).json()["token"]
    resp = await client.patch(
        "/users/me",
        json={"role_id": None, "is_superuser": True, "full_name": "Editor"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Editor"
    assert resp.json()["role_id"] == role.role_id
    assert resp.json()["is_superuser"] is False

    async with session_maker() as session:
        auth_state["user"] = await session.get(User, editor.id)
    assert auth_state["user"].role_id == role.role_id
    assert (await client.get("/api/roles")).status_code == 403


async def test_students_cannot_promote_themselves(client, auth_state, make_user):
    student = await make_user("student@example.com")
    auth_state["user"] = student
    token = (await client.post("/auth/login", json={"email": "student@example.com", "password": "secret123"})).json()["token"]

    resp = await client.patch("/users/me", json={"role": "admin"}, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


async def test_students_are_not_admins(client, auth_state, make_user):
    auth_state["user"] = await make_user("student@example.com")
    assert (await client.get("/api/exams")).status_code == 403
    assert (await client.get("/api/dashboard/stats")).status_code == 403
    assert (await client.get("/api/settings")).status_code == 403


# settings

async def test_setting_upsert(client, admin):
    resp = await client.put("/api/settings/site_name", json={"setting_value": "ExamHub"})
    assert resp.status_code == 200
    await client.put("/api/settings/site_name", json={"setting_value": "ExamHub Pro"})
    await client.put("/api/settings/grading", json={"setting_value": {"pass_mark": 40}})

    settings = (await client.get("/api/settings")).json()
    assert settings == [
        {"setting_key": "grading", "setting_value": {"pass_mark": 40}},
        {"setting_key": "site_name", "setting_value": "ExamHub Pro"},
    ]


async def test_setting_value_required(client):
    resp = await client.put("/api/settings/site_name", json={"setting_value": ""})
    assert resp.status_code == 400
    assert resp.json()["message"] == "setting_value must not be empty"


async def test_default_roles(client, make_role):
    assert (await client.get("/api/settings/default-roles")).json() == {
        "new_students": "student",
        "teachers": "instructor",
        "administrators": "admin",
    }

    await make_role("Teacher")
    assert (await client.get("/api/settings/default-roles")).json()["teachers"] == "teacher"

    stored = {"new_students": "learner", "teachers": "tutor", "administrators": "owner"}
    await client.put("/api/settings/default_roles", json={"setting_value": stored})
    assert (await client.get("/api/settings/default-roles")).json() == stored


async def test_user_metrics(client, make_user):
    await make_user("a@example.com")
    await make_user("b@example.com", status="suspended")

    metrics = (await client.get("/api/settings/metrics")).json()
    assert metrics["total_users"] == 3
    assert metrics["active_students"] == 1
    assert metrics["administrators"] == 1
    assert metrics["by_role"] == [{"role": "admin", "count": 1}, {"role": "student", "count": 2}]


# subjects

async def test_subject_crud(client):
    resp = await client.post(
        "/api/subjects", json={"name": "Physics", "code": "PHY", "exam_type": "IIT", "is_active": True}
    )
    assert resp.status_code == 200
    subject_id = resp.json()["subject_id"]

    resp = await client.put(f"/api/subjects/{subject_id}", json={"description": "Mechanics and optics"})
    assert resp.status_code == 200

    subjects = (await client.get("/api/subjects")).json()
    assert subjects[0]["description"] == "Mechanics and optics"
    assert subjects[0]["code"] == "PHY"

    assert (await client.delete(f"/api/subjects/{subject_id}")).status_code == 200
    assert (await client.get("/api/subjects")).json() == []


async def test_subject_update_rules(client):
    subject_id = (
        await client.post("/api/subjects", json={"name": "Botany", "code": "BOT", "exam_type": "NEET", "is_active": True})
    ).json()["subject_id"]

    resp = await client.put(f"/api/subjects/{subject_id}", json={})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No fields to update"

    resp = await client.put(f"/api/subjects/{subject_id}", json={"name": None})
    assert resp.status_code == 400

    assert (await client.put("/api/subjects/999", json={"name": "Zoology"})).status_code == 404

    resp = await client.post("/api/subjects", json={"name": "Algebra", "code": "ALG", "exam_type": "SAT", "is_active": True})
    assert resp.status_code == 400


# help

async def test_help_content_and_tickets(client, auth_state, make_user, session_maker):
    async with session_maker() as session:
        session.add(Faq(question="How do I reset my password?", answer="Use the login page link.", category="Account"))
        await session.commit()

    auth_state["user"] = await make_user("student@example.com")
    faqs = (await client.get("/api/help/faqs")).json()
    assert faqs[0]["category"] == "Account"
    assert (await client.get("/api/help/guides")).json() == []
    assert (await client.get("/api/help/videos")).json() == []

    resp = await client.post("/api/help/tickets", json={"issue_type": "Technical Issue", "description": "Timer froze"})
    assert resp.status_code == 201
    assert resp.json()["status"] == "open"

    resp = await client.post("/api/help/tickets", json={"issue_type": "Billing", "description": "Refund"})
    assert resp.status_code == 400


# dashboard

async def test_dashboard_stats(client, make_user, make_exam, make_attempt):
    a = await make_user("a@example.com")
    b = await make_user("b@example.com")
    january = await make_exam(title="January Mock", start_date=date(2025, 1, 10))
    march = await make_exam(title="March Mock", start_date=date(2025, 3, 1))

    await make_attempt(a, january, score=80, percentage=80.0)
    await make_attempt(b, january, status="registered")
    await make_attempt(a, march, score=60, percentage=60.0)

    stats = (await client.get("/api/dashboard/stats")).json()
    assert stats == {"total_students": 2, "total_exams": 2, "avg_score": 70.0, "completion_rate": 66.7}

    march_only = (await client.get("/api/dashboard/stats", params={"startDate": "2025-02-01"})).json()
    assert march_only == {"total_students": 2, "total_exams": 1, "avg_score": 60.0, "completion_rate": 100.0}

    recent = (await client.get("/api/dashboard/recent-exams")).json()
    assert [(e["title"], e["participants"]) for e in recent] == [("March Mock", 1), ("January Mock", 2)]


async def test_recent_exams_limit(client, make_exam):
    for day in range(1, 7):
        await make_exam(title=f"Mock {day}", start_date=date(2025, 1, day))
    recent = (await client.get("/api/dashboard/recent-exams")).json()
    assert [e["title"] for e in recent] == ["Mock 6", "Mock 5", "Mock 4", "Mock 3"]


async def test_empty_dashboard(client):
    stats = (await client.get("/api/dashboard/stats")).json()
    assert stats == {"total_students": 0, "total_exams": 0, "avg_score": 0.0, "completion_rate": 0.0}


# login

async def test_login_returns_token(client, admin):
    resp = await client.post("/auth/login", json={"email": "admin@example.com", "password": "secret123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token"]
    assert body["user"]["role"] == "admin"
    assert body["user"]["username"] == "admin"


async def test_login_rejects_bad_password_and_inactive_accounts(client, make_user):
    resp = await client.post("/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    assert resp.status_code == 400

    await make_user("gone@example.com", status="suspended")
    resp = await client.post("/auth/login", json={"email": "gone@example.com", "password": "secret123"})
    assert resp.status_code == 403
    assert resp.json()["message"] == "Account is not active"


async def test_registration_creates_students_only(client, session_maker):
    resp = await client.post(
        "/auth/register",
        json={"email": "new@example.com", "password": "secret123", "full_name": "New Student", "role": "admin"},
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "student"

    async with session_maker() as session:
        stored = (await session.execute(select(User).where(User.email == "new@example.com"))).scalar_one()
    assert stored.role == UserRole.STUDENT
    assert stored.role_id is None
