import uuid

from examhub.models.help_model import SupportTicket
from examhub.routers.student_routers import IDENTITY_CONFLICT


def student_payload(**overrides):
    body = {
        "student_id": "STU001",
        "username": "riya",
        "email": "riya@example.com",
        "password": "secret123",
        "full_name": "Riya Sharma",
        "state": "Kerala",
        "district": "Kochi",
        "college": "St. Teresa's",
    }
    body.update(overrides)
    return body


async def create_student(client, **overrides):
    resp = await client.post("/api/students", json=student_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_create_student(client):
    student = await create_student(client)
    assert student["username"] == "riya"
    assert student["status"] == "active"
    assert "password" not in student

    fetched = (await client.get(f"/api/students/{student['user_id']}")).json()
    assert fetched["email"] == "riya@example.com"


async def test_duplicate_identity_is_a_conflict(client):
    await create_student(client)
    for overrides in ({"student_id": "STU002", "email": "x@example.com"},
                      {"username": "other", "email": "x@example.com"},
                      {"username": "other", "student_id": "STU002", "email": "RIYA@example.com"}):
        resp = await client.post("/api/students", json=student_payload(**overrides))
        assert resp.status_code == 409
        assert resp.json()["message"] == IDENTITY_CONFLICT


async def test_create_validates_fields(client):
    resp = await client.post("/api/students", json=student_payload(password="123"))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["param"] == "password"

    resp = await client.post("/api/students", json=student_payload(email="not-an-email"))
    assert resp.status_code == 400


async def test_roster_aggregates(client, make_user, make_exam, make_attempt):
    riya = await make_user("riya@example.com", full_name="Riya", username="riya", student_id="S1")
    await make_user("idle@example.com", full_name="Idle", username="idle", student_id="S2")
    iit = await make_exam(title="JEE Mock", exam_type="IIT")
    neet = await make_exam(title="NEET Mock", exam_type="NEET")

    await make_attempt(riya, iit, score=240, percentage=80.0)
    # an unscored attempt counts as zero
    await make_attempt(riya, neet, status="registered")

    roster = {s["username"]: s for s in (await client.get("/api/students")).json()}
    # admins are not part of the roster
    assert set(roster) == {"riya", "idle"}

    assert roster["riya"]["exams_taken"] == 2
    assert roster["riya"]["average_percentage"] == 40.0
    assert roster["riya"]["preference"] == "IIT"
    assert roster["riya"]["last_active"].startswith("2025-01-10T12:00")

    assert roster["idle"]["exams_taken"] == 0
    assert roster["idle"]["average_percentage"] == 0.0
    assert roster["idle"]["preference"] == "N/A"
    assert roster["idle"]["last_active"] is not None


async def test_roster_filters_and_options(client, make_user):
    await make_user("a@example.com", username="a", state="Kerala", district="Kochi", college="MES")
    await make_user("b@example.com", username="b", state="Goa", district="Panaji", status="suspended")

    kerala = (await client.get("/api/students", params={"state": "Kerala"})).json()
    assert [s["username"] for s in kerala] == ["a"]

    suspended = (await client.get("/api/students", params={"status": "suspended"})).json()
    assert [s["username"] for s in suspended] == ["b"]

    options = (await client.get("/api/students/filters")).json()
    assert options["states"] == ["Goa", "Kerala"]
    assert options["colleges"] == ["MES"]
    assert options["statuses"] == ["active", "suspended"]


async def test_update_status(client):
    student = await create_student(client)

    resp = await client.put(f"/api/students/{student['user_id']}", json={"status": "suspended"})
    assert resp.status_code == 200
    assert (await client.get(f"/api/students/{student['user_id']}")).json()["status"] == "suspended"

    resp = await client.put(f"/api/students/{student['user_id']}", json={"status": "graduated"})
    assert resp.status_code == 400


async def test_edit_details(client):
    student = await create_student(client)
    other = await create_student(client, username="arun", student_id="STU002", email="arun@example.com")

    details = {
        "student_id": "STU001",
        "username": "riya.s",
        "email": "riya.s@example.com",
        "full_name": "Riya S",
        "status": "inactive",
        "state": "Goa",
    }
    resp = await client.put(f"/api/students/{student['user_id']}/details", json=details)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Student updated successfully"

    fetched = (await client.get(f"/api/students/{student['user_id']}")).json()
    assert fetched["username"] == "riya.s"
    assert fetched["status"] == "inactive"
    assert fetched["district"] is None

    # taking another student's username is refused
    resp = await client.put(f"/api/students/{other['user_id']}/details", json={**details, "student_id": "STU002"})
    assert resp.status_code == 400
    assert resp.json()["message"] == IDENTITY_CONFLICT


async def test_delete_student_removes_related_rows(client, session_maker, make_exam, make_attempt):
    student = await create_student(client)
    exam = await make_exam()

    student_uuid = uuid.UUID(student["user_id"])

    await make_attempt(student_uuid, exam, score=10, percentage=10.0)
    async with session_maker() as session:
        session.add(SupportTicket(user_id=student_uuid, issue_type="technical", description="Cannot log in"))
        await session.commit()

    resp = await client.delete(f"/api/students/{student['user_id']}")
    assert resp.status_code == 200
    assert (await client.get(f"/api/students/{student['user_id']}")).status_code == 404
    assert (await client.delete(f"/api/students/{student['user_id']}")).status_code == 404


async def test_unknown_student(client):
    missing = "00000000-0000-0000-0000-000000000001"
    assert (await client.get(f"/api/students/{missing}")).status_code == 404
    assert (await client.get(f"/api/students/{missing}/exams")).status_code == 404
    assert (await client.put(f"/api/students/{missing}", json={"status": "active"})).status_code == 404


async def test_admin_is_not_a_student(client, admin):
    assert (await client.get(f"/api/students/{admin.id}")).status_code == 404
