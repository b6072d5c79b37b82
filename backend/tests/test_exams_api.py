import pytest

from examhub.services.exam_service import DUPLICATE_SET_MESSAGE


def exam_payload(**overrides):
    payload = {
        "title": "JEE Realtime Mock",
        "exam_type": "IIT",
        "exam_format": "comprehensive",
        "total_marks": 300,
        "duration": 180,
        "start_date": "2025-02-01",
        "start_time": "09:30:00",
        "category": "realtime",
        "set_type": "A",
        "subjects": [{"subject": "Physics", "marks": 100}, {"subject": "Chemistry", "marks": 100}],
    }
    payload.update(overrides)
    return payload


async def create_exam(client, **overrides):
    resp = await client.post("/api/exams", json=exam_payload(**overrides))
    assert resp.status_code == 200, resp.text
    return resp.json()["exam_id"]


async def test_create_and_fetch_exam(client):
    resp = await client.post("/api/exams", json=exam_payload())
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Exam created"

    detail = (await client.get(f"/api/exams/{body['exam_id']}")).json()
    assert detail["title"] == "JEE Realtime Mock"
    assert detail["venue"] == "Online Platform"
    assert detail["status"] == "scheduled"
    assert sorted(s["subject"] for s in detail["subjects"]) == ["Chemistry", "Physics"]


async def test_missing_fields_are_a_400(client):
    resp = await client.post("/api/exams", json=exam_payload(title="   "))
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Missing required fields"
    assert body["errors"][0]["param"] == "title"
    assert body["errors"][0]["location"] == "body"


async def test_realtime_exam_requires_set_type(client):
    resp = await client.post("/api/exams", json=exam_payload(set_type="  "))
    assert resp.status_code == 400
    assert resp.json()["message"] == "set_type is required for Realtime exams"


async def test_non_realtime_exam_drops_set_type(client):
    exam_id = await create_exam(client, category="practice", set_type="B")
    detail = (await client.get(f"/api/exams/{exam_id}")).json()
    assert detail["set_type"] is None


async def test_duplicate_set_is_a_conflict(client):
    await create_exam(client)
    resp = await client.post("/api/exams", json=exam_payload())
    assert resp.status_code == 409
    assert resp.json()["message"] == DUPLICATE_SET_MESSAGE
    assert len((await client.get("/api/exams")).json()) == 1

    # a different set label in the same group is fine
    await create_exam(client, set_type="B")
    assert len((await client.get("/api/exams")).json()) == 2


async def test_update_reconciles_subjects_and_keeps_ids(client):
    exam_id = await create_exam(client)
    before = {s["subject"]: s for s in (await client.get(f"/api/exams/{exam_id}")).json()["subjects"]}

    resp = await client.put(
        f"/api/exams/{exam_id}",
        json=exam_payload(
            title="JEE Realtime Mock 2",
            status="active",
            subjects=[{"subject": "physics", "marks": 120}, {"subject": "Mathematics", "marks": 180}],
        ),
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Exam updated successfully"

    detail = (await client.get(f"/api/exams/{exam_id}")).json()
    assert detail["title"] == "JEE Realtime Mock 2"
    assert detail["status"] == "active"
    after = {s["subject"]: s for s in detail["subjects"]}
    assert set(after) == {"physics", "Mathematics"}
    assert after["physics"]["exam_subject_id"] == before["Physics"]["exam_subject_id"]
    assert after["physics"]["marks"] == 120


async def test_update_into_existing_set_conflicts(client):
    await create_exam(client, set_type="A")
    other = await create_exam(client, set_type="B")

    resp = await client.put(f"/api/exams/{other}", json=exam_payload(set_type="A"))
    assert resp.status_code == 409

    # saving a set onto itself is not a clash
    resp = await client.put(f"/api/exams/{other}", json=exam_payload(set_type="B"))
    assert resp.status_code == 200


async def test_update_and_delete_unknown_exam(client):
    assert (await client.put("/api/exams/999", json=exam_payload())).status_code == 404
    assert (await client.delete("/api/exams/999")).status_code == 404
    assert (await client.get("/api/exams/999")).json()["message"] == "Exam not found"


async def test_delete_removes_exam_and_questions(client):
    exam_id = await create_exam(client)
    await client.post(
        f"/api/exams/{exam_id}/questions",
        json={"question_text": "Define work.", "question_type": "descriptive", "difficulty": "easy", "marks": 2},
    )

    resp = await client.delete(f"/api/exams/{exam_id}")
    assert resp.status_code == 200
    assert (await client.get(f"/api/exams/{exam_id}")).status_code == 404
    assert (await client.get(f"/api/exams/{exam_id}/questions")).status_code == 404


async def test_create_set_clones_exam_and_subjects(client):
    exam_id = await create_exam(client)

    resp = await client.post(f"/api/exams/{exam_id}/create-set", json={"set_type": "B"})
    assert resp.status_code == 200
    clone_id = resp.json()["exam_id"]
    assert clone_id != exam_id

    clone = (await client.get(f"/api/exams/{clone_id}")).json()
    assert clone["set_type"] == "B"
    assert sorted(s["subject"] for s in clone["subjects"]) == ["Chemistry", "Physics"]

    sets = (await client.get(f"/api/exams/{exam_id}/sets")).json()
    assert sets["sets"] == ["A", "B"]
    assert sets["count"] == 2
    assert sets["group"]["title"] == "JEE Realtime Mock"


@pytest.mark.parametrize(
    "body, expected",
    [({"set_type": ""}, 400), ({}, 400), ({"set_type": "A"}, 409)],
)
async def test_create_set_rejections(client, body, expected):
    exam_id = await create_exam(client)
    resp = await client.post(f"/api/exams/{exam_id}/create-set", json=body)
    assert resp.status_code == expected
    assert [e["exam_id"] for e in (await client.get("/api/exams")).json()] == [exam_id]


async def test_create_set_needs_realtime_source(client):
    exam_id = await create_exam(client, category="practice")
    resp = await client.post(f"/api/exams/{exam_id}/create-set", json={"set_type": "B"})
    assert resp.status_code == 400
    assert (await client.post("/api/exams/999/create-set", json={"set_type": "B"})).status_code == 404


async def test_list_exams_with_counts_and_filters(client, make_user, make_attempt):
    exam_id = await create_exam(client)
    await create_exam(client, title="NEET Practice", exam_type="NEET", category="practice", start_date="2025-03-01")

    student = await make_user("s1@example.com", full_name="S One")

    await make_attempt(student, exam_id, status="registered")

    exams = (await client.get("/api/exams")).json()
    assert [e["title"] for e in exams][-1] == "JEE Realtime Mock"
    realtime = next(e for e in exams if e["exam_id"] == exam_id)
    assert realtime["subjects"] == ["Chemistry", "Physics"]
    assert realtime["subject_count"] == 2
    assert realtime["participants_count"] == 1
    assert realtime["questions_count"] == 0

    only_practice = (await client.get("/api/exams", params={"category": "practice"})).json()
    assert [e["title"] for e in only_practice] == ["NEET Practice"]

    assert len((await client.get("/api/exams", params={"category": "all"})).json()) == 2
    in_feb = (await client.get("/api/exams", params={"startDate": "2025-02-01", "endDate": "2025-02-28"})).json()
    assert [e["exam_id"] for e in in_feb] == [exam_id]


async def test_meta_lists(client):
    await create_exam(client)
    await create_exam(client, title="NEET Practice", exam_type="NEET", category="practice")

    assert (await client.get("/api/exams/meta/exam-types")).json() == ["IIT", "NEET"]
    assert (await client.get("/api/exams/meta/exam-categories")).json() == ["practice", "realtime"]
    assert (await client.get("/api/exams/meta/question-types")).json() == []


async def test_register_students_upserts(client, make_user):
    exam_id = await create_exam(client)
    student = await make_user("s1@example.com", full_name="S One", username="s1", student_id="STU1")

    for _ in range(2):
        resp = await client.post(f"/api/exams/{exam_id}/register", json={"user_ids": [str(student.id)]})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Students registered"

    rows = (await client.get(f"/api/students/{student.id}/exams")).json()
    assert len(rows) == 1
    assert rows[0]["status"] == "registered"


async def test_register_rejects_unknown_users(client):
    exam_id = await create_exam(client)
    resp = await client.post(
        f"/api/exams/{exam_id}/register", json={"user_ids": ["00000000-0000-0000-0000-000000000001"]}
    )
    assert resp.status_code == 400
