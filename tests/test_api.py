import uuid
from datetime import datetime, timedelta

from deps.services import get_exam_service
from errors import TransientStorageError
from main import app

ADMIN = {"x-subject-id": "admin-1", "x-role": "Admin"}
ALICE = {"x-subject-id": "alice", "x-role": "Student"}
BOB = {"x-subject-id": "bob", "x-role": "Student"}

EXAM = {"title": "Algebra Midterm", "max_attempts": 2, "cooldown_minutes": 0}


def _create(client, **overrides):
    r = client.post("/exams", json={**EXAM, **overrides}, headers=ADMIN)
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json().get("ok") is True


def test_create_exam_admin_only(client):
    body = _create(client)
    assert body["title"] == "Algebra Midterm"
    assert body["max_attempts"] == 2
    assert body["remaining_attempts"] == 0
    uuid.UUID(body["id"])

    assert client.post("/exams", json=EXAM, headers=ALICE).status_code == 403
    assert client.post("/exams", json=EXAM).status_code == 401


def test_create_exam_validation(client):
    r = client.post("/exams", json={**EXAM, "title": "Quiz"}, headers=ADMIN)
    assert r.status_code == 422
    r = client.post(
        "/exams", json={**EXAM, "max_attempts": 1, "cooldown_minutes": 30}, headers=ADMIN
    )
    assert r.status_code == 422


def test_start_submit_and_history(client, clock):
    exam = _create(client)
    r = client.post(f"/attempts/start/{exam['id']}", headers=ALICE)
    assert r.status_code == 200
    attempt = r.json()
    assert attempt["sequence_number"] == 1
    assert attempt["status"] == "InProgress"
    assert attempt["end_time"] is None

    again = client.post(f"/attempts/start/{exam['id']}", headers=ALICE)
    assert again.json()["id"] == attempt["id"]

    clock.advance(minutes=20)
    done = client.post(f"/attempts/{attempt['id']}/submit", headers=ALICE)
    assert done.status_code == 200
    assert done.json()["status"] == "Completed"
    assert done.json()["end_time"] is not None

    history = client.get("/attempts/student", headers=ALICE).json()
    assert len(history) == 1
    assert history[0]["exam_title"] == "Algebra Midterm"
    assert client.get("/attempts/student", headers=BOB).json() == []


def test_start_routes_require_student(client):
    exam = _create(client)
    assert client.post(f"/attempts/start/{exam['id']}", headers=ADMIN).status_code == 403
    assert client.post(f"/attempts/start/{exam['id']}").status_code == 401


def test_start_latest_exam(client):
    r = client.post("/attempts/start", headers=ALICE)
    assert r.status_code == 404
    assert r.json()["detail"]["kind"] == "NoExamAvailable"

    exam = _create(client)
    r = client.post("/attempts/start", headers=ALICE)
    assert r.status_code == 200
    assert r.json()["exam_id"] == exam["id"]


def test_start_unknown_exam(client):
    r = client.post(f"/attempts/start/{uuid.uuid4()}", headers=ALICE)
    assert r.status_code == 404
    assert r.json()["detail"]["kind"] == "ExamNotFound"


def test_cooldown_conflict_carries_timestamp(client, clock):
    exam = _create(client, max_attempts=3, cooldown_minutes=60)
    anchor = clock.now
    a = client.post(f"/attempts/start/{exam['id']}", headers=ALICE).json()
    client.post(f"/attempts/{a['id']}/submit", headers=ALICE)

    clock.advance(minutes=30)
    r = client.post(f"/attempts/start/{exam['id']}", headers=ALICE)
    assert r.status_code == 409
    detail = r.json()["detail"]
    assert detail["kind"] == "CooldownActive"
    assert datetime.fromisoformat(detail["next_eligible_at"]) == anchor + timedelta(minutes=60)

    exams = client.get("/attempts/exams", headers=ALICE).json()
    assert exams[0]["remaining_attempts"] == 2
    assert datetime.fromisoformat(exams[0]["next_attempt_available_at"]) == anchor + timedelta(
        minutes=60
    )


def test_max_attempts_conflict(client):
    exam = _create(client, max_attempts=1)
    a = client.post(f"/attempts/start/{exam['id']}", headers=ALICE).json()
    client.post(f"/attempts/{a['id']}/submit", headers=ALICE)
    r = client.post(f"/attempts/start/{exam['id']}", headers=ALICE)
    assert r.status_code == 409
    assert r.json()["detail"]["kind"] == "MaxAttemptsExceeded"


def test_submit_foreign_attempt_is_not_found(client):
    exam = _create(client)
    a = client.post(f"/attempts/start/{exam['id']}", headers=ALICE).json()
    foreign = client.post(f"/attempts/{a['id']}/submit", headers=BOB)
    missing = client.post(f"/attempts/{uuid.uuid4()}/submit", headers=BOB)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


def test_update_exam_purges_attempts(client):
    exam = _create(client)
    client.post(f"/attempts/start/{exam['id']}", headers=ALICE)
    assert len(client.get("/attempts/all", headers=ADMIN).json()) == 1

    r = client.put(
        f"/exams/{exam['id']}",
        json={"title": "Algebra Midterm v2", "max_attempts": 4, "cooldown_minutes": 10},
        headers=ADMIN,
    )
    assert r.status_code == 200
    assert r.json()["title"] == "Algebra Midterm v2"
    assert client.get("/attempts/all", headers=ADMIN).json() == []


def test_update_unknown_exam(client):
    r = client.put(f"/exams/{uuid.uuid4()}", json=EXAM, headers=ADMIN)
    assert r.status_code == 404
    assert r.json()["detail"]["kind"] == "ExamNotFound"


def test_admin_views(client):
    exam = _create(client)
    client.post(f"/attempts/start/{exam['id']}", headers=ALICE)

    exams = client.get("/attempts/admin/exams", headers=ADMIN).json()
    assert exams[0]["remaining_attempts"] == 0
    assert exams[0]["next_attempt_available_at"] is None
    assert client.get("/attempts/all", headers=ALICE).status_code == 403


def test_current_exam_for_student(client):
    assert client.get("/exams/student", headers=ALICE).status_code == 404
    exam = _create(client)
    client.post(f"/attempts/start/{exam['id']}", headers=ALICE)
    body = client.get("/exams/student", headers=ALICE).json()
    assert body["id"] == exam["id"]
    assert body["remaining_attempts"] == 1


class _BrokenStorage:
    def start_attempt(self, student_id, exam_id=None):
        raise TransientStorageError("OperationalError: database is locked")


def test_storage_fault_is_try_again(client):
    app.dependency_overrides[get_exam_service] = lambda: _BrokenStorage()
    r = client.post("/attempts/start", headers=ALICE)
    assert r.status_code == 503
    assert "try again" in r.json()["detail"]
