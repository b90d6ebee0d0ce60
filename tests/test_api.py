import pytest
from fastapi.testclient import TestClient

from app.common.deps import CurrentUser, get_current_user
from app.main import app

ALICE = CurrentUser(id="user1", full_name="Alice", role="user")
ADMIN = CurrentUser(id="admin1", full_name="Ada Admin", role="admin")


@pytest.fixture
def as_user(fake_db):
    current = {"user": ALICE}
    app.dependency_overrides[get_current_user] = lambda: current["user"]
    client = TestClient(app)
    yield client, current
    app.dependency_overrides.clear()


def _open_and_start(client, module_id="m1"):
    resp = client.post(f"/quiz/{module_id}/gates")
    assert resp.status_code == 201
    gate = resp.json()
    assert gate["state"] == "locked"
    gid = gate["gate_id"]
    assert client.post(f"/quiz/gates/{gid}/video-finished").json()["state"] == "unlockable"
    started = client.post(f"/quiz/gates/{gid}/start").json()
    assert started["state"] == "in_progress"
    return gid, started


def _take_quiz(client, answers, module_id="m1"):
    gid, _ = _open_and_start(client, module_id)
    for i, option in enumerate(answers):
        client.put(f"/quiz/gates/{gid}/answer", json={"option_index": option})
        if i < len(answers) - 1:
            assert client.post(f"/quiz/gates/{gid}/next").status_code == 200
    return gid, client.post(f"/quiz/gates/{gid}/submit")


def test_healthz(as_user):
    client, _ = as_user
    assert client.get("/healthz").json()["status"] == "ok"


def test_full_quiz_flow_records_attempt(as_user, fake_db):
    client, _ = as_user
    gid, started = _open_and_start(client)
    assert started["attempt_number"] == 1
    assert started["current_question"]["question_text"] == "1/2 + 1/2 = ?"
    assert "correct_option_index" not in started["current_question"]

    # forward is blocked until the current question is answered
    assert client.post(f"/quiz/gates/{gid}/next").status_code == 409
    client.put(f"/quiz/gates/{gid}/answer", json={"option_index": 0})
    moved = client.post(f"/quiz/gates/{gid}/next").json()
    assert moved["current_question_index"] == 1
    client.put(f"/quiz/gates/{gid}/answer", json={"option_index": 1})

    resp = client.post(f"/quiz/gates/{gid}/submit")
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "completed"
    assert body["result"] == {
        "score": 15,
        "max_score": 15,
        "is_perfect": True,
        "attempt_number": 1,
        "attempts_left": 2,
        "is_last_attempt": False,
    }
    [row] = fake_db.tables["quiz_attempts"]
    assert (row["user_id"], row["module_id"], row["score"]) == ("user1", "m1", 15)


def test_start_before_video_is_conflict(as_user):
    client, _ = as_user
    gid = client.post("/quiz/m1/gates").json()["gate_id"]
    resp = client.post(f"/quiz/gates/{gid}/start")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "quiz_not_unlockable"


def test_invalid_option_is_bad_request(as_user):
    client, _ = as_user
    gid, _ = _open_and_start(client)
    assert client.put(f"/quiz/gates/{gid}/answer", json={"option_index": 7}).status_code == 400


def test_limit_reached_after_three_attempts(as_user, fake_db):
    client, _ = as_user
    for expected_number in (1, 2, 3):
        _, resp = _take_quiz(client, [0, 0])
        assert resp.json()["result"]["attempt_number"] == expected_number
    assert resp.json()["result"]["is_last_attempt"] is True

    gate = client.post("/quiz/m1/gates").json()
    assert gate["state"] == "exhausted_or_locked"
    assert gate["attempt_count"] == 3
    assert gate["best_score"] == 10
    gid = gate["gate_id"]
    assert client.post(f"/quiz/gates/{gid}/video-finished").json()["state"] == "exhausted_or_locked"
    assert client.post(f"/quiz/gates/{gid}/start").status_code == 409
    assert len(fake_db.tables["quiz_attempts"]) == 3


def test_module_deleted_mid_quiz_is_gone(as_user, fake_db):
    client, _ = as_user
    gid, _ = _open_and_start(client)
    client.put(f"/quiz/gates/{gid}/answer", json={"option_index": 0})
    client.post(f"/quiz/gates/{gid}/next")
    client.put(f"/quiz/gates/{gid}/answer", json={"option_index": 0})
    fake_db.tables["modules"] = [m for m in fake_db.tables["modules"] if m["id"] != "m1"]

    resp = client.post(f"/quiz/gates/{gid}/submit")
    assert resp.status_code == 410
    assert resp.json()["detail"] == "module_deleted"
    assert fake_db.tables["quiz_attempts"] == []
    assert client.get(f"/quiz/gates/{gid}").status_code == 404


def test_abandon_writes_nothing(as_user, fake_db):
    client, _ = as_user
    gid, _ = _open_and_start(client)
    assert client.delete(f"/quiz/gates/{gid}").status_code == 204
    assert client.get(f"/quiz/gates/{gid}").status_code == 404
    assert fake_db.tables["quiz_attempts"] == []


def test_gate_belongs_to_its_user(as_user):
    client, current = as_user
    gid = client.post("/quiz/m1/gates").json()["gate_id"]
    current["user"] = CurrentUser(id="user2", full_name="Bob", role="user")
    assert client.get(f"/quiz/gates/{gid}").status_code == 404


def test_unknown_module_gate_is_not_found(as_user):
    client, _ = as_user
    assert client.post("/quiz/missing/gates").status_code == 404


def test_leaderboard_and_my_score(as_user, fake_db):
    client, _ = as_user
    fake_db.tables["quiz_attempts"] = [
        {"id": "a1", "user_id": "user1", "module_id": "m1", "score": 20, "completed_at": "2024-02-01T10:00:00Z"},
        {"id": "a2", "user_id": "user1", "module_id": "m2", "score": 15, "completed_at": "2024-02-01T10:05:00Z"},
        {"id": "a3", "user_id": "user1", "module_id": "m1", "score": 5, "completed_at": "2024-02-01T10:10:00Z"},
        {"id": "a4", "user_id": "user2", "module_id": "m1", "score": 40, "completed_at": "2024-02-01T10:15:00Z"},
    ]
    board = client.get("/dashboard/leaderboard").json()
    assert [(e["user_id"], e["total_score"], e["rank"]) for e in board["podium"]] == [
        ("user2", 40, 1),
        ("user1", 35, 2),
    ]
    assert board["others"] == []
    me = client.get("/dashboard/me").json()
    assert me == {"user_id": "user1", "full_name": "Alice", "total_score": 35}


def test_progress_is_admin_only(as_user):
    client, _ = as_user
    assert client.get("/dashboard/progress").status_code == 403
    assert client.get("/dashboard/progress.csv").status_code == 403
    assert client.post("/modules/", json={}).status_code in (403, 422)


def test_admin_progress_and_csv(as_user, fake_db):
    client, current = as_user
    current["user"] = ADMIN
    fake_db.tables["quiz_attempts"] = [
        {"id": "a1", "user_id": "user1", "module_id": "m1", "score": 10, "completed_at": "2024-02-01T10:00:00Z"},
        {"id": "a2", "user_id": "user1", "module_id": "m1", "score": 12, "completed_at": "2024-02-02T10:00:00Z"},
        {"id": "a3", "user_id": "ghost", "module_id": "m9", "score": 3, "completed_at": "2024-02-03T10:00:00Z"},
    ]
    rows = client.get("/dashboard/progress").json()
    assert [(r["full_name"], r["module_title"], r["best_score"], r["attempt_count"]) for r in rows] == [
        ("Unknown User", "Unknown Module", 3, 1),
        ("Alice", "Fractions", 12, 2),
    ]
    resp = client.get("/dashboard/progress.csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0] == "User,Module,Best Score,Attempts,Last Attempt Date"
    assert lines[2].startswith("Alice,Fractions,12,2 / 3,2024-02-02T10:00:00")


def test_admin_module_crud(as_user, fake_db):
    client, current = as_user
    current["user"] = ADMIN
    payload = {
        "title": "Ratios",
        "description": "",
        "youtube_video_url": "https://youtu.be/dQw4w9WgXcQ",
        "questions": [
            {"question_text": "2:4 = ?", "options": [{"text": "1:2"}, {"text": "2:1"}], "correct_option_index": 0, "points": 10}
        ],
    }
    created = client.post("/modules/", json=payload)
    assert created.status_code == 201
    module_id = created.json()["id"]
    edit = client.get(f"/modules/{module_id}/edit").json()
    assert edit["questions"][0]["correct_option_index"] == 0

    bad = dict(payload, youtube_video_url="https://example.com/clip")
    resp = client.put(f"/modules/{module_id}", json=bad)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "invalid_youtube_url"

    assert client.delete(f"/modules/{module_id}").status_code == 204
    assert client.get(f"/modules/{module_id}").status_code == 404


def test_profile_me(as_user):
    client, _ = as_user
    assert client.get("/profiles/me").json() == {"id": "user1", "full_name": "Alice", "role": "user"}


def test_store_outage_on_catalogue_is_unavailable(as_user, fake_db):
    client, _ = as_user
    fake_db.failing_tables.add("modules")
    resp = client.get("/modules/")
    assert resp.status_code == 503
    assert "modules.list" in resp.json()["detail"]


def test_store_outage_on_gate_open_is_unavailable(as_user, fake_db):
    client, _ = as_user
    fake_db.failing_tables.add("quiz_attempts")
    assert client.post("/quiz/m1/gates").status_code == 503


def test_store_outage_on_leaderboard_is_unavailable(as_user, fake_db):
    client, _ = as_user
    fake_db.failing_tables.add("quiz_attempts")
    assert client.get("/dashboard/leaderboard").status_code == 503


def test_store_outage_on_profile_is_unavailable(as_user, fake_db):
    client, _ = as_user
    fake_db.failing_tables.add("profiles")
    assert client.get("/profiles/me").status_code == 503


def test_failed_insert_keeps_gate_open_until_retry(as_user, fake_db):
    client, _ = as_user
    gid, _ = _open_and_start(client)
    client.put(f"/quiz/gates/{gid}/answer", json={"option_index": 0})
    client.post(f"/quiz/gates/{gid}/next")
    client.put(f"/quiz/gates/{gid}/answer", json={"option_index": 1})

    fake_db.failing_tables.add("quiz_attempts")
    assert client.post(f"/quiz/gates/{gid}/submit").status_code == 503
    gate = client.get(f"/quiz/gates/{gid}").json()
    assert gate["state"] == "in_progress"
    assert gate["selected_answers"] == [0, 1]
    assert fake_db.tables["quiz_attempts"] == []

    fake_db.failing_tables.discard("quiz_attempts")
    resp = client.post(f"/quiz/gates/{gid}/submit")
    assert resp.status_code == 200
    assert resp.json()["state"] == "completed"
    assert resp.json()["result"]["score"] == 15
    assert len(fake_db.tables["quiz_attempts"]) == 1


def test_malformed_stored_question_is_unprocessable(as_user, fake_db):
    client, current = as_user
    fake_db.tables["questions"][0]["correct_option_index"] = 9
    resp = client.get("/modules/m1")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "invalid_question_data"

    current["user"] = ADMIN
    assert client.get("/modules/m1/edit").status_code == 422
