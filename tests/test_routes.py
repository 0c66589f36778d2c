import pytest
from fastapi.testclient import TestClient
from jose import jwt

import quiz_engine.app as app_module
from quiz_engine.app import app
from quiz_engine.config import ALGORITHM, SECRET_KEY
from quiz_engine.dependencies import get_store
from quiz_engine.services.session_registry import registry

QUIZ_PAYLOAD = {
    "title": "Capitals",
    "subject": "Geography",
    "description": "European capitals",
    "questions": [
        {
            "question_text": "Capital of France?",
            "question_type": "multiple_choice",
            "options": ["Paris", "Lyon", ""],
            "correct_answer": "Paris",
        },
        {
            "question_text": "Berlin is the capital of Germany.",
            "question_type": "true_false",
            "correct_answer": "True",
            "explanation": "Since 1990.",
        },
    ],
}


def _auth(user_id: str, name: str = "") -> dict[str, str]:
    token = jwt.encode({"sub": user_id, "name": name}, SECRET_KEY, algorithm=ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


AUTHOR = _auth("author-1", "Ada")
PLAYER = _auth("player-1", "Grace")


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setattr(app_module, "init_db", lambda: None)
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    # Shutdown disposes every live session
    assert len(registry) == 0


def _create_quiz(client: TestClient, **overrides) -> dict:
    response = client.post("/api/quizzes", json={**QUIZ_PAYLOAD, **overrides}, headers=AUTHOR)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_quiz_requires_token(client: TestClient) -> None:
    response = client.post("/api/quizzes", json=QUIZ_PAYLOAD)
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"

    response = client.post(
        "/api/quizzes", json=QUIZ_PAYLOAD, headers={"Authorization": "Bearer forged"}
    )
    assert response.status_code == 401


def test_invalid_question_is_rejected_with_reason(client: TestClient) -> None:
    bad = dict(QUIZ_PAYLOAD)
    bad["questions"] = [
        {
            "question_text": "Capital of Spain?",
            "options": ["Madrid", "Seville"],
            "correct_answer": "Barcelona",
        }
    ]
    response = client.post("/api/quizzes", json=bad, headers=AUTHOR)
    assert response.status_code == 400
    assert response.json()["reason"] == "NO_CORRECT_ANSWER"

    response = client.post("/api/quizzes", json={**QUIZ_PAYLOAD, "questions": []}, headers=AUTHOR)
    assert response.json()["reason"] == "NO_QUESTIONS"


def test_correct_answers_only_shown_to_author(client: TestClient) -> None:
    quiz = _create_quiz(client)
    assert quiz["questions"][1]["correct_answer"] == "true"
    assert quiz["max_score"] == 20

    as_author = client.get(f"/api/quizzes/{quiz['id']}", headers=AUTHOR).json()
    assert as_author["questions"][0]["correct_answer"] == "Paris"

    as_player = client.get(f"/api/quizzes/{quiz['id']}", headers=PLAYER).json()
    assert "correct_answer" not in as_player["questions"][0]
    assert as_player["questions"][0]["options"] == ["Paris", "Lyon"]

    anonymous = client.get(f"/api/quizzes/{quiz['id']}").json()
    assert "correct_answer" not in anonymous["questions"][1]

    assert client.get("/api/quizzes/missing").status_code == 404


def test_take_quiz_end_to_end(client: TestClient) -> None:
    quiz = _create_quiz(client, time_limit=10)
    first, second = (question["id"] for question in quiz["questions"])

    response = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=PLAYER)
    assert response.status_code == 201
    state = response.json()
    attempt_id = state["attempt_id"]
    assert state["status"] == "answering"
    assert state["remaining_seconds"] == 600
    assert "correct_answer" not in state["current_question"]

    moved = client.post(
        f"/api/attempts/{attempt_id}/navigate", json={"action": "next"}, headers=PLAYER
    ).json()
    assert moved["moved"] is False

    client.put(f"/api/attempts/{attempt_id}/answers/{first}", json={"value": "Paris"}, headers=PLAYER)
    moved = client.post(
        f"/api/attempts/{attempt_id}/navigate", json={"action": "next"}, headers=PLAYER
    ).json()
    assert moved["moved"] is True
    assert moved["current_index"] == 1

    response = client.put(
        f"/api/attempts/{attempt_id}/answers/{second}", json={"value": "true"}, headers=PLAYER
    )
    assert response.json()["answered"] == [True, True]

    declined = client.post(f"/api/attempts/{attempt_id}/submit", json={}, headers=PLAYER).json()
    assert declined["submitted"] is False
    assert declined["status"] == "answering"

    response = client.post(
        f"/api/attempts/{attempt_id}/submit", json={"confirmed": True}, headers=PLAYER
    )
    assert response.status_code == 200
    submitted = response.json()
    assert submitted["submitted"] is True
    assert submitted["status"] == "results"
    assert submitted["result"]["percentage"] == 100
    assert submitted["result"]["band"] == "excellent"
    assert submitted["result"]["answers"][1]["explanation"] == "Since 1990."

    # The finished session is closed once its results are returned
    assert attempt_id not in registry
    response = client.put(
        f"/api/attempts/{attempt_id}/answers/{first}", json={"value": "Lyon"}, headers=PLAYER
    )
    assert response.status_code == 404

    scores = client.get("/api/scores", headers=PLAYER).json()
    assert [item["attempt_id"] for item in scores["scores"]] == [attempt_id]
    assert scores["scores"][0]["quiz_title"] == "Capitals"
    assert scores["summary"]["attempts_count"] == 1
    assert scores["summary"]["best_percentage"] == 100

    stats = client.get(f"/api/quizzes/{quiz['id']}/stats").json()
    assert stats["total_attempts"] == 1
    assert stats["difficulty"] == "easy"


def test_attempt_session_belongs_to_its_player(client: TestClient) -> None:
    quiz = _create_quiz(client)
    attempt_id = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=PLAYER).json()["attempt_id"]

    assert client.get(f"/api/attempts/{attempt_id}", headers=AUTHOR).status_code == 403
    assert client.get(f"/api/attempts/{attempt_id}").status_code == 401

    response = client.post(
        f"/api/attempts/{attempt_id}/submit", json={"retry": True}, headers=PLAYER
    )
    assert response.status_code == 409


def test_retire_quiz(client: TestClient) -> None:
    quiz = _create_quiz(client)
    assert [item["id"] for item in client.get("/api/quizzes").json()["quizzes"]] == [quiz["id"]]

    assert client.delete(f"/api/quizzes/{quiz['id']}", headers=PLAYER).status_code == 403
    response = client.delete(f"/api/quizzes/{quiz['id']}", headers=AUTHOR)
    assert response.json() == {"status": "retired", "quiz_id": quiz["id"]}

    assert client.get("/api/quizzes").json() == {"quizzes": []}
    response = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=PLAYER)
    assert response.status_code == 404


def test_store_outage_maps_to_503(client: TestClient, store) -> None:
    quiz = _create_quiz(client)
    attempt_id = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=PLAYER).json()["attempt_id"]
    store.fail_updates = 1

    response = client.post(
        f"/api/attempts/{attempt_id}/submit", json={"confirmed": True}, headers=PLAYER
    )
    assert response.status_code == 503

    state = client.get(f"/api/attempts/{attempt_id}", headers=PLAYER).json()
    assert state["status"] == "answering"
    assert state["last_error"]


def _finish(client: TestClient, quiz_id: str) -> str:
    attempt_id = client.post(f"/api/quizzes/{quiz_id}/attempts", headers=PLAYER).json()["attempt_id"]
    response = client.post(
        f"/api/attempts/{attempt_id}/submit", json={"confirmed": True}, headers=PLAYER
    )
    assert response.json()["status"] == "results"
    return attempt_id


def test_finished_attempts_do_not_stay_live(client: TestClient) -> None:
    quiz = _create_quiz(client)
    for _ in range(3):
        _finish(client, quiz["id"])

    assert len(registry) == 0
    assert len(client.get("/api/scores", headers=PLAYER).json()["scores"]) == 3


def test_new_attempt_closes_earlier_open_session(client: TestClient) -> None:
    quiz = _create_quiz(client)
    first = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=PLAYER).json()["attempt_id"]
    second = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=PLAYER).json()["attempt_id"]

    assert len(registry) == 1
    assert client.get(f"/api/attempts/{first}", headers=PLAYER).status_code == 404
    assert client.get(f"/api/attempts/{second}", headers=PLAYER).json()["status"] == "answering"

    closed = client.delete(f"/api/attempts/{second}", headers=PLAYER).json()
    assert closed == {"status": "closed", "attempt_id": second, "state": "disposed"}
    assert len(registry) == 0
