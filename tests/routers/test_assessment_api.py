import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config.settings import AppSettings, get_settings
from services.style_engine.models import PhraseConfig
from src.db.database import get_db
from src.routers import assessment as assessment_module
from src.routers.assessment import get_phrase_config, get_session_store, router, to_legacy_range
from src.services.storage import StorageError

# Create a FastAPI app instance and include the router for testing
app = FastAPI()
app.include_router(router, prefix="/api/v1")

client = TestClient(app)


@pytest.fixture
def override(phrase_config, db_session):
    """Wires the router to the test document, an in-memory database and a private session store."""
    sessions = {}
    app.dependency_overrides[get_phrase_config] = lambda: phrase_config
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_settings] = lambda: AppSettings(persist_results=True)
    app.dependency_overrides[get_session_store] = lambda: sessions
    yield sessions
    app.dependency_overrides.clear()


def _score_payload(questions, value, **extra):
    payload = {
        "questions": [q.model_dump(by_alias=True) for q in questions],
        "responses": [{"questionId": q.id, "value": value} for q in questions],
    }
    payload.update(extra)
    return payload


# --- Configuration & Questions ---

def test_config_summary(override):
    response = client.get("/api/v1/config/summary")
    assert response.status_code == 200
    body = response.json()
    assert body["version"] == "test-1.0"
    assert body["totalPhrases"] == 16
    assert [d["name"] for d in body["dimensions"]] == ["Uncertainty Attitude", "Possibility Attitude"]


def test_questions_default_count(override):
    response = client.get("/api/v1/questions")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 4
    assert body["strategy"] == "random"
    assert {"id", "leftPhrase", "rightPhrase", "leftPhraseIndex", "rightPhraseIndex", "pairLabel"} <= set(body["questions"][0])


def test_questions_with_seed_are_reproducible(override):
    first = client.get("/api/v1/questions", params={"count": 6, "seed": "abc"}).json()
    second = client.get("/api/v1/questions", params={"count": 6, "seed": "abc"}).json()
    assert first["total"] == 6
    assert first["questions"] == second["questions"]


def test_questions_reject_zero_count(override):
    response = client.get("/api/v1/questions", params={"count": 0})
    assert response.status_code == 422


def test_questions_with_dimension_focus(dimension_focused_config, override):
    app.dependency_overrides[get_phrase_config] = lambda: dimension_focused_config
    body = client.get("/api/v1/questions", params={"count": 4}).json()
    assert body["strategy"] == "dimension-focused"
    assert [q["phase"] for q in body["questions"]] == [1, 1, 2, 2]


def test_dimension_focus_count_below_dimension_count_is_rejected(dimension_focused_config, override):
    app.dependency_overrides[get_phrase_config] = lambda: dimension_focused_config
    response = client.get("/api/v1/questions", params={"count": 1})
    assert response.status_code == 422
    assert "one per dimension" in response.json()["detail"]

    response = client.post("/api/v1/sessions", json={"count": 1})
    assert response.status_code == 422


def test_broken_configuration_maps_to_500(override):
    broken = PhraseConfig.model_validate({
        "metadata": {"version": "broken"},
        "dimensions": [{"name": "Broken", "categories": ["A", "Missing"]}],
        "phraseSets": [
            {"category": "A", "phrases": ["a1", "a2"]},
            {"category": "B", "phrases": ["b1", "b2"]},
        ],
    })
    app.dependency_overrides[get_phrase_config] = lambda: broken
    response = client.get("/api/v1/questions", params={"count": 1})
    assert response.status_code == 500
    assert "Missing" in response.json()["detail"]


# --- Scoring ---

def test_score_and_persist(override, quadrant3_questions):
    response = client.post(
        "/api/v1/assessment/score",
        json=_score_payload(quadrant3_questions, 0, customCode="TEAM-9", email="pat@Example.com"),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["score"]["coordinates"] == {"x": -1.0, "y": -1.0}
    assert body["interpretation"]["position"] == "quadrant3"
    assert body["interpretation"]["style"] == "Structured Leader"
    assert [d["intensity"] for d in body["dimensionInterpretations"]] == ["very strong", "very strong"]
    assert isinstance(body["resultId"], int)

    stored = client.get("/api/v1/results", params={"customCode": "TEAM-9"}).json()
    assert len(stored) == 1
    assert stored[0]["styleName"] == "Structured Leader"
    assert stored[0]["emailDomain"] == "example.com"


def test_score_without_persistence(override, quadrant3_questions):
    app.dependency_overrides[get_settings] = lambda: AppSettings(persist_results=False)
    body = client.post("/api/v1/assessment/score", json=_score_payload(quadrant3_questions, 5)).json()
    assert body["resultId"] is None
    assert body["interpretation"]["position"] == "center"


def test_score_survives_storage_failure(override, quadrant3_questions, monkeypatch):
    def _fail(db, record):
        raise StorageError("database is locked")
    monkeypatch.setattr(assessment_module, "save_assessment_result", _fail)

    response = client.post("/api/v1/assessment/score", json=_score_payload(quadrant3_questions, 10))
    assert response.status_code == 200
    assert response.json()["resultId"] is None


def test_score_unknown_question_is_422(override, quadrant3_questions):
    payload = _score_payload(quadrant3_questions, 3)
    payload["responses"].append({"questionId": "q77", "value": 3})
    response = client.post("/api/v1/assessment/score", json=payload)
    assert response.status_code == 422
    assert "q77" in response.json()["detail"]


def test_score_duplicate_response_is_422(override, quadrant3_questions):
    payload = _score_payload(quadrant3_questions, 3)
    payload["responses"].append({"questionId": "q1", "value": 9})
    response = client.post("/api/v1/assessment/score", json=payload)
    assert response.status_code == 422


def test_score_out_of_range_value(override, quadrant3_questions):
    response = client.post("/api/v1/assessment/score", json=_score_payload(quadrant3_questions, 11))
    assert response.status_code == 422


def test_interpret(override):
    response = client.post("/api/v1/assessment/interpret", json={"x": 0.5, "y": -0.5})
    assert response.status_code == 200
    assert response.json()["position"] == "quadrant4"

    widened = client.post("/api/v1/assessment/interpret", json={"x": 0.5, "y": -0.5, "neutralThreshold": 0.6})
    assert widened.json()["position"] == "center"


def test_interpret_rejects_out_of_range(override):
    response = client.post("/api/v1/assessment/interpret", json={"x": 1.5, "y": 0})
    assert response.status_code == 422


# --- Sessions ---

def test_session_flow(override):
    created = client.post("/api/v1/sessions", json={"count": 2, "seed": "s1", "customCode": "TEAM-2"})
    assert created.status_code == 201
    session = created.json()
    assert session["state"] == "in_progress"
    assert session["totalQuestions"] == 2
    assert len(session["questions"]) == 2
    assert session["currentQuestion"] == session["questions"][0]
    session_id = session["sessionId"]

    first = client.post(f"/api/v1/sessions/{session_id}/responses", json={"value": 5})
    assert first.status_code == 200
    assert first.json()["legacyValue"] == 150
    assert first.json()["progress"] == 0.5
    assert first.json()["result"] is None

    last = client.post(f"/api/v1/sessions/{session_id}/responses", json={"value": 8})
    body = last.json()
    assert body["state"] == "completed"
    assert body["submittedValue"] == 8
    assert body["legacyValue"] == 220
    assert body["result"]["score"]["totalQuestions"] == 2
    assert isinstance(body["result"]["resultId"], int)

    again = client.post(f"/api/v1/sessions/{session_id}/responses", json={"value": 5})
    assert again.status_code == 409

    fetched = client.get(f"/api/v1/sessions/{session_id}").json()
    assert fetched["state"] == "completed"
    assert fetched["result"] == body["result"]

    stored = client.get("/api/v1/results", params={"customCode": "TEAM-2"}).json()
    assert [r["assessmentId"] for r in stored] == [session_id]


def test_unknown_session_is_404(override):
    assert client.get("/api/v1/sessions/nope").status_code == 404
    assert client.post("/api/v1/sessions/nope/responses", json={"value": 5}).status_code == 404


def test_session_rejects_bad_value(override):
    session_id = client.post("/api/v1/sessions", json={"count": 2}).json()["sessionId"]
    response = client.post(f"/api/v1/sessions/{session_id}/responses", json={"value": -1})
    assert response.status_code == 422
    assert client.get(f"/api/v1/sessions/{session_id}").json()["questionIndex"] == 0


def test_session_store_is_bounded(override):
    app.dependency_overrides[get_settings] = lambda: AppSettings(persist_results=False, max_sessions=2)
    finished = client.post("/api/v1/sessions", json={"count": 2}).json()["sessionId"]
    for value in (3, 7):
        client.post(f"/api/v1/sessions/{finished}/responses", json={"value": value})
    open_one = client.post("/api/v1/sessions", json={"count": 2}).json()["sessionId"]

    # Full: the completed session makes room first
    newer = client.post("/api/v1/sessions", json={"count": 2}).json()["sessionId"]
    assert set(override) == {open_one, newer}
    assert client.get(f"/api/v1/sessions/{finished}").status_code == 404

    # No completed session left: the oldest one goes
    newest = client.post("/api/v1/sessions", json={"count": 2}).json()["sessionId"]
    assert set(override) == {newer, newest}


@pytest.mark.parametrize("value, legacy", [(0, 0), (4, 40), (5, 150), (6, 200), (10, 240)])
def test_to_legacy_range(value, legacy):
    assert to_legacy_range(value) == legacy


# --- Stored Results ---

def test_save_result_and_analytics(override):
    for x, y in [(-0.4, 0.2), (0.6, 0.4)]:
        response = client.post(
            "/api/v1/results",
            json={"x": x, "y": y, "styleName": "Focused", "customCode": "TEAM-5"},
            headers={"x-forwarded-for": "203.0.113.9"},
        )
        assert response.status_code == 201
        assert response.json()["customCode"] == "TEAM-5"

    analytics = client.get("/api/v1/results/analytics", params={"customCode": "TEAM-5"}).json()
    assert analytics["totalAssessments"] == 2
    assert analytics["avgX"] == pytest.approx(0.1)
    assert analytics["avgY"] == pytest.approx(0.3)


def test_results_require_code(override):
    assert client.get("/api/v1/results").status_code == 422


def test_storage_error_maps_to_503(override, monkeypatch):
    def _fail(db, record):
        raise StorageError("database is locked")
    monkeypatch.setattr(assessment_module, "save_assessment_result", _fail)

    response = client.post("/api/v1/results", json={"x": 0.0, "y": 0.0})
    assert response.status_code == 503
