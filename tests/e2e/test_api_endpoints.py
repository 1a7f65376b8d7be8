"""
End-to-End Tests for the REST API

Drives the FastAPI app through TestClient with the advisor wired to in-memory
collaborators and session records written to a temporary directory.
"""

import pytest
import sys
import os
import json

import requests
from fastapi.testclient import TestClient

# Add project root and backend to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "teacher_course_advisor", "src"))
sys.path.insert(0, os.path.join(project_root, "backend"))

import main
from teacher_course_advisor.course_advisor import GENERAL_MESSAGE
from teacher_course_advisor.course_catalog import CourseCatalog, build_course_categories
from teacher_course_advisor.session_store import SessionStore
from teacher_course_advisor.survey import RATING_FIELDS

PROFILE = {
    "name": "דנה",
    "subject_area": "מתמטיקה",
    "school_type": "יהודי",
    "language": "עברית",
    "education_levels": ["יסודי"],
    "previous_courses": [{"course_id": "algebra-1", "course_name": "אלגברה למורים"}],
}

COURSE_ROWS = [
    {"שם יחידת הכוורת": "קריאה והבנת הנקרא", "תחום": "שפת אם", "תת תחום": "עברית", "שפת הקורס": "עברית"},
    {"שם יחידת הכוורת": "גאומטריה במרחב", "תחום": "מתמטיקה", "תת תחום": "גאומטריה", "שפת הקורס": "ערבית"},
]


@pytest.fixture
def sessions_dir(tmp_path):
    return tmp_path / "sessions"


@pytest.fixture
def client(monkeypatch, advisor, sessions_dir):
    monkeypatch.setattr(main, "_advisor_instance", advisor)
    monkeypatch.setattr(main, "_session_store", SessionStore(sessions_dir=str(sessions_dir)))
    monkeypatch.setattr(main, "_course_catalog", CourseCatalog(build_course_categories(COURSE_ROWS)))
    monkeypatch.setattr(main, "get_supabase_client", lambda: None)
    return TestClient(main.app)


def open_session(client, name="דנה"):
    response = client.post("/api/chat/sessions", json={"name": name})
    assert response.status_code == 200
    return response.json()


class TestProfileEndpoints:
    """Profile form support endpoints."""

    def test_health(self, client):
        body = client.get("/").json()
        assert body["status"] == "ok"
        assert body["advisor_available"] is True
        assert body["supabase_connected"] is False

    def test_subjects_empty_query(self, client):
        body = client.get("/api/subjects", params={"q": ""}).json()
        assert len(body["suggestions"]) == 10

    def test_subjects_prefix(self, client):
        body = client.get("/api/subjects", params={"q": "חינוך"}).json()
        assert body["suggestions"][:2] == ["חינוך גופני", "חינוך מיוחד"]

    def test_profile_options(self, client):
        body = client.get("/api/profile/options").json()
        assert len(body["subjects"]) == 13

    def test_validate_profile(self, client):
        assert client.post("/api/profile/validate", json=PROFILE).json() == {"valid": True, "errors": []}

        invalid = dict(PROFILE, subject_area="מתמטיקא")
        body = client.post("/api/profile/validate", json=invalid).json()
        assert body["valid"] is False
        assert "אנא בחרו מקצוע מהרשימה המוצעת" in body["errors"]


class TestCourseEndpoints:
    """Course catalog browsing."""

    def test_facets(self, client):
        body = client.get("/api/courses/facets").json()
        assert body["languages"] == ["הכל", "עברית", "ערבית"]

    def test_filter(self, client):
        body = client.get("/api/courses", params={"domain": "מתמטיקה"}).json()
        assert list(body["categories"]) == ["מתמטיקה - גאומטריה"]
        assert body["categories"]["מתמטיקה - גאומטריה"][0]["name"] == "גאומטריה במרחב"
        assert body["total_courses"] == 2


class TestChatEndpoints:
    """Chat session lifecycle."""

    def test_open_session(self, client):
        body = open_session(client)
        assert body["session_id"].startswith("session_")
        assert "דנה" in body["content"]
        assert body["conversation_state"] == "general"

    def test_chat_turns(self, client, fake_predictor):
        session_id = open_session(client)["session_id"]

        body = client.post("/api/chat", json={"content": "שלום", "session_id": session_id, "profile": PROFILE}).json()
        assert body["text"] == GENERAL_MESSAGE
        assert body["is_error"] is False
        assert body["conversation_state"] == "general"
        assert body["branch"] == "general"

        body = client.post("/api/chat", json={"content": "איך נרשמים?", "session_id": session_id, "profile": PROFILE}).json()
        assert body["conversation_state"] == "recommendation"
        assert fake_predictor.calls[0].subject_area == "מתמטיקה"

        state = client.get(f"/api/chat/sessions/{session_id}/state").json()
        assert state["interaction_count"] == 2
        assert state["history_length"] == 4

    def test_collaborator_failure_reported_in_band(self, client, fake_predictor):
        session_id = open_session(client)["session_id"]
        fake_predictor.error = requests.ConnectionError("connection refused")

        response = client.post("/api/chat", json={"content": "תמליץ לי", "session_id": session_id, "profile": PROFILE})

        assert response.status_code == 200
        body = response.json()
        assert body["is_error"] is True
        assert body["text"] == "שגיאת רשת. אנא בדוק את החיבור לאינטרנט ונסה שוב."
        assert body["conversation_state"] == "general"

    def test_unknown_session(self, client):
        response = client.post("/api/chat", json={"content": "שלום", "session_id": "nope", "profile": PROFILE})
        assert response.status_code == 404

    def test_empty_message(self, client):
        session_id = open_session(client)["session_id"]
        response = client.post("/api/chat", json={"content": "   ", "session_id": session_id, "profile": PROFILE})
        assert response.status_code == 400

    def test_end_session(self, client):
        session_id = open_session(client)["session_id"]
        assert client.delete(f"/api/chat/sessions/{session_id}").status_code == 200
        assert client.get(f"/api/chat/sessions/{session_id}/state").status_code == 404
        assert client.delete(f"/api/chat/sessions/{session_id}").status_code == 404

    def test_advisor_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(main, "_advisor_instance", None)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        response = client.post("/api/chat/sessions", json={})

        assert response.status_code == 503


class TestSurveyEndpoints:
    """Survey submission and session record storage."""

    def test_skip_survey(self, client, sessions_dir):
        body = client.post("/api/survey", json={"user_name": "דנה", "skipped": True}).json()

        assert body["success"] is True
        stored = json.loads((sessions_dir / body["filename"]).read_text(encoding="utf-8"))
        assert stored["survey"]["skipped"] is True
        assert stored["userInfo"]["userName"] == "דנה"

    def test_incomplete_survey_rejected(self, client):
        response = client.post("/api/survey", json={"user_name": "דנה", "answers": {"design": 5}})

        assert response.status_code == 400
        assert "would_recommend" in response.json()["detail"]["unanswered"]

    def test_complete_survey_uses_session_history(self, client, advisor, sessions_dir):
        session_id = open_session(client)["session_id"]
        client.post("/api/chat", json={"content": "שלום", "session_id": session_id, "profile": PROFILE})
        answers = {name: 5 for name in RATING_FIELDS}
        answers["would_recommend"] = "כן"

        body = client.post("/api/survey", json={
            "user_name": "דנה",
            "teacher_info": {"subjectArea": "מתמטיקה"},
            "session_id": session_id,
            "session_time": "00:03:10",
            "answers": answers,
        }).json()

        stored = json.loads((sessions_dir / body["filename"]).read_text(encoding="utf-8"))
        assert stored["conversationHistory"][0] == {"role": "user", "content": "שלום"}
        assert stored["survey"]["answers"]["overall_experience"] == 5
        assert stored["sessionTime"] == "00:03:10"
        assert advisor.get_session(session_id) is None

    def test_save_and_list_sessions(self, client):
        body = client.post("/api/save-session", json={"userInfo": {"userName": "יוסי"}}).json()
        assert body == {
            "success": True,
            "message": "Session saved successfully",
            "filename": body["filename"],
        }
        assert body["filename"].startswith("session_יוסי_")

        listing = client.get("/api/sessions").json()
        assert listing["success"] is True
        assert [s["filename"] for s in listing["sessions"]] == [body["filename"]]


class TestRequestValidation:
    """Client input that must be rejected before it reaches collaborators or storage."""

    def test_chat_rejects_subject_outside_catalog(self, client, fake_predictor):
        session_id = open_session(client)["session_id"]
        profile = dict(PROFILE, subject_area="xyz-not-a-subject")

        response = client.post("/api/chat", json={"content": "תמליץ לי", "session_id": session_id, "profile": profile})

        assert response.status_code == 400
        assert "אנא בחרו מקצוע מהרשימה המוצעת" in response.json()["detail"]
        assert fake_predictor.calls == []
        state = client.get(f"/api/chat/sessions/{session_id}/state").json()
        assert state["interaction_count"] == 0

    def test_chat_rejects_missing_required_fields(self, client, fake_predictor):
        session_id = open_session(client)["session_id"]
        profile = dict(PROFILE, school_type="")

        response = client.post("/api/chat", json={"content": "שלום", "session_id": session_id, "profile": profile})

        assert response.status_code == 400
        assert fake_predictor.calls == []

    def test_numeric_string_ratings_accepted(self, client, sessions_dir):
        answers = {name: "5" for name in RATING_FIELDS}
        answers["would_recommend"] = "yes"

        response = client.post("/api/survey", json={"user_name": "דנה", "answers": answers})

        assert response.status_code == 200
        stored = json.loads((sessions_dir / response.json()["filename"]).read_text(encoding="utf-8"))
        assert stored["survey"]["answers"]["design"] == 5

    @pytest.mark.parametrize("bad_value", ["five", 6, -1, [5]])
    def test_invalid_rating_rejected(self, client, bad_value):
        answers = {name: 5 for name in RATING_FIELDS}
        answers["would_recommend"] = "yes"
        answers["clarity"] = bad_value

        response = client.post("/api/survey", json={"user_name": "דנה", "answers": answers})

        assert response.status_code == 422


class TestSessionRecordRetrieval:
    """Stored session lookup and save-failure handling."""

    def test_failed_save_keeps_chat_session(self, client, advisor, monkeypatch):
        session_id = open_session(client)["session_id"]
        client.post("/api/chat", json={"content": "שלום", "session_id": session_id, "profile": PROFILE})

        def failing_save(record):
            raise OSError("disk full")

        monkeypatch.setattr(main._session_store, "save_session", failing_save)
        response = client.post("/api/survey", json={"user_name": "דנה", "session_id": session_id, "skipped": True})

        assert response.status_code == 500
        assert response.json()["success"] is False
        state = advisor.get_session(session_id)
        assert state is not None
        assert len(state.conversation_history) == 2

    def test_retry_after_failed_save_stores_history(self, client, advisor, monkeypatch, sessions_dir):
        session_id = open_session(client)["session_id"]
        client.post("/api/chat", json={"content": "שלום", "session_id": session_id, "profile": PROFILE})
        store = main._session_store
        real_save = store.save_session

        def failing_save(record):
            raise OSError("disk full")

        monkeypatch.setattr(store, "save_session", failing_save)
        assert client.post(
            "/api/survey", json={"user_name": "דנה", "session_id": session_id, "skipped": True}
        ).status_code == 500

        monkeypatch.setattr(store, "save_session", real_save)
        body = client.post("/api/survey", json={"user_name": "דנה", "session_id": session_id, "skipped": True}).json()

        stored = json.loads((sessions_dir / body["filename"]).read_text(encoding="utf-8"))
        assert stored["conversationHistory"][0] == {"role": "user", "content": "שלום"}
        assert advisor.get_session(session_id) is None

    def test_get_stored_session(self, client):
        filename = client.post("/api/save-session", json={"userInfo": {"userName": "יוסי"}}).json()["filename"]

        response = client.get(f"/api/sessions/{filename}")

        assert response.status_code == 200
        assert response.json()["session"] == {"userInfo": {"userName": "יוסי"}}

    def test_get_unknown_stored_session(self, client):
        assert client.get("/api/sessions/session_nobody_1.json").status_code == 404
