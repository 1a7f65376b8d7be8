"""
FastAPI Backend for the Teacher Course Advisor

Provides REST API endpoints for:
- Subject-area autocomplete for the profile form
- Profile options and validation
- Course catalog browsing (courses the teacher already took)
- Chat sessions with the recommendation assistant
- Satisfaction survey submission and session record storage
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
import os
import sys
import time
import uuid
import logging
import signal

from lib.logger import setup_logging, get_logger

setup_logging(level=logging.INFO, use_colors=True)

logger = get_logger("backend.main")

# Add the teacher_course_advisor package to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)

package_src = os.path.join(project_root, 'teacher_course_advisor', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from lib.supabase_client import get_supabase_client

from teacher_course_advisor.course_advisor import CourseAdvisor
from teacher_course_advisor.course_catalog import CourseCatalog, ALL
from teacher_course_advisor.errors import ConfigurationError
from teacher_course_advisor.session_store import SessionStore
from teacher_course_advisor.subject_matcher import rank_subjects
from teacher_course_advisor.survey import SurveyAnswers, build_session_record
from teacher_course_advisor.teacher_profile import TeacherProfile, profile_options

# Singletons, created on first use
_advisor_instance: Optional[CourseAdvisor] = None
_advisor_error: Optional[str] = None
_session_store: Optional[SessionStore] = None
_course_catalog: Optional[CourseCatalog] = None


def get_advisor_instance() -> CourseAdvisor:
    """
    Get or create the singleton CourseAdvisor.

    Raises:
        HTTPException(503): The assistant is not configured (missing API key)
    """
    global _advisor_instance, _advisor_error
    if _advisor_instance is None:
        try:
            _advisor_instance = CourseAdvisor()
            _advisor_error = None
        except ConfigurationError as e:
            _advisor_error = str(e)
            logger.error("Course advisor not configured", error=e)
            raise HTTPException(status_code=503, detail="Course advisor not available: " + str(e))
    return _advisor_instance


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(supabase_client=get_supabase_client())
    return _session_store


def get_course_catalog() -> CourseCatalog:
    global _course_catalog
    if _course_catalog is None:
        path = os.getenv("COURSES_DATA_PATH", os.path.join(project_root, "data", "courses.json"))
        _course_catalog = CourseCatalog.from_json_file(path)
    return _course_catalog


app = FastAPI(
    title="Teacher Course Advisor API",
    description="REST API for course recommendations, profile autocomplete and session surveys",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Pydantic Models ====================

class PreviousCoursePayload(BaseModel):
    course_id: str = ""
    course_name: str


class ProfilePayload(BaseModel):
    name: str = ""
    subject_area: str = ""
    school_type: str = ""
    language: str = "עברית"
    education_levels: List[str] = Field(default_factory=list)
    previous_courses: List[PreviousCoursePayload] = Field(default_factory=list)

    def to_profile(self) -> TeacherProfile:
        return TeacherProfile.from_dict(self.model_dump())


class OpenSessionRequest(BaseModel):
    name: Optional[str] = None


class OpenSessionResponse(BaseModel):
    session_id: str
    content: str
    conversation_state: str


class ChatMessage(BaseModel):
    content: str
    session_id: str
    profile: ProfilePayload


class ChatReply(BaseModel):
    text: str
    is_error: bool
    session_id: str
    conversation_state: str
    intent: Optional[str] = None
    branch: Optional[str] = None


class StateSummary(BaseModel):
    session_id: str
    conversation_state: str
    last_assistant_message: Optional[str]
    interaction_count: int
    history_length: int
    created_at: str
    last_updated: str


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str]


class SurveyAnswersPayload(BaseModel):
    """Star ratings 1-5 (0 = unanswered); anything else is rejected with 422."""
    overall_experience: int = Field(0, ge=0, le=5)
    response_quality: int = Field(0, ge=0, le=5)
    helpfulness: int = Field(0, ge=0, le=5)
    accuracy: int = Field(0, ge=0, le=5)
    clarity: int = Field(0, ge=0, le=5)
    ease_of_use: int = Field(0, ge=0, le=5)
    response_speed: int = Field(0, ge=0, le=5)
    design: int = Field(0, ge=0, le=5)
    personalization: int = Field(0, ge=0, le=5)
    future_use: int = Field(0, ge=0, le=5)
    would_recommend: str = ""

    def to_answers(self) -> SurveyAnswers:
        return SurveyAnswers(**self.model_dump())


class SurveySubmission(BaseModel):
    user_name: Optional[str] = None
    teacher_info: Dict[str, Any] = Field(default_factory=dict)
    course_ratings: List[Any] = Field(default_factory=list)
    conversation_history: List[Dict[str, Any]] = Field(default_factory=list)
    session_time: Optional[str] = None
    session_id: Optional[str] = None
    answers: Optional[SurveyAnswersPayload] = None
    skipped: bool = False


# ==================== API Endpoints ====================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Teacher Course Advisor API",
        "version": "1.0.0",
        "advisor_available": _advisor_instance is not None,
        "advisor_error": _advisor_error,
        "supabase_connected": get_supabase_client() is not None
    }


@app.get("/api/subjects")
async def suggest_subjects(q: str = Query("", description="Text typed into the subject field")):
    """Autocomplete suggestions for the subject-area field."""
    return {"query": q, "suggestions": rank_subjects(q)}


@app.get("/api/profile/options")
async def get_profile_options():
    return profile_options()


@app.post("/api/profile/validate", response_model=ValidationResult)
async def validate_profile(profile: ProfilePayload):
    errors = profile.to_profile().validate()
    return ValidationResult(valid=not errors, errors=errors)


@app.get("/api/courses/facets")
async def get_course_facets():
    return get_course_catalog().facets()


@app.get("/api/courses")
async def get_courses(
    domain: str = ALL,
    sub_domain: str = ALL,
    language: str = ALL,
    search: str = ""
):
    """Course categories matching the filters (for the previous-courses picker)."""
    catalog = get_course_catalog()
    results = catalog.filter(domain=domain, sub_domain=sub_domain, language=language, search=search)
    return {
        "categories": {
            category: [course.__dict__ for course in courses]
            for category, courses in results.items()
        },
        "total_courses": catalog.total_courses
    }


@app.post("/api/chat/sessions", response_model=OpenSessionResponse)
async def open_chat_session(request: OpenSessionRequest):
    """Start a chat session and return the welcome message."""
    advisor = get_advisor_instance()
    session_id = f"session_{uuid.uuid4().hex}"
    state = advisor.get_or_create_session(session_id)
    logger.info("Chat session opened", data={"session_id": session_id})
    return OpenSessionResponse(
        session_id=session_id,
        content=advisor.welcome_message(request.name),
        conversation_state=state.conversation_state.value
    )


@app.post("/api/chat", response_model=ChatReply)
async def chat(message: ChatMessage):
    """
    Process one teacher message.

    Collaborator failures are reported in-band (``is_error: true``) and do not
    change the session's conversation state.
    """
    start_time = time.time()
    if not message.content.strip():
        raise HTTPException(status_code=400, detail="Message content is required")

    advisor = get_advisor_instance()
    state = advisor.get_session(message.session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Chat session not found")

    profile = message.profile.to_profile()
    profile_errors = profile.validate()
    if profile_errors:
        logger.warning("Rejected chat turn with invalid profile", data={"errors": profile_errors})
        raise HTTPException(status_code=400, detail=profile_errors)

    state_before = state.conversation_state.value
    logger.request("POST", "/api/chat", session_id=message.session_id, data={
        "message_length": len(message.content),
        "conversation_state": state_before
    })

    try:
        reply = await advisor.respond(message.content, profile, state)
    except Exception as e:
        logger.error("Error in chat", error=e, data={"session_id": message.session_id})
        raise HTTPException(status_code=500, detail=f"Error processing message: {str(e)}")

    logger.chat_turn(
        message.session_id,
        reply.branch.value if reply.branch else None,
        state_before,
        state.conversation_state.value,
        reply.is_error
    )
    logger.response(200, "/api/chat", duration=time.time() - start_time, data={"is_error": reply.is_error})

    return ChatReply(
        text=reply.text,
        is_error=reply.is_error,
        session_id=message.session_id,
        conversation_state=state.conversation_state.value,
        intent=reply.intent.value if reply.intent else None,
        branch=reply.branch.value if reply.branch else None
    )


@app.get("/api/chat/sessions/{session_id}/state", response_model=StateSummary)
async def get_chat_state(session_id: str):
    """Get current conversation state of a chat session."""
    state = get_advisor_instance().get_session(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Chat session not found")
    return StateSummary(**state.to_summary())


@app.delete("/api/chat/sessions/{session_id}")
async def end_chat_session(session_id: str):
    """End a chat session, discarding its conversation state."""
    if not get_advisor_instance().end_session(session_id):
        raise HTTPException(status_code=404, detail="Chat session not found")
    return {"status": "deleted", "session_id": session_id}


@app.post("/api/survey")
async def submit_survey(submission: SurveySubmission):
    """
    Store the finished session with the survey answers (or a skipped survey).

    When ``session_id`` refers to a live chat session and no history is
    supplied, the session's own history is stored. The session is ended only
    once the record is stored, so a failed save can be retried.
    """
    answers = None
    if not submission.skipped:
        if submission.answers is None:
            raise HTTPException(status_code=400, detail="Survey answers are required unless skipped")
        answers = submission.answers.to_answers()
        if not answers.is_complete():
            raise HTTPException(status_code=400, detail={
                "message": "נא למלא את כל השאלות לפני המשך",
                "unanswered": answers.unanswered(),
                "errors": answers.validation_errors()
            })

    history = submission.conversation_history
    live_state = None
    if submission.session_id and _advisor_instance is not None:
        live_state = _advisor_instance.get_session(submission.session_id)
        if live_state is not None:
            history = history or list(live_state.conversation_history)

    record = build_session_record(
        user_name=submission.user_name,
        teacher_info=submission.teacher_info,
        conversation_history=history,
        answers=answers,
        course_ratings=submission.course_ratings,
        session_time=submission.session_time
    )
    result = await save_session(record)

    if live_state is not None and isinstance(result, dict) and result.get("success"):
        _advisor_instance.end_session(submission.session_id)
    return result


@app.post("/api/save-session")
async def save_session(session_data: Dict[str, Any]):
    """Store a raw session record."""
    try:
        saved = get_session_store().save_session(session_data)
        logger.success("Session saved", data={"filename": saved.filename, "location": saved.location})
        return {
            "success": True,
            "message": "Session saved successfully",
            "filename": saved.filename
        }
    except Exception as e:
        logger.error("Error saving session", error=e)
        return JSONResponse(status_code=500, content={
            "success": False,
            "message": "Failed to save session",
            "error": str(e)
        })


@app.get("/api/sessions")
async def get_sessions():
    """List stored session records, newest first."""
    try:
        return {"success": True, "sessions": get_session_store().list_sessions()}
    except Exception as e:
        logger.error("Error reading sessions", error=e)
        return JSONResponse(status_code=500, content={
            "success": False,
            "message": "Failed to read sessions",
            "error": str(e)
        })


@app.get("/api/sessions/{filename}")
async def get_stored_session(filename: str):
    """Fetch one stored session record by filename."""
    record = get_session_store().load_session(filename)
    if record is None:
        raise HTTPException(status_code=404, detail="Session record not found")
    return {"success": True, "filename": filename, "session": record}


@app.on_event("startup")
async def startup_event():
    """Initialize the advisor eagerly so configuration problems show up at boot."""
    try:
        get_advisor_instance()
        logger.success("Course advisor initialized")
    except HTTPException:
        logger.warning("Course advisor disabled; chat endpoints will return 503")
    logger.info("Session records directory", data={"path": str(get_session_store().sessions_dir)})


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    try:
        uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
    except KeyboardInterrupt:
        logger.info("🛑 Server stopped.")
        sys.exit(0)
