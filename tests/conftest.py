"""
Shared fixtures: in-memory stand-ins for the LLM and the course ranking service.
"""

import os
import sys
from types import SimpleNamespace
from typing import List, Optional

import pytest

project_root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
sys.path.insert(0, os.path.join(project_root, "teacher_course_advisor", "src"))

from teacher_course_advisor.course_advisor import CourseAdvisor
from teacher_course_advisor.prediction_client import CourseCandidate
from teacher_course_advisor.teacher_profile import TeacherProfile, PreviousCourse


class FakeCompletions:
    """Mimics ``AsyncOpenAI().chat.completions``; replies are consumed in order."""

    def __init__(self, replies: Optional[List[str]] = None, default: str = "תשובה מהמודל"):
        self.replies = list(replies or [])
        self.default = default
        self.error: Optional[Exception] = None
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else self.default
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    @property
    def prompts(self) -> List[str]:
        return [call["messages"][0]["content"] for call in self.calls]


class FakeLLMClient:
    def __init__(self, replies: Optional[List[str]] = None):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)


class FakePredictionClient:
    def __init__(self, candidates: Optional[List[CourseCandidate]] = None):
        self.candidates = candidates if candidates is not None else [
            CourseCandidate(course_name="הוראה מתוקשבת", course_summary="כלים דיגיטליים בכיתה", score=0.91),
            CourseCandidate(course_name="הערכה חלופית", course_summary="דרכי הערכה מגוונות", score=0.78),
        ]
        self.error: Optional[Exception] = None
        self.calls = []

    async def predict(self, profile):
        self.calls.append(profile)
        if self.error is not None:
            raise self.error
        return list(self.candidates)


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def fake_predictor():
    return FakePredictionClient()


@pytest.fixture
def advisor(fake_llm, fake_predictor):
    return CourseAdvisor(llm_client=fake_llm, prediction_client=fake_predictor, model="test-model")


@pytest.fixture
def profile():
    return TeacherProfile(
        name="דנה",
        subject_area="מתמטיקה",
        school_type="יהודי",
        language="עברית",
        education_levels=["ממלכתי", "יסודי"],
        previous_courses=[PreviousCourse(course_id="algebra-1", course_name="אלגברה למורים")],
    )
