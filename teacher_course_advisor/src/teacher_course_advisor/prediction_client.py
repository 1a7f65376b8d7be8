"""
Course Ranking Client

Calls the hosted course-prediction model, which ranks catalog courses for a
teacher profile. Used to ground both recommendation answers and direct
answers to questions.
"""

import os
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Dict, Any

import requests
from dotenv import load_dotenv

from teacher_course_advisor.errors import PredictionServiceError
from teacher_course_advisor.teacher_profile import TeacherProfile

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PREDICTION_URL = "https://api-course-recommender.onrender.com"

# Response keys produced by the prediction service
COURSE_NAME_KEY = "שם הקורס"
COURSE_SUMMARY_KEY = "תקציר הקורס"
SCORE_KEY = "score"


@dataclass
class CourseCandidate:
    """A ranked course returned by the prediction model."""
    course_name: str
    course_summary: str
    score: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CourseCandidate":
        try:
            score = float(data.get(SCORE_KEY, 0.0))
        except (TypeError, ValueError) as e:
            raise PredictionServiceError(f"Invalid score in prediction response: {data.get(SCORE_KEY)!r}", cause=e)
        return cls(
            course_name=str(data.get(COURSE_NAME_KEY, "")),
            course_summary=str(data.get(COURSE_SUMMARY_KEY, "")),
            score=score,
        )


class PredictionClient:
    """HTTP client for the ``/predict`` endpoint of the ranking service."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or os.getenv("PREDICTION_API_URL", DEFAULT_PREDICTION_URL)).rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.getenv("PREDICTION_TIMEOUT_SECONDS", "30"))

    @property
    def predict_url(self) -> str:
        return f"{self.base_url}/predict"

    async def predict(self, profile: TeacherProfile) -> List[CourseCandidate]:
        """
        Rank courses for a teacher profile.

        Args:
            profile: Teacher profile (subject, sector, language, levels)

        Returns:
            Candidates in the order returned by the model

        Raises:
            requests.RequestException: Network failure or non-2xx status
            PredictionServiceError: Response body is not a list of courses
        """
        payload = profile.to_prediction_request()
        logger.info(f"🔮 [PredictionClient] Requesting ranking: {payload}")

        response = await asyncio.to_thread(
            requests.post,
            self.predict_url,
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise PredictionServiceError("Prediction service returned invalid JSON", cause=e)

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise PredictionServiceError(f"Unexpected prediction response: {str(data)[:200]}")

        candidates = [CourseCandidate.from_dict(item) for item in data]
        logger.info(f"🔮 [PredictionClient] Received {len(candidates)} candidates")
        return candidates


def format_candidates_summary(candidates: List[CourseCandidate]) -> str:
    """Numbered course block embedded in the LLM prompt."""
    blocks = []
    for i, course in enumerate(candidates, start=1):
        blocks.append(
            f"{i}. שם הקורס: {course.course_name}\n"
            f"   • תקציר הקורס: {course.course_summary}\n"
            f"   • ציון התאמה: {course.score * 100:.1f}%"
        )
    return "\n".join(blocks)
