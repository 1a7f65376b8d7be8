"""
Satisfaction Survey

Survey answers collected when a chat session ends, and composition of the
session record (profile + conversation + survey) that gets persisted.
"""

from dataclasses import dataclass, asdict, fields
from datetime import datetime
from typing import Optional, List, Dict, Any

RATING_FIELDS = (
    "overall_experience",
    "response_quality",
    "helpfulness",
    "accuracy",
    "clarity",
    "ease_of_use",
    "response_speed",
    "design",
    "personalization",
    "future_use",
)
MIN_RATING = 1
MAX_RATING = 5
DEFAULT_SESSION_TIME = "00:00:00"


@dataclass
class SurveyAnswers:
    """Star ratings (1-5, 0 = unanswered) plus the would-recommend answer."""
    overall_experience: int = 0
    response_quality: int = 0
    helpfulness: int = 0
    accuracy: int = 0
    clarity: int = 0
    ease_of_use: int = 0
    response_speed: int = 0
    design: int = 0
    personalization: int = 0
    future_use: int = 0
    would_recommend: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SurveyAnswers":
        """
        Build answers from a loosely typed payload.

        Ratings given as numeric strings are converted to int.

        Raises:
            ValueError: A rating is not an integer
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name in RATING_FIELDS:
            if name in values:
                raw = values[name]
                if raw is None or raw == "":
                    values[name] = 0
                elif isinstance(raw, bool) or not isinstance(raw, (int, str)):
                    raise ValueError(f"{name} must be an integer rating (got {raw!r})")
                else:
                    try:
                        values[name] = int(raw)
                    except ValueError:
                        raise ValueError(f"{name} must be an integer rating (got {raw!r})")
        if "would_recommend" in values:
            values["would_recommend"] = str(values["would_recommend"] or "")
        return cls(**values)

    def validation_errors(self) -> List[str]:
        errors = []
        for name in RATING_FIELDS:
            value = getattr(self, name)
            if value and not MIN_RATING <= value <= MAX_RATING:
                errors.append(f"{name} must be between {MIN_RATING} and {MAX_RATING} (got {value})")
        return errors

    def unanswered(self) -> List[str]:
        missing = [name for name in RATING_FIELDS if getattr(self, name) <= 0]
        if not self.would_recommend:
            missing.append("would_recommend")
        return missing

    def is_complete(self) -> bool:
        return not self.unanswered() and not self.validation_errors()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def format_duration(seconds: int) -> str:
    """Elapsed chat time as HH:MM:SS."""
    hours, remainder = divmod(max(int(seconds), 0), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def build_session_record(
    user_name: Optional[str],
    teacher_info: Dict[str, Any],
    conversation_history: List[Dict[str, Any]],
    answers: Optional[SurveyAnswers] = None,
    course_ratings: Optional[List[Any]] = None,
    session_time: Optional[str] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Assemble the JSON document stored for a finished session.

    Keys are camelCase to stay compatible with previously stored session
    files. ``answers=None`` records a skipped survey.
    """
    now = now or datetime.now()
    session_date = now.strftime("%d.%m.%Y")
    session_date_time = now.strftime("%d.%m.%Y, %H:%M:%S")

    return {
        "sessionDate": session_date,
        "sessionTime": session_time or DEFAULT_SESSION_TIME,
        "sessionDateTime": session_date_time,
        "userInfo": {
            "userName": user_name,
            "teacherInfo": teacher_info,
            "courseRatings": course_ratings or [],
        },
        "conversationHistory": conversation_history,
        "survey": {
            "answers": answers.to_dict(),
            "completedAt": session_date_time,
        } if answers is not None else {
            "skipped": True,
            "skippedAt": session_date_time,
        },
    }
