"""
Teacher Profile

Profile data collected by the onboarding form and consumed by the advisor:
subject area, school sector, teaching language, education levels and courses
the teacher already took.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any

from teacher_course_advisor.subject_matcher import SUBJECT_CATALOG, is_valid_subject


SCHOOL_TYPES = ("יהודי", "בדואי", "ערבי", "דרוזי", "צרקסי", "אחר")
EDUCATION_LEVELS = ("ממלכתי", "ממלכתי דתי", "חרדי", "על יסודי", "יסודי")
TEACHING_LANGUAGES = ("עברית", "ערבית")

ELEMENTARY_LEVEL = "יסודי"
SECONDARY_LEVEL = "על יסודי"

DEFAULT_LANGUAGE = "עברית"
NOT_SPECIFIED = "לא צויין"
NO_PREVIOUS_COURSES = "לא צוינו קורסים קודמים"


@dataclass
class PreviousCourse:
    """A course the teacher already participated in."""
    course_id: str
    course_name: str


@dataclass
class TeacherProfile:
    """Teacher profile used to ground recommendations."""
    name: str = ""
    subject_area: str = ""
    school_type: str = ""
    language: str = DEFAULT_LANGUAGE
    education_levels: List[str] = field(default_factory=list)
    previous_courses: List[PreviousCourse] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeacherProfile":
        """
        Build a profile from a request payload.

        Accepts snake_case and the camelCase keys used by stored session files.
        Previous courses may be given as objects or plain names.
        """
        def pick(*keys, default=None):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        previous = []
        for item in pick("previous_courses", "previousCourses", default=[]) or []:
            if isinstance(item, dict):
                previous.append(PreviousCourse(
                    course_id=str(item.get("course_id") or item.get("courseId") or ""),
                    course_name=str(item.get("course_name") or item.get("courseName") or "")
                ))
            else:
                previous.append(PreviousCourse(course_id="", course_name=str(item)))

        return cls(
            name=pick("name", "userName", default=""),
            subject_area=pick("subject_area", "subjectArea", default=""),
            school_type=pick("school_type", "schoolType", default=""),
            language=pick("language", default=DEFAULT_LANGUAGE) or DEFAULT_LANGUAGE,
            education_levels=list(pick("education_levels", "educationLevels", default=[]) or []),
            previous_courses=previous,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> List[str]:
        """
        Check the profile before it is accepted downstream.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []
        if not self.subject_area.strip() or not self.school_type or not self.language:
            errors.append("אנא מלאו את כל השדות הנדרשים")
        if self.subject_area.strip() and not is_valid_subject(self.subject_area, SUBJECT_CATALOG):
            errors.append("אנא בחרו מקצוע מהרשימה המוצעת")
        if self.school_type and self.school_type not in SCHOOL_TYPES:
            errors.append(f"מגזר לא מוכר: {self.school_type}")
        if self.language and self.language not in TEACHING_LANGUAGES:
            errors.append(f"שפת הוראה לא מוכרת: {self.language}")
        unknown_levels = [level for level in self.education_levels if level not in EDUCATION_LEVELS]
        if unknown_levels:
            errors.append(f"רמות חינוך לא מוכרות: {', '.join(unknown_levels)}")
        return errors

    def is_valid(self) -> bool:
        return not self.validate()

    @property
    def teaches_elementary(self) -> bool:
        return ELEMENTARY_LEVEL in self.education_levels

    @property
    def teaches_secondary(self) -> bool:
        return SECONDARY_LEVEL in self.education_levels

    def to_prediction_request(self) -> Dict[str, Any]:
        """Request body for the course ranking service."""
        return {
            "role": self.subject_area,
            "sector": self.school_type,
            "language": self.language,
            "teaches_elementary": 1 if self.teaches_elementary else 0,
            "teaches_secondary": 1 if self.teaches_secondary else 0,
        }

    def previous_courses_text(self) -> str:
        names = [c.course_name for c in self.previous_courses if c.course_name]
        return ", ".join(names) if names else NO_PREVIOUS_COURSES

    def education_levels_text(self) -> str:
        return ", ".join(self.education_levels) if self.education_levels else NOT_SPECIFIED


def profile_options() -> Dict[str, List[str]]:
    """Option lists rendered by the profile form."""
    return {
        "subjects": list(SUBJECT_CATALOG),
        "school_types": list(SCHOOL_TYPES),
        "education_levels": list(EDUCATION_LEVELS),
        "languages": list(TEACHING_LANGUAGES),
    }
