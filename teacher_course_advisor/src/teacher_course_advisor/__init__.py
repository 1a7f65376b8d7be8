"""Course recommendation assistant for teachers."""
from teacher_course_advisor.subject_matcher import rank_subjects, SUBJECT_CATALOG
from teacher_course_advisor.intent_classifier import classify, Intent, ResponseBranch
from teacher_course_advisor.conversation_state import ChatSessionState, ConversationState

__all__ = [
    "rank_subjects",
    "SUBJECT_CATALOG",
    "classify",
    "Intent",
    "ResponseBranch",
    "ChatSessionState",
    "ConversationState",
]
