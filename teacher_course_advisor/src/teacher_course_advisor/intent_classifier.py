"""
Intent Classification

Rule-based intent detection for chat messages and selection of the response
branch that the advisor should take.

Detection is a set of ordered keyword checks:
1. Recommendation keywords (substring) -> request_recommendation
2. Confirmation phrases (exact match) -> confirmation
3. Question keywords (substring, including "?") -> question
4. Anything else -> other
"""

from enum import Enum
from typing import NamedTuple, Optional

from teacher_course_advisor.conversation_state import ConversationState


RECOMMENDATION_KEYWORDS = ("עוד", "תמליץ", "המלצה", "קורס מתאים", "אני רוצה המלצה", "רוצה", "איזה קורס")
CONFIRMATION_PHRASES = ("אא", "כן", "בטח", "קדימה", "יאללה", "כן בבקשה")
QUESTION_KEYWORDS = ("האם", "?", "מה זה", "איך", "איפה", "מתי", "כמה", "מי", "תסבר", "מה", "למה")

# Marker phrases looked up in the previous assistant message
FREE_FORM_MARKER = "מה אתה מחפש"  # "what are you looking for"
RECOMMENDATION_OFFER_MARKER = "האם תרצה שאמליץ"  # "would you like me to recommend"


class Intent(Enum):
    """Purpose of a teacher's chat message."""
    REQUEST_RECOMMENDATION = "request_recommendation"
    CONFIRMATION = "confirmation"
    QUESTION = "question"
    OTHER = "other"


class ResponseBranch(Enum):
    """Response strategy chosen for a turn."""
    RECOMMENDATION = "recommendation"
    QUESTION = "question"
    CONFIRMATION_ACKNOWLEDGED = "confirmation_acknowledged"
    GENERAL = "general"


BRANCH_NEXT_STATE = {
    ResponseBranch.RECOMMENDATION: ConversationState.RECOMMENDATION,
    ResponseBranch.QUESTION: ConversationState.AWAITING_RECOMMENDATION_CONFIRMATION,
    ResponseBranch.CONFIRMATION_ACKNOWLEDGED: ConversationState.RECOMMENDATION,
    ResponseBranch.GENERAL: ConversationState.GENERAL,
}


class Classification(NamedTuple):
    intent: Intent
    next_state: ConversationState
    branch: ResponseBranch


def detect_intent(message: str) -> Intent:
    """Classify a message by keyword rules (case-insensitive, trimmed)."""
    msg = message.strip().lower()

    if any(word in msg for word in RECOMMENDATION_KEYWORDS):
        return Intent.REQUEST_RECOMMENDATION
    if msg in CONFIRMATION_PHRASES:
        return Intent.CONFIRMATION
    if any(word in msg for word in QUESTION_KEYWORDS):
        return Intent.QUESTION
    return Intent.OTHER


def select_branch(
    intent: Intent,
    state: ConversationState,
    last_assistant_message: Optional[str] = None
) -> ResponseBranch:
    """
    Choose the response branch for a classified message.

    The recommendation branch is checked before the confirmation-acknowledged
    branch, so a bare "yes" while awaiting confirmation goes straight to a
    recommendation.
    """
    last = last_assistant_message or ""

    if (
        intent == Intent.REQUEST_RECOMMENDATION
        or FREE_FORM_MARKER in last
        or (intent == Intent.CONFIRMATION
            and state == ConversationState.AWAITING_RECOMMENDATION_CONFIRMATION)
    ):
        return ResponseBranch.RECOMMENDATION

    if intent == Intent.QUESTION:
        return ResponseBranch.QUESTION

    if intent == Intent.CONFIRMATION and RECOMMENDATION_OFFER_MARKER in last:
        return ResponseBranch.CONFIRMATION_ACKNOWLEDGED

    return ResponseBranch.GENERAL


def classify(
    message: str,
    state: ConversationState,
    last_assistant_message: Optional[str] = None
) -> Classification:
    """
    Classify a message and compute the state the session moves to.

    Pure function: the caller commits ``next_state`` only after the turn
    succeeds.

    Args:
        message: The teacher's chat message
        state: Current conversation state of the session
        last_assistant_message: Previous assistant text, if any

    Returns:
        Classification(intent, next_state, branch)
    """
    intent = detect_intent(message)
    branch = select_branch(intent, state, last_assistant_message)
    return Classification(intent=intent, next_state=BRANCH_NEXT_STATE[branch], branch=branch)
