"""
Chat Session State

Defines the per-session conversation state used to disambiguate short replies
("yes", "sure") between recommendation turns.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class ConversationState(Enum):
    """What kind of assistant reply is pending next."""
    GENERAL = "general"
    AWAITING_RECOMMENDATION_CONFIRMATION = "awaitingRecommendationConfirmation"
    RECOMMENDATION = "recommendation"


@dataclass
class ChatSessionState:
    """State owned by a single chat session."""
    session_id: str
    conversation_state: ConversationState = ConversationState.GENERAL
    last_assistant_message: Optional[str] = None
    conversation_history: List[Dict[str, str]] = field(default_factory=list)
    interaction_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    last_updated: datetime = field(default_factory=datetime.now)

    def commit_turn(
        self,
        next_state: ConversationState,
        assistant_message: str,
        user_message: Optional[str] = None,
        display_message: Optional[str] = None
    ):
        """
        Apply the outcome of a successful turn.

        Args:
            next_state: State chosen by the classifier for this turn
            assistant_message: Raw assistant text, checked for marker phrases next turn
            user_message: The teacher's message, appended to history if given
            display_message: Text actually shown to the teacher (defaults to assistant_message)
        """
        self.conversation_state = next_state
        self.last_assistant_message = assistant_message
        if user_message is not None:
            self.conversation_history.append({"role": "user", "content": user_message})
        self.conversation_history.append({
            "role": "assistant",
            "content": display_message if display_message is not None else assistant_message
        })
        self.interaction_count += 1
        self.last_updated = datetime.now()

    def to_summary(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "conversation_state": self.conversation_state.value,
            "last_assistant_message": self.last_assistant_message,
            "interaction_count": self.interaction_count,
            "history_length": len(self.conversation_history),
            "created_at": self.created_at.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        }
