"""
Course Advisor - LLM-backed course recommendations for teachers

Per chat turn:
- Rule-based intent classification (no LLM call)
- Ranked course candidates from the prediction service (recommendation/question turns only)
- Single LLM call with the teacher profile and candidates in the prompt
- State transition committed only after the turn succeeds
"""

import os
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, List

from openai import AsyncOpenAI
from dotenv import load_dotenv

from teacher_course_advisor.conversation_state import ChatSessionState, ConversationState
from teacher_course_advisor.errors import ConfigurationError, CollaboratorError, classify_collaborator_error
from teacher_course_advisor.intent_classifier import classify, Intent, ResponseBranch
from teacher_course_advisor.prediction_client import PredictionClient, CourseCandidate, format_candidates_summary
from teacher_course_advisor.teacher_profile import TeacherProfile

load_dotenv()

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "your-api-key-here"

CONFIRMATION_ACK_MESSAGE = (
    "מעולה! כדי שאוכל להתאים לך קורסים באמת רלוונטיים — תספר לי קצת מה אתה מחפש. "
    "מה היית רוצה לשפר או ללמוד בקורס?"
)
GENERAL_MESSAGE = (
    "כדי שאוכל להמליץ לך בצורה מדויקת — ספר לי קצת מה אתה מחפש, "
    "מה מעניין אותך או במה היית רוצה להתפתח כמורה"
)
DEFAULT_USER_NAME = "משתמש"
DEFAULT_SESSION_TTL_SECONDS = 6 * 60 * 60
CONNECTION_CHECK_PROMPT = 'Hello, respond with "API working" in Hebrew'


@dataclass
class AdvisorReply:
    """Result of a single chat turn."""
    text: str
    is_error: bool = False
    intent: Optional[Intent] = None
    branch: Optional[ResponseBranch] = None
    conversation_state: Optional[ConversationState] = None


def strip_markdown_emphasis(text: str) -> str:
    """Remove ** and * emphasis markers that the chat UI does not render."""
    return text.replace("**", "").replace("*", "")


class CourseAdvisor:
    """
    Recommendation assistant for a teacher chat session.

    Holds the LLM and ranking collaborators plus an in-memory registry of
    chat sessions. Each session's state is passed explicitly to ``respond``.
    """

    def __init__(
        self,
        llm_client: Optional[AsyncOpenAI] = None,
        prediction_client: Optional[PredictionClient] = None,
        model: Optional[str] = None,
        session_ttl_seconds: Optional[float] = None
    ):
        if llm_client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key or api_key == PLACEHOLDER_API_KEY:
                raise ConfigurationError("OPENAI_API_KEY is not configured in environment variables")
            llm_client = AsyncOpenAI(api_key=api_key)
        self.llm_client = llm_client
        self.model = model or os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.prediction_client = prediction_client or PredictionClient()
        if session_ttl_seconds is None:
            session_ttl_seconds = float(os.getenv("CHAT_SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS))
        self.session_ttl = timedelta(seconds=session_ttl_seconds)

        # Chat sessions by id (discarded when the session ends or sits idle past session_ttl)
        self.sessions: Dict[str, ChatSessionState] = {}
        logger.info(f"✅ [CourseAdvisor] Initialized (model: {self.model})")

    # ==================== Session registry ====================

    def get_or_create_session(self, session_id: str) -> ChatSessionState:
        """Get existing chat session state or create a new one in the general state."""
        state = self.sessions.get(session_id)
        if state is None:
            self.prune_idle_sessions()
            state = ChatSessionState(session_id=session_id)
            self.sessions[session_id] = state
            logger.info(f"🆕 [CourseAdvisor] New chat session: {session_id}")
        return state

    def get_session(self, session_id: str) -> Optional[ChatSessionState]:
        return self.sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Discard a chat session's state. Returns False if it did not exist."""
        return self.sessions.pop(session_id, None) is not None

    def prune_idle_sessions(self, now: Optional[datetime] = None) -> int:
        """Drop sessions whose last update is older than ``session_ttl``. Returns how many were dropped."""
        cutoff = (now or datetime.now()) - self.session_ttl
        idle = [sid for sid, state in self.sessions.items() if state.last_updated < cutoff]
        for sid in idle:
            del self.sessions[sid]
        if idle:
            logger.info(f"🧹 [CourseAdvisor] Pruned {len(idle)} idle chat session(s)")
        return len(idle)

    def welcome_message(self, name: Optional[str] = None) -> str:
        return f"שלום {name or DEFAULT_USER_NAME}! אני העוזר שלך להמלצות קורסים. איך אני יכול לעזור לך היום?"

    # ==================== Prompts ====================

    def _profile_block(self, profile: TeacherProfile) -> str:
        return (
            f"- שם: {profile.name}\n"
            f"- מקצוע הוראה: {profile.subject_area}\n"
            f"- מגזר: {profile.school_type}\n"
            f"- שלב חינוך: {profile.education_levels_text()}.\n"
            f"- שפת בית הספר: {profile.language}\n"
            f"- קורסים שהמורה השתתף בהם בעבר: {profile.previous_courses_text()}"
        )

    def build_recommendation_prompt(
        self,
        user_input: str,
        profile: TeacherProfile,
        candidates: List[CourseCandidate]
    ) -> str:
        """Prompt for personalized recommendations from the ranked candidates."""
        return f"""אתה עוזר חכם להמלצות קורסים למורים. עליך לכתוב את התשובה בעברית בלבד, בשפה טבעית, מקצועית וברורה.

פרופיל המורה:
{self._profile_block(profile)}
- שאלה: {user_input}

להלן הקורסים המתאימים ביותר לפי מודל החיזוי:
{format_candidates_summary(candidates)}

הנחיות:
1. תן המלצות מותאמות אישית למורה.
2. הסבר בשני משפטים למה כל קורס מתאים לפי תקציר הקורס והמידע על המורה.
3. כתיבה בעברית מקצועית וברורה.
4. הימנע מלהציע קורסים שהשם שלהם מופיע ב {profile.previous_courses_text()}
"""

    def build_question_prompt(
        self,
        user_input: str,
        profile: TeacherProfile,
        candidates: List[CourseCandidate]
    ) -> str:
        """Prompt for a direct, profile-grounded answer to a question."""
        return f"""המשתמש שאל שאלה:
"{user_input}"

בהנתן פרופיל המורה:
{self._profile_block(profile)}

ולהלן קורסים אפשריים הקשורים לשאלה:
{format_candidates_summary(candidates)}

ענה על השאלה בעברית מקצועית וברורה.
התשובה צריכה להיות ישירה, ללא הרחבות מיותרות וללא תיאורים כלליים.
התשובה צריכה להתבסס על פרופיל המורה ועל המידע לגבי הקורסים.
"""

    # ==================== Collaborators ====================

    async def _generate(self, prompt: str) -> str:
        response = await self.llm_client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.7
        )
        return response.choices[0].message.content or ""

    async def test_connection(self) -> str:
        """Send a fixed check prompt and return the model's answer."""
        try:
            return await self._generate(CONNECTION_CHECK_PROMPT)
        except Exception as e:
            logger.error(f"❌ [CourseAdvisor] API test failed: {e}")
            raise classify_collaborator_error(e)

    # ==================== Chat turn ====================

    async def respond(
        self,
        user_input: str,
        profile: TeacherProfile,
        state: ChatSessionState
    ) -> AdvisorReply:
        """
        Produce the assistant reply for one teacher message.

        Only the recommendation and question branches call the collaborators.
        If either call fails, the session state is left exactly as it was and
        a localized error message is returned instead of assistant text.

        Args:
            user_input: Teacher's message
            profile: Teacher profile used to ground the answer
            state: This chat session's state

        Returns:
            AdvisorReply with the text to display
        """
        classification = classify(user_input, state.conversation_state, state.last_assistant_message)
        logger.info(
            f"🧠 [CourseAdvisor] Intent: {classification.intent.value}, "
            f"state: {state.conversation_state.value} -> {classification.next_state.value} "
            f"(branch: {classification.branch.value})"
        )

        branch = classification.branch
        try:
            if branch in (ResponseBranch.RECOMMENDATION, ResponseBranch.QUESTION):
                candidates = await self.prediction_client.predict(profile)
                if branch == ResponseBranch.RECOMMENDATION:
                    prompt = self.build_recommendation_prompt(user_input, profile, candidates)
                else:
                    prompt = self.build_question_prompt(user_input, profile, candidates)
                logger.info(f"📤 [CourseAdvisor] Sending {branch.value} prompt to LLM ({len(candidates)} candidates)")
                assistant_text = await self._generate(prompt)
                display_text = strip_markdown_emphasis(assistant_text)
            elif branch == ResponseBranch.CONFIRMATION_ACKNOWLEDGED:
                assistant_text = display_text = CONFIRMATION_ACK_MESSAGE
            else:
                assistant_text = display_text = GENERAL_MESSAGE
        except Exception as e:
            error = classify_collaborator_error(e)
            logger.error(
                f"❌ [CourseAdvisor] Turn failed ({error.kind.value}): {e}",
                exc_info=not isinstance(e, CollaboratorError)
            )
            return AdvisorReply(
                text=error.user_message,
                is_error=True,
                intent=classification.intent,
                branch=branch,
                conversation_state=state.conversation_state
            )

        state.commit_turn(
            classification.next_state,
            assistant_text,
            user_message=user_input,
            display_message=display_text
        )
        return AdvisorReply(
            text=display_text,
            is_error=False,
            intent=classification.intent,
            branch=branch,
            conversation_state=state.conversation_state
        )
