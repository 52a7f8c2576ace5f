"""
Claire, the career coach chat.

The transcript lives in memory for the current session only.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from jobflow.models import ChatMessage, ChatRole, Job
from jobflow.services.errors import AIServiceError
from jobflow.services.stats_service import compute_stats, conversion_rate
from jobflow.utils.logger import get_logger

logger = get_logger(__name__)

WELCOME_ID = "welcome"
CHAT_ERROR = "I'm having a little trouble connecting right now. Can you try again?"
EMPTY_REPLY = "I'm thinking..."


def build_coach_instruction(jobs: Sequence[Job], user_name: str) -> str:
    """System instruction summarising the user's current job search."""
    stats = compute_stats(jobs)
    rate = conversion_rate(jobs)
    name = user_name.strip() or "the user"

    return f"""You are Claire, a friendly, empathetic, and highly intelligent career coach.
You are helping a user named {name} with their job search.

Current Job Search Context:
- Total Applications: {stats['total']}
- Interviews Secured: {stats['interviewing']}
- Offers Received: {stats['offers']}
- Interview Conversion Rate: {rate:.1f}%

Guidelines:
1. If the conversion rate is low (<10%), gently suggest reviewing their resume or cover letter for impact.
2. If they have upcoming interviews, offer to roleplay common questions.
3. Be encouraging but practical. Use emojis sparingly to be friendly.
4. Keep responses concise and conversational.
"""


def _context_key(jobs: Sequence[Job], user_name: str) -> Tuple[int, int, int, str]:
    stats = compute_stats(jobs)
    return stats["total"], stats["interviewing"], stats["offers"], user_name


class CoachChat:
    """One chat session with Claire."""

    def __init__(self, ai_service, jobs: Sequence[Job], user_name: str):
        """
        Start a session.

        Args:
            ai_service: ``AIService`` used for chat turns
            jobs: Current job applications, summarised into the system instruction
            user_name: Profile name used in the greeting and instruction
        """
        self.ai_service = ai_service
        self.user_name = user_name
        first_name = user_name.split()[0] if user_name.split() else "there"
        self.messages: List[ChatMessage] = [
            ChatMessage(
                id=WELCOME_ID,
                role=ChatRole.MODEL,
                text=(f"Hi {first_name}! I'm Claire, your personal career companion. "
                      f"I've analyzed your {len(jobs)} applications. How can I help you today?"),
            )
        ]
        self.system_instruction = ""
        self._history: List[Dict[str, str]] = []
        self._context: Optional[Tuple[int, int, int, str]] = None
        self.refresh_context(jobs, user_name)

    def refresh_context(self, jobs: Sequence[Job], user_name: Optional[str] = None) -> bool:
        """
        Rebuild the system instruction if the job statistics or the profile
        name changed.

        A rebuilt session starts a fresh provider conversation; the visible
        transcript is kept.

        Args:
            jobs: Current job applications
            user_name: Current profile name; defaults to the one already in use

        Returns:
            True if the context was rebuilt
        """
        if user_name is not None:
            self.user_name = user_name
        context = _context_key(jobs, self.user_name)
        if context == self._context:
            return False
        if self._context is not None:
            logger.info("🔄 Job statistics or profile changed, restarting coach session context")
        self._context = context
        self.system_instruction = build_coach_instruction(jobs, self.user_name)
        self._history = []
        return True

    def send(self, text: str) -> Optional[ChatMessage]:
        """
        Send a user message and append the reply to the transcript.

        Args:
            text: Message text; blank messages are ignored

        Returns:
            The reply message (an apology on failure), or None if ignored
        """
        if not text or not text.strip():
            return None

        self.messages.append(ChatMessage(role=ChatRole.USER, text=text))
        turns = self._history + [{"role": ChatRole.USER.value, "content": text}]

        try:
            reply_text = self.ai_service.chat_completion(turns, self.system_instruction)
        except AIServiceError as e:
            logger.error(f"Chat error: {e}")
            reply = ChatMessage(role=ChatRole.MODEL, text=CHAT_ERROR)
        else:
            reply = ChatMessage(role=ChatRole.MODEL, text=reply_text or EMPTY_REPLY)
            self._history = turns + [{"role": ChatRole.MODEL.value, "content": reply.text}]

        self.messages.append(reply)
        return reply
