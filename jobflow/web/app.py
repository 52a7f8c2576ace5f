"""
Flask application factory.
"""

from collections import OrderedDict
from typing import Optional

from flask import Flask

from jobflow.config import Settings, get_settings
from jobflow.models import new_id
from jobflow.services import AIService, AvatarStudio, CoachChat, JobStore, JsonStorage, ResumeStore
from jobflow.utils.logger import get_logger

logger = get_logger(__name__)


class SessionState:
    """In-memory state of one browser session. Never persisted."""

    def __init__(self):
        self.chat: Optional[CoachChat] = None
        self.studio = AvatarStudio()


class AppServices:
    """Everything the views need, created once per app."""

    def __init__(self, settings: Settings, storage: JsonStorage, ai_service: AIService):
        self.settings = settings
        self.storage = storage
        self.job_store = JobStore(storage)
        self.resume_store = ResumeStore(storage)
        self.ai_service = ai_service
        self.max_sessions = settings.max_sessions
        self.sessions: "OrderedDict[str, SessionState]" = OrderedDict()

    def session_state(self, session_id: Optional[str]) -> SessionState:
        """State for a browser session; the least recently used one is dropped past ``max_sessions``."""
        if not session_id:
            session_id = new_id()
        if session_id in self.sessions:
            self.sessions.move_to_end(session_id)
            return self.sessions[session_id]

        state = self.sessions[session_id] = SessionState()
        while len(self.sessions) > self.max_sessions:
            dropped, _ = self.sessions.popitem(last=False)
            logger.debug(f"Dropped idle session {dropped}")
        return state


def create_app(
    settings: Optional[Settings] = None,
    ai_service: Optional[AIService] = None,
    storage: Optional[JsonStorage] = None
) -> Flask:
    """
    Build the JobFlow web app.

    Args:
        settings: Application settings (defaults to ``get_settings()``)
        ai_service: AI service override, e.g. a fake in tests
        storage: Storage override

    Returns:
        Configured Flask app
    """
    settings = settings or get_settings()
    storage = storage or JsonStorage(settings.data_dir)
    ai_service = ai_service or AIService(settings)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["MAX_CONTENT_LENGTH"] = 20 * 1024 * 1024
    app.extensions["jobflow"] = AppServices(settings, storage, ai_service)

    from jobflow.web.routes import bp
    app.register_blueprint(bp)

    logger.info("🌐 JobFlow web app created")
    return app
