"""Service layer modules."""

from .errors import AIServiceError
from .storage_service import JsonStorage
from .job_service import JobStore
from .resume_service import ResumeStore
from .chat_service import CoachChat
from .ai_service import AIService
from .avatar_service import AvatarStudio, STYLE_PRESETS

__all__ = [
    "AIServiceError",
    "JsonStorage",
    "JobStore",
    "ResumeStore",
    "CoachChat",
    "AIService",
    "AvatarStudio",
    "STYLE_PRESETS",
]
