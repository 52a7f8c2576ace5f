"""Data models for the application."""

from .job import Job, JobStatus, JobOrigin, ACTIVE_STATUSES, OFFER_STATUSES, new_id
from .resume import Resume, Section, SectionKind, Project
from .user import UserProfile
from .chat import ChatMessage, ChatRole

__all__ = [
    "Job",
    "JobStatus",
    "JobOrigin",
    "ACTIVE_STATUSES",
    "OFFER_STATUSES",
    "new_id",
    "Resume",
    "Section",
    "SectionKind",
    "Project",
    "UserProfile",
    "ChatMessage",
    "ChatRole",
]
