"""Job application related data models."""

import uuid
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from enum import Enum

from pydantic import BaseModel, Field


def new_id() -> str:
    """Generate a record identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Where an application stands."""
    APPLIED = "Applied"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    REJECTED = "Rejected"
    ACCEPTED = "Accepted"


class JobOrigin(str, Enum):
    """How a job entered the tracker."""
    APPLICATION = "application"
    OFFER = "offer"


# Statuses listed on the offers & interview panel
ACTIVE_STATUSES = (JobStatus.OFFER, JobStatus.INTERVIEW, JobStatus.ACCEPTED)

# Statuses counted as offers on the dashboard and in the coach context
OFFER_STATUSES = (JobStatus.OFFER, JobStatus.ACCEPTED)


class Job(BaseModel):
    """Represents one tracked job application."""
    id: str = Field(default_factory=new_id)
    company: str
    role: str
    status: JobStatus = JobStatus.APPLIED
    salary: str = ""
    location: str = ""
    date_applied: datetime = Field(default_factory=utc_now, alias="dateApplied")
    description: str = ""
    cover_letter: str = Field(default="", alias="coverLetter")
    interview_guide: Optional[str] = Field(default=None, alias="interviewGuide")
    origin: JobOrigin = JobOrigin.APPLICATION

    class Config:
        populate_by_name = True

    @property
    def is_active(self) -> bool:
        """True for jobs shown on the offers & interview panel."""
        return self.status in ACTIVE_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored (camelCase) representation."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
