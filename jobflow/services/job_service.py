"""
Job applications and user profile state, mirrored to local storage.
"""

from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from jobflow.models import Job, JobStatus, JobOrigin, UserProfile, ACTIVE_STATUSES
from jobflow.models.job import utc_now
from jobflow.services.storage_service import JsonStorage, JOBS_KEY, PROFILE_KEY
from jobflow.utils.logger import get_logger

logger = get_logger(__name__)

ALL_STATUSES = "All"


def default_jobs() -> List[Job]:
    """Sample applications shown on first start."""
    now = utc_now()
    return [
        Job(
            id="1",
            company="TechNova",
            role="Senior Frontend Engineer",
            status=JobStatus.INTERVIEW,
            salary="$140k - $160k",
            location="Remote",
            date_applied=now - timedelta(days=2),
            description="We are looking for a React expert with Tailwind experience.",
            origin=JobOrigin.APPLICATION,
        ),
        Job(
            id="2",
            company="GreenStream",
            role="Full Stack Developer",
            status=JobStatus.APPLIED,
            salary="$120k",
            location="Austin, TX",
            date_applied=now - timedelta(days=5),
            description="Build sustainable energy solutions.",
            origin=JobOrigin.APPLICATION,
        ),
        Job(
            id="3",
            company="Orbit AI",
            role="AI Interface Designer",
            status=JobStatus.OFFER,
            salary="$155k",
            location="San Francisco, CA",
            date_applied=now - timedelta(days=10),
            description="Design the future of AI interaction.",
            origin=JobOrigin.OFFER,
        ),
    ]


def default_profile() -> UserProfile:
    return UserProfile(
        full_name="Alex Developer",
        skills="React, TypeScript, Tailwind CSS, Node.js, UI/UX Design",
    )


def is_status_filter(value: str) -> bool:
    """True for "All", a blank value or a JobStatus value."""
    return not value or value == ALL_STATUSES or value in {status.value for status in JobStatus}


def create_job_from_form(form: Mapping[str, Any]) -> Job:
    """
    Build a new job from submitted form fields.

    Args:
        form: Submitted fields (company, role, status, salary, location,
            description, coverLetter / cover_letter)

    Returns:
        New Job with a fresh id, applied now, origin ``application``

    Raises:
        ValueError: If company or role is blank
        ValidationError: If a field holds an invalid value (e.g. status)
    """
    fields = job_fields_from_form(form)
    if not fields.get("company") or not fields.get("role"):
        raise ValueError("Company and role are required")
    fields["origin"] = JobOrigin.APPLICATION
    return Job(**fields)


def job_fields_from_form(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the editable job fields out of a submitted form."""
    fields: Dict[str, Any] = {}
    for name in ("company", "role", "status", "salary", "location"):
        if name in form:
            fields[name] = (form.get(name) or "").strip()
    if "description" in form:
        fields["description"] = form.get("description") or ""
    for name in ("coverLetter", "cover_letter"):
        if name in form:
            fields["cover_letter"] = form.get(name) or ""
    return fields


def _field_names(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Map stored aliases (``coverLetter``) to field names (``cover_letter``)."""
    aliases = {info.alias: name for name, info in Job.model_fields.items() if info.alias}
    return {aliases.get(key, key): value for key, value in changes.items()}


class JobStore:
    """Holds the job collection and the user profile."""

    def __init__(self, storage: JsonStorage):
        """
        Initialize the store, reading saved state once.

        Args:
            storage: Local key-value storage
        """
        self.storage = storage
        self.jobs: List[Job] = self._load_jobs()
        self.user_profile: UserProfile = self._load_profile()
        logger.info(f"📋 Loaded {len(self.jobs)} job applications for {self.user_profile.full_name}")

    def _load_jobs(self) -> List[Job]:
        saved = self.storage.get(JOBS_KEY)
        if saved is None:
            return default_jobs()
        if not isinstance(saved, list):
            logger.warning(f"⚠️ Saved jobs are not a list ({type(saved).__name__}), using sample data")
            return default_jobs()

        jobs = []
        for record in saved:
            try:
                jobs.append(Job.model_validate(record))
            except ValidationError as e:
                label = record.get('id', '?') if isinstance(record, dict) else record
                logger.warning(f"⚠️ Skipping invalid job record {label}: {e}")
        return jobs

    def _load_profile(self) -> UserProfile:
        saved = self.storage.get(PROFILE_KEY)
        if saved is None:
            return default_profile()
        try:
            return UserProfile.model_validate(saved)
        except ValidationError as e:
            logger.warning(f"⚠️ Invalid saved profile, using default: {e}")
            return default_profile()

    def _save_jobs(self) -> None:
        self.storage.set(JOBS_KEY, [job.to_dict() for job in self.jobs])

    def _save_profile(self) -> None:
        self.storage.set(PROFILE_KEY, self.user_profile.to_dict())

    def add_job(self, job: Job) -> Job:
        """Add a job at the top of the list."""
        self.jobs = [job] + self.jobs
        self._save_jobs()
        logger.info(f"➕ Added application: {job.role} at {job.company}")
        return job

    def update_job(self, job_id: str, changes: Mapping[str, Any]) -> Optional[Job]:
        """
        Merge field changes into one job.

        Args:
            job_id: Job to update
            changes: Partial field mapping (field names or stored aliases)

        Returns:
            The updated job, or None if no job has that id

        Raises:
            ValidationError: If the merged record is invalid; nothing is saved
        """
        changes = _field_names(changes)
        for index, job in enumerate(self.jobs):
            if job.id == job_id:
                merged = {**job.model_dump(), **changes, "id": job.id}
                updated = Job.model_validate(merged)
                self.jobs = self.jobs[:index] + [updated] + self.jobs[index + 1:]
                self._save_jobs()
                logger.info(f"✏️ Updated application {job_id}: {', '.join(changes)}")
                return updated
        logger.warning(f"⚠️ No application with id {job_id}")
        return None

    def delete_job(self, job_id: str) -> bool:
        remaining = [job for job in self.jobs if job.id != job_id]
        if len(remaining) == len(self.jobs):
            return False
        self.jobs = remaining
        self._save_jobs()
        logger.info(f"🗑️ Deleted application {job_id}")
        return True

    def get_job(self, job_id: str) -> Optional[Job]:
        return next((job for job in self.jobs if job.id == job_id), None)

    def set_interview_guide(self, job_id: str, guide: str) -> Optional[Job]:
        return self.update_job(job_id, {"interview_guide": guide})

    def update_user_profile(self, profile: UserProfile) -> UserProfile:
        self.user_profile = profile
        self._save_profile()
        logger.info(f"👤 Saved profile for {profile.full_name}")
        return profile

    def filter_jobs(self, status: str = ALL_STATUSES, search: str = "") -> List[Job]:
        """
        Filter jobs by status and a company/role search term.

        Args:
            status: A JobStatus value, or "All"
            search: Case-insensitive substring matched against company or role

        Returns:
            Matching jobs in list order
        """
        term = (search or "").strip().lower()
        status = status or ALL_STATUSES

        def matches(job: Job) -> bool:
            if status != ALL_STATUSES and job.status.value != status:
                return False
            return term in job.company.lower() or term in job.role.lower()

        return [job for job in self.jobs if matches(job)]

    def offer_jobs(self) -> List[Job]:
        """Jobs in Offer, Interview or Accepted state."""
        return [job for job in self.jobs if job.status in ACTIVE_STATUSES]
