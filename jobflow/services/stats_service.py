"""
Dashboard statistics over the job collection.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from jobflow.models import Job, JobStatus, OFFER_STATUSES

CHART_DAYS = 30


def compute_stats(jobs: Sequence[Job]) -> Dict[str, int]:
    """Counts shown on the dashboard stat cards."""
    return {
        "total": len(jobs),
        "applied": sum(1 for job in jobs if job.status == JobStatus.APPLIED),
        "interviewing": sum(1 for job in jobs if job.status == JobStatus.INTERVIEW),
        "offers": sum(1 for job in jobs if job.status in OFFER_STATUSES),
    }


def conversion_rate(jobs: Sequence[Job]) -> float:
    """Interview conversion rate in percent (0 when there are no jobs)."""
    if not jobs:
        return 0.0
    interviews = sum(1 for job in jobs if job.status == JobStatus.INTERVIEW)
    return interviews / len(jobs) * 100


def _applied_on(job: Job) -> date:
    applied = job.date_applied
    if applied.tzinfo is not None:
        applied = applied.astimezone(timezone.utc)
    return applied.date()


def applications_per_day(
    jobs: Sequence[Job],
    days: int = CHART_DAYS,
    today: Optional[date] = None
) -> List[Dict]:
    """
    Applications per calendar day (UTC) over the last ``days`` days.

    Args:
        jobs: Jobs to count
        days: Window length, ending today
        today: Override for the last day of the window

    Returns:
        One point per day, oldest first: {"date": "Oct 18", "iso": ..., "applications": n}
    """
    if today is None:
        today = datetime.now(timezone.utc).date()

    counts: Dict[date, int] = {}
    for job in jobs:
        day = _applied_on(job)
        counts[day] = counts.get(day, 0) + 1

    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        points.append({
            "date": f"{day.strftime('%b')} {day.day}",
            "iso": day.isoformat(),
            "applications": counts.get(day, 0),
        })
    return points
