from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from talentgate.config import Settings, get_settings
from talentgate.core.workflow import ApplicationStatus
from talentgate.db.models import Application
from talentgate.db.repositories import Repository


def display_name(application: Application) -> str:
    candidate = application.candidate
    if candidate is not None and candidate.name:
        return candidate.name
    return f"{application.first_name} {application.last_name}".strip()


def recent_item(application: Application) -> dict[str, Any]:
    return {
        "id": application.id,
        "candidate_name": display_name(application),
        "mobile": application.mobile,
        "email": application.candidate.email if application.candidate else None,
        "domain": application.job_position.name if application.job_position else None,
        "status": application.status,
        "created_at": application.created_at.isoformat(),
    }


class DashboardStats:
    """Dashboard counters, recomputed on every call."""

    def __init__(self, session: Session, *, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.repo = Repository(session)

    def status_counts(self) -> dict[str, int]:
        return {status.value.lower(): self.repo.count_applications(status.value) for status in ApplicationStatus}

    def recent_applications(self, limit: int | None = None) -> list[dict[str, Any]]:
        rows = self.repo.recent_applications(limit or self.settings.recent_applications_limit)
        return [recent_item(row) for row in rows]

    def dashboard(self) -> dict[str, Any]:
        counts = self.status_counts()
        return {
            "total_applications": self.repo.count_applications(),
            "pending_applications": counts["pending"],
            "reviewing_applications": counts["reviewing"],
            "accepted_applications": counts["accepted"],
            "rejected_applications": counts["rejected"],
            "total_admins": self.repo.count_admins(),
            "recent_applications": self.recent_applications(),
        }
