from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from talentgate.db.base import utcnow
from talentgate.db.models import Application
from talentgate.db.repositories import Repository
from talentgate.errors import Conflict, NotFound, StorageError, ValidationFailed

logger = logging.getLogger(__name__)

PolicyMode = Literal["permissive", "strict"]


class ApplicationStatus(StrEnum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    @classmethod
    def parse(cls, value: str | None) -> "ApplicationStatus":
        if value is None or not str(value).strip():
            raise ValidationFailed("Application ID and status are required")
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ValidationFailed(f"Invalid status '{value}'. Must be one of {allowed}") from exc


TERMINAL_STATUSES = frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED})


def is_editable_by_candidate(status: str) -> bool:
    return ApplicationStatus(status) not in TERMINAL_STATUSES


@dataclass(slots=True)
class TransitionPolicy:
    mode: PolicyMode = "permissive"

    def allows(self, current: ApplicationStatus, target: ApplicationStatus) -> bool:
        if self.mode == "permissive":
            return True

        if self.mode == "strict":
            if current == target:
                return True
            return target in {
                ApplicationStatus.PENDING: {ApplicationStatus.REVIEWING, ApplicationStatus.REJECTED},
                ApplicationStatus.REVIEWING: {
                    ApplicationStatus.PENDING,
                    ApplicationStatus.ACCEPTED,
                    ApplicationStatus.REJECTED,
                },
                ApplicationStatus.ACCEPTED: set(),
                ApplicationStatus.REJECTED: set(),
            }[current]

        raise ValueError(f"unsupported transition policy '{self.mode}'")


class StatusWorkflow:
    def __init__(self, session: Session, *, policy: TransitionPolicy | None = None):
        self.session = session
        self.repo = Repository(session)
        self.policy = policy or TransitionPolicy()

    def transition(self, application_id: int | None, status: str | None) -> Application:
        if application_id is None:
            raise ValidationFailed("Application ID and status are required")
        target = ApplicationStatus.parse(status)

        application = self.repo.get_application(application_id)
        if application is None:
            raise NotFound("Application not found")

        current = ApplicationStatus(application.status)
        if not self.policy.allows(current, target):
            raise Conflict(f"Cannot move application from {current.value} to {target.value}")

        try:
            application.status = target.value
            application.updated_at = utcnow()
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Status update failed application_id=%s", application_id)
            raise StorageError("Failed to update application") from exc

        self.session.refresh(application)
        logger.info(
            "Application status changed application_id=%s from=%s to=%s",
            application_id,
            current.value,
            target.value,
        )
        return application
