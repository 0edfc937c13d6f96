from __future__ import annotations

import logging
from collections import Counter
from datetime import UTC, date, datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from talentgate.config import Settings, get_settings
from talentgate.core.codec import CollectionDecodeError, decode_collections, encode_collections
from talentgate.core.filters import ApplicationFilter, Page
from talentgate.core.workflow import ApplicationStatus, is_editable_by_candidate
from talentgate.db.models import Application, Education
from talentgate.db.repositories import Repository
from talentgate.errors import Conflict, NotFound, PermissionDenied, StorageError, ValidationFailed
from talentgate.types import MAX_EDUCATION_ENTRIES, EducationEntry, Principal

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = (
    "candidate_id",
    "job_position_id",
    "first_name",
    "last_name",
    "mobile",
    "birth_certificate_number",
    "birth_date",
    "wilaya_id",
    "commune_id",
)
PERSONAL_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "mobile",
    "birth_certificate_number",
)
FILE_FIELDS: tuple[str, ...] = ("photo", "profile_image", "cv")

PENDING_APPLICATION_MESSAGE = (
    "You already have a pending application. "
    "Please wait for the current application to be processed."
)

_EDUCATIONS = TypeAdapter(list[EducationEntry])


def require_fields(data: dict[str, Any], fields: tuple[str, ...]) -> None:
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationFailed(f"Missing required field: {field}")


def parse_birth_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationFailed(f"Invalid birth_date '{value}'. Use YYYY-MM-DD") from exc


def _parse_int(field: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed(f"Invalid {field} '{value}'") from exc


def validate_educations(entries: Any) -> list[dict[str, Any]]:
    if entries is None or entries == "":
        return []
    try:
        parsed = _EDUCATIONS.validate_json(entries) if isinstance(entries, str) else _EDUCATIONS.validate_python(entries)
    except ValidationError as exc:
        error = exc.errors()[0]
        location = ".".join(str(part) for part in error.get("loc", ()))
        raise ValidationFailed(f"Invalid education entry {location}: {error.get('msg', 'invalid')}") from exc

    per_type = Counter(entry.type for entry in parsed)
    for edu_type, count in per_type.items():
        limit = MAX_EDUCATION_ENTRIES[edu_type]
        if count > limit:
            raise ValidationFailed(f"You can only add up to {limit} {edu_type} entries")
    return [entry.model_dump() for entry in parsed]


def _encode(values: dict[str, Any]) -> dict[str, list[Any]]:
    try:
        return encode_collections(values)
    except CollectionDecodeError as exc:
        raise ValidationFailed(f"Invalid {exc}") from exc


def serialize_education(row: Education) -> dict[str, Any]:
    return {
        "id": row.id,
        "type": row.type,
        "level": row.level,
        "institution": row.institution,
        "field_of_study": row.field_of_study,
        "start_date": row.start_date.isoformat(),
        "end_date": row.end_date.isoformat() if row.end_date else None,
        "is_active": row.is_active,
        "description": row.description,
    }


def serialize_application(application: Application) -> dict[str, Any]:
    """Full projection with every structured collection decoded.

    A collection that fails to decode fails the whole read.
    """
    try:
        collections = decode_collections(application)
    except CollectionDecodeError as exc:
        logger.error("Failed to decode application_id=%s field=%s: %s", application.id, exc.field, exc)
        raise StorageError("Failed to parse application data") from exc

    candidate = application.candidate
    position = application.job_position
    return {
        "id": application.id,
        "status": application.status,
        "candidate_id": application.candidate_id,
        "candidate": {"name": candidate.name, "email": candidate.email} if candidate else None,
        "job_position_id": application.job_position_id,
        "job_position": (
            {"id": position.id, "name": position.name, "ar_name": position.ar_name} if position else None
        ),
        "first_name": application.first_name,
        "last_name": application.last_name,
        "mobile": application.mobile,
        "birth_certificate_number": application.birth_certificate_number,
        "birth_date": application.birth_date.isoformat(),
        "wilaya_id": application.wilaya_id,
        "wilaya_name": application.wilaya.name if application.wilaya else None,
        "commune_id": application.commune_id,
        "commune_name": application.commune.name if application.commune else None,
        "photo": application.photo,
        "profile_image": application.profile_image,
        "cv": application.cv,
        "educations": [serialize_education(row) for row in application.educations],
        **collections,
        "created_at": application.created_at.isoformat(),
        "updated_at": application.updated_at.isoformat(),
    }


def to_summary(application: Application) -> dict[str, Any]:
    """Row shape used by admin listings."""
    candidate = application.candidate
    position = application.job_position
    return {
        "id": application.id,
        "status": application.status,
        "candidate_name": candidate.name if candidate else f"{application.first_name} {application.last_name}",
        "email": candidate.email if candidate else None,
        "first_name": application.first_name,
        "last_name": application.last_name,
        "mobile": application.mobile,
        "birth_date": application.birth_date.isoformat(),
        "job_position": position.name if position else None,
        "wilaya_id": application.wilaya_id,
        "wilaya_name": application.wilaya.name if application.wilaya else None,
        "created_at": application.created_at.isoformat(),
        "updated_at": application.updated_at.isoformat(),
    }


class ApplicationService:
    def __init__(self, session: Session, *, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)

    def create(self, data: dict[str, Any]) -> Application:
        require_fields(data, REQUIRED_FIELDS)
        candidate_id = _parse_int("candidate_id", data["candidate_id"])
        job_position_id = _parse_int("job_position_id", data["job_position_id"])

        if self.repo.get_candidate(candidate_id) is None:
            raise NotFound("Candidate not found")
        if self.repo.get_job_position(job_position_id) is None:
            raise NotFound("Job position not found")

        values = self._scalar_values(data)
        values.update(_encode(data))
        educations = validate_educations(data.get("educations"))

        if self.repo.find_pending_application(candidate_id) is not None:
            raise Conflict(PENDING_APPLICATION_MESSAGE)

        values.update(
            candidate_id=candidate_id,
            job_position_id=job_position_id,
            status=ApplicationStatus.PENDING.value,
        )
        try:
            application = self.repo.create_application(values, educations)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Application create failed candidate_id=%s", candidate_id)
            raise StorageError("Failed to submit application") from exc

        logger.info("Application created application_id=%s candidate_id=%s", application.id, candidate_id)
        return self.get(application.id)

    def get(self, application_id: int, principal: Principal | None = None) -> Application:
        application = self.repo.get_application_detail(application_id)
        if application is None:
            raise NotFound("Application not found")
        if principal is not None:
            ensure_access(application, principal)
        return application

    def list_for_candidate(self, candidate_id: int) -> list[Application]:
        if self.repo.get_candidate(candidate_id) is None:
            raise NotFound("Candidate not found")
        return self.repo.list_applications_for_candidate(candidate_id)

    def update(self, application_id: int, data: dict[str, Any], principal: Principal | None = None) -> Application:
        """Replace every editable field, the collections and the educations.

        Fields absent from ``data`` are cleared; education rows are deleted and
        recreated in the order given. Concurrent updates are last-writer-wins.
        """
        application = self.get(application_id, principal)
        self._ensure_editable(application, principal)

        require_fields(data, REQUIRED_FIELDS[2:])
        values = self._scalar_values(data)
        if data.get("job_position_id"):
            job_position_id = _parse_int("job_position_id", data["job_position_id"])
            if self.repo.get_job_position(job_position_id) is None:
                raise NotFound("Job position not found")
            values["job_position_id"] = job_position_id
        values.update(_encode(data))
        educations = validate_educations(data.get("educations"))

        try:
            self.repo.update_application(application, values, educations)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Application update failed application_id=%s", application_id)
            raise StorageError("Failed to update application") from exc

        logger.info("Application updated application_id=%s", application_id)
        self.session.expire_all()
        return self.get(application_id)

    def list_educations(self, application_id: int, principal: Principal | None = None) -> list[Education]:
        self.get(application_id, principal)
        return self.repo.list_educations(application_id)

    def replace_educations(
        self,
        application_id: int,
        entries: Any,
        principal: Principal | None = None,
    ) -> list[Education]:
        application = self.get(application_id, principal)
        self._ensure_editable(application, principal)
        educations = validate_educations(entries)
        try:
            return self.repo.replace_educations(application, educations)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Education replace failed application_id=%s", application_id)
            raise StorageError("Failed to save education data") from exc

    def search(self, criteria: ApplicationFilter, *, now: datetime | None = None) -> tuple[list[Application], Page]:
        conditions = criteria.conditions(now=now or datetime.now(UTC), tz_name=self.settings.timezone)
        page = Page(number=criteria.page, size=self.settings.page_size, total=0)
        items, total = self.repo.query_applications(conditions, offset=page.offset, limit=page.size)
        page.total = total
        return items, page

    def matching(self, criteria: ApplicationFilter, *, now: datetime | None = None) -> list[Application]:
        conditions = criteria.conditions(now=now or datetime.now(UTC), tz_name=self.settings.timezone)
        items, _ = self.repo.query_applications(conditions)
        return items

    def _scalar_values(self, data: dict[str, Any]) -> dict[str, Any]:
        wilaya_id = _parse_int("wilaya_id", data["wilaya_id"])
        commune_id = _parse_int("commune_id", data["commune_id"])
        commune = self.repo.get_commune(commune_id)
        if self.repo.get_wilaya(wilaya_id) is None:
            raise ValidationFailed(f"Unknown wilaya_id '{wilaya_id}'")
        if commune is None or commune.wilaya_id != wilaya_id:
            raise ValidationFailed(f"Commune '{commune_id}' does not belong to wilaya '{wilaya_id}'")

        values: dict[str, Any] = {field: str(data[field]).strip() for field in PERSONAL_FIELDS}
        values["birth_date"] = parse_birth_date(data["birth_date"])
        values["wilaya_id"] = wilaya_id
        values["commune_id"] = commune_id
        for field in FILE_FIELDS:
            values[field] = data.get(field) or None
        return values

    @staticmethod
    def _ensure_editable(application: Application, principal: Principal | None) -> None:
        if principal is not None and not principal.is_admin and not is_editable_by_candidate(application.status):
            raise Conflict(f"Application is {application.status} and can no longer be edited")


def ensure_access(application: Application, principal: Principal) -> None:
    if principal.is_admin:
        return
    if application.candidate_id != principal.id:
        raise PermissionDenied("You do not have access to this application")
