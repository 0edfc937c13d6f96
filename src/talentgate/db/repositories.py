from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, delete, func, or_, select
from sqlalchemy.orm import Session, selectinload

from talentgate.db.base import utcnow
from talentgate.db.models import (
    Admin,
    Application,
    AuthSession,
    Candidate,
    Commune,
    Education,
    JobPosition,
    Wilaya,
)


def hash_text(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()


_DETAIL_OPTIONS = (
    selectinload(Application.job_position),
    selectinload(Application.educations),
    selectinload(Application.candidate),
    selectinload(Application.wilaya),
    selectinload(Application.commune),
)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    # Candidates

    def create_candidate(self, *, name: str, email: str, password_hash: str, status: str = "ACTIVE") -> Candidate:
        candidate = Candidate(
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
            status=status,
        )
        self.session.add(candidate)
        self.session.commit()
        self.session.refresh(candidate)
        return candidate

    def get_candidate(self, candidate_id: int) -> Candidate | None:
        return self.session.get(Candidate, candidate_id)

    def get_candidate_by_email(self, email: str) -> Candidate | None:
        return self.session.scalar(select(Candidate).where(Candidate.email == normalize_email(email)))

    def update_candidate(self, candidate_id: int, values: dict[str, Any]) -> Candidate:
        candidate = self.session.get(Candidate, candidate_id)
        if not candidate:
            raise ValueError(f"candidate {candidate_id} not found")
        for key, value in values.items():
            setattr(candidate, key, value)
        self.session.commit()
        self.session.refresh(candidate)
        return candidate

    # Admins

    def create_admin(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: str = "RH",
        status: str = "PENDING",
    ) -> Admin:
        admin = Admin(
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
            role=role,
            status=status,
        )
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        return admin

    def get_admin(self, admin_id: int) -> Admin | None:
        return self.session.get(Admin, admin_id)

    def get_admin_by_email(self, email: str) -> Admin | None:
        return self.session.scalar(select(Admin).where(Admin.email == normalize_email(email)))

    def list_admins(self) -> list[Admin]:
        return list(self.session.scalars(select(Admin).order_by(Admin.created_at.desc())).all())

    def count_admins(self) -> int:
        return self.session.scalar(select(func.count()).select_from(Admin)) or 0

    def update_admin(self, admin_id: int, values: dict[str, Any]) -> Admin:
        admin = self.session.get(Admin, admin_id)
        if not admin:
            raise ValueError(f"admin {admin_id} not found")
        for key, value in values.items():
            setattr(admin, key, value)
        self.session.commit()
        self.session.refresh(admin)
        return admin

    # Sessions

    def create_session(
        self,
        *,
        token: str,
        principal_kind: str,
        principal_id: int,
        expires_at: datetime,
    ) -> AuthSession:
        item = AuthSession(
            token_hash=hash_text(token),
            principal_kind=principal_kind,
            principal_id=principal_id,
            expires_at=expires_at,
        )
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def get_session_by_token(self, token: str) -> AuthSession | None:
        return self.session.scalar(select(AuthSession).where(AuthSession.token_hash == hash_text(token)))

    def delete_session(self, token: str) -> int:
        result = self.session.execute(delete(AuthSession).where(AuthSession.token_hash == hash_text(token)))
        self.session.commit()
        return result.rowcount or 0

    def purge_expired_sessions(self, now: datetime | None = None) -> int:
        result = self.session.execute(delete(AuthSession).where(AuthSession.expires_at <= (now or utcnow())))
        self.session.commit()
        return result.rowcount or 0

    # Reference data

    def list_job_positions(self) -> list[JobPosition]:
        return list(self.session.scalars(select(JobPosition).order_by(JobPosition.name.asc())).all())

    def get_job_position(self, position_id: int) -> JobPosition | None:
        return self.session.get(JobPosition, position_id)

    def find_job_position_by_names(self, name: str, ar_name: str) -> JobPosition | None:
        statement = select(JobPosition).where(or_(JobPosition.name == name, JobPosition.ar_name == ar_name))
        return self.session.scalar(statement)

    def create_job_position(self, *, name: str, ar_name: str) -> JobPosition:
        position = JobPosition(name=name, ar_name=ar_name)
        self.session.add(position)
        self.session.commit()
        self.session.refresh(position)
        return position

    def delete_job_position(self, position: JobPosition) -> None:
        self.session.delete(position)
        self.session.commit()

    def count_applications_for_position(self, position_id: int) -> int:
        statement = select(func.count()).select_from(Application).where(Application.job_position_id == position_id)
        return self.session.scalar(statement) or 0

    def list_wilayas(self) -> list[Wilaya]:
        return list(self.session.scalars(select(Wilaya).order_by(Wilaya.id.asc())).all())

    def get_wilaya(self, wilaya_id: int) -> Wilaya | None:
        return self.session.get(Wilaya, wilaya_id)

    def list_communes(self, wilaya_id: int | None = None) -> list[Commune]:
        statement = select(Commune).order_by(Commune.wilaya_id.asc(), Commune.name.asc())
        if wilaya_id is not None:
            statement = statement.where(Commune.wilaya_id == wilaya_id)
        return list(self.session.scalars(statement).all())

    def get_commune(self, commune_id: int) -> Commune | None:
        return self.session.get(Commune, commune_id)

    # Applications

    def create_application(self, values: dict[str, Any], educations: Iterable[dict[str, Any]] = ()) -> Application:
        application = Application(**values)
        application.educations = [
            Education(sort_order=index, **entry) for index, entry in enumerate(educations)
        ]
        self.session.add(application)
        self.session.commit()
        self.session.refresh(application)
        return application

    def get_application(self, application_id: int) -> Application | None:
        return self.session.get(Application, application_id)

    def get_application_detail(self, application_id: int) -> Application | None:
        statement = select(Application).options(*_DETAIL_OPTIONS).where(Application.id == application_id)
        return self.session.scalar(statement)

    def find_pending_application(self, candidate_id: int) -> Application | None:
        statement = select(Application).where(
            Application.candidate_id == candidate_id,
            Application.status == "PENDING",
        )
        return self.session.scalar(statement)

    def list_applications_for_candidate(self, candidate_id: int) -> list[Application]:
        statement = (
            select(Application)
            .options(*_DETAIL_OPTIONS)
            .where(Application.candidate_id == candidate_id)
            .order_by(Application.created_at.desc())
        )
        return list(self.session.scalars(statement).all())

    def update_application(
        self,
        application: Application,
        values: dict[str, Any],
        educations: Sequence[dict[str, Any]] | None = None,
    ) -> Application:
        for key, value in values.items():
            setattr(application, key, value)
        application.updated_at = utcnow()
        if educations is not None:
            self._replace_educations(application, educations)
        self.session.commit()
        self.session.refresh(application)
        return application

    def replace_educations(self, application: Application, educations: Sequence[dict[str, Any]]) -> list[Education]:
        self._replace_educations(application, educations)
        application.updated_at = utcnow()
        self.session.commit()
        return self.list_educations(application.id)

    def _replace_educations(self, application: Application, educations: Sequence[dict[str, Any]]) -> None:
        # Replace, not merge: every row is dropped and recreated in list order.
        self.session.expire(application, ["educations"])
        self.session.execute(
            delete(Education).where(Education.application_id == application.id),
            execution_options={"synchronize_session": False},
        )
        for index, entry in enumerate(educations):
            self.session.add(Education(application_id=application.id, sort_order=index, **entry))

    def list_educations(self, application_id: int) -> list[Education]:
        statement = (
            select(Education)
            .where(Education.application_id == application_id)
            .order_by(Education.sort_order.asc(), Education.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def query_applications(
        self,
        conditions: Sequence[ColumnElement[bool]],
        *,
        offset: int | None = None,
        limit: int | None = None,
    ) -> tuple[list[Application], int]:
        total = self.session.scalar(select(func.count()).select_from(Application).where(*conditions)) or 0
        statement = (
            select(Application)
            .options(*_DETAIL_OPTIONS)
            .where(*conditions)
            .order_by(Application.updated_at.desc(), Application.id.desc())
        )
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.scalars(statement).all()), total

    def count_applications(self, status: str | None = None) -> int:
        statement = select(func.count()).select_from(Application)
        if status is not None:
            statement = statement.where(Application.status == status)
        return self.session.scalar(statement) or 0

    def recent_applications(self, limit: int) -> list[Application]:
        statement = (
            select(Application)
            .options(selectinload(Application.candidate), selectinload(Application.job_position))
            .order_by(Application.created_at.desc(), Application.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def list_upload_references(self) -> set[str]:
        statement = select(
            Application.photo,
            Application.profile_image,
            Application.cv,
            Application.certificates,
        )
        references: set[str] = set()
        for photo, profile_image, cv, certificates in self.session.execute(statement):
            references.update(value for value in (photo, profile_image, cv) if value)
            references.update(value for value in (certificates or []) if isinstance(value, str))
        return references
