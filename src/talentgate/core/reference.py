from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from talentgate.db.models import Commune, JobPosition, Wilaya
from talentgate.db.repositories import Repository
from talentgate.errors import Conflict, NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def position_item(position: JobPosition) -> dict[str, Any]:
    return {"id": position.id, "name": position.name, "ar_name": position.ar_name}


def wilaya_item(wilaya: Wilaya) -> dict[str, Any]:
    return {"id": wilaya.id, "name": wilaya.name, "ar_name": wilaya.ar_name}


def commune_item(commune: Commune) -> dict[str, Any]:
    return {"id": commune.id, "wilaya_id": commune.wilaya_id, "name": commune.name}


class ReferenceData:
    def __init__(self, session: Session):
        self.session = session
        self.repo = Repository(session)

    def job_positions(self) -> list[JobPosition]:
        return self.repo.list_job_positions()

    def create_job_position(self, name: str, ar_name: str) -> JobPosition:
        name = (name or "").strip()
        ar_name = (ar_name or "").strip()
        if not name or not ar_name:
            raise ValidationFailed("Both name and ar_name are required")
        if self.repo.find_job_position_by_names(name, ar_name) is not None:
            raise Conflict("A job position with this name already exists")
        try:
            position = self.repo.create_job_position(name=name, ar_name=ar_name)
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict("A job position with this name already exists") from exc
        logger.info("Job position created id=%s name=%s", position.id, name)
        return position

    def delete_job_position(self, position_id: int) -> None:
        position = self.repo.get_job_position(position_id)
        if position is None:
            raise NotFound("Job position not found")
        referenced = self.repo.count_applications_for_position(position_id)
        if referenced:
            raise Conflict(f"Job position is referenced by {referenced} application(s) and cannot be deleted")
        self.repo.delete_job_position(position)
        logger.info("Job position deleted id=%s", position_id)

    def wilayas(self) -> list[Wilaya]:
        return self.repo.list_wilayas()

    def communes(self, wilaya_id: int | None = None) -> list[Commune]:
        if wilaya_id is not None and self.repo.get_wilaya(wilaya_id) is None:
            raise NotFound("Wilaya not found")
        return self.repo.list_communes(wilaya_id)
