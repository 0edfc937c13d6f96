from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from talentgate.api.deps import get_app_settings, get_current_principal, get_db, require_admin, require_candidate
from talentgate.api.schemas import (
    ApplicationRequest,
    CommuneResponse,
    EducationsRequest,
    JobPositionRequest,
    JobPositionResponse,
    UploadResponse,
    WilayaResponse,
)
from talentgate.config import Settings
from talentgate.core.applications import ApplicationService, serialize_application, serialize_education
from talentgate.core.dates import local_today
from talentgate.core.export import document_filename, render_document_html, render_document_pdf
from talentgate.core.reference import ReferenceData, commune_item, position_item, wilaya_item
from talentgate.core.uploads import store_upload
from talentgate.types import Principal

router = APIRouter(prefix="/api", tags=["api"])


# Reference data


@router.get("/job-positions", response_model=list[JobPositionResponse])
def list_job_positions(db: Session = Depends(get_db)) -> list[JobPositionResponse]:
    return [JobPositionResponse(**position_item(row)) for row in ReferenceData(db).job_positions()]


@router.post("/job-positions", response_model=JobPositionResponse, status_code=201)
def create_job_position(
    payload: JobPositionRequest,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> JobPositionResponse:
    position = ReferenceData(db).create_job_position(payload.name, payload.ar_name)
    return JobPositionResponse(**position_item(position))


@router.delete("/job-positions/{position_id}")
def delete_job_position(
    position_id: int,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    ReferenceData(db).delete_job_position(position_id)
    return {"success": True}


@router.get("/wilayas", response_model=list[WilayaResponse])
def list_wilayas(db: Session = Depends(get_db)) -> list[WilayaResponse]:
    return [WilayaResponse(**wilaya_item(row)) for row in ReferenceData(db).wilayas()]


@router.get("/communes", response_model=list[CommuneResponse])
def list_communes(wilaya_id: int | None = None, db: Session = Depends(get_db)) -> list[CommuneResponse]:
    return [CommuneResponse(**commune_item(row)) for row in ReferenceData(db).communes(wilaya_id)]


# Applications


@router.post("/applications", status_code=201)
def submit_application(
    payload: ApplicationRequest,
    principal: Principal = Depends(require_candidate),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    data = payload.model_dump()
    data["candidate_id"] = principal.id
    application = ApplicationService(db, settings=settings).create(data)
    return serialize_application(application)


@router.get("/applications")
def list_my_applications(
    principal: Principal = Depends(require_candidate),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[dict[str, Any]]:
    rows = ApplicationService(db, settings=settings).list_for_candidate(principal.id)
    return [serialize_application(row) for row in rows]


@router.get("/applications/{application_id}")
def get_application(
    application_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    application = ApplicationService(db, settings=settings).get(application_id, principal)
    return serialize_application(application)


@router.put("/applications/{application_id}")
def update_application(
    application_id: int,
    payload: ApplicationRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    application = ApplicationService(db, settings=settings).update(application_id, payload.model_dump(), principal)
    return serialize_application(application)


@router.get("/applications/{application_id}/educations")
def list_educations(
    application_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[dict[str, Any]]:
    rows = ApplicationService(db, settings=settings).list_educations(application_id, principal)
    return [serialize_education(row) for row in rows]


@router.put("/applications/{application_id}/educations")
def replace_educations(
    application_id: int,
    payload: EducationsRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[dict[str, Any]]:
    rows = ApplicationService(db, settings=settings).replace_educations(application_id, payload.educations, principal)
    return [serialize_education(row) for row in rows]


@router.get("/applications/{application_id}/pdf")
def download_application_pdf(
    application_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    application = ApplicationService(db, settings=settings).get(application_id, principal)
    content = render_document_pdf(application, local_today(settings.timezone))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document_filename(application)}"'},
    )


@router.get("/applications/{application_id}/print", response_class=HTMLResponse)
def print_application(
    application_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> HTMLResponse:
    application = ApplicationService(db, settings=settings).get(application_id, principal)
    return HTMLResponse(render_document_html(application, local_today(settings.timezone)))


# Uploads


@router.post("/uploads", response_model=UploadResponse, status_code=201)
def upload_file(
    file: UploadFile = File(...),
    type: str = Form(...),
    application_ref: str = Form(""),
    principal: Principal = Depends(get_current_principal),
    settings: Settings = Depends(get_app_settings),
) -> UploadResponse:
    # One byte past the cap is enough to reject an oversized file.
    content = file.file.read(settings.max_upload_bytes + 1)
    stored = store_upload(
        file.filename or "",
        content,
        type,
        application_ref or f"candidate-{principal.id}",
        settings=settings,
    )
    return UploadResponse(filename=stored.filename, url=stored.url, size=stored.size)
