from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from talentgate.api.deps import get_app_settings, get_db, require_admin
from talentgate.api.schemas import (
    AdminCreateRequest,
    AdminResponse,
    AdminStatusRequest,
    ApplicationPageResponse,
    DashboardResponse,
    StatusCountsResponse,
    StatusUpdateRequest,
)
from talentgate.config import Settings
from talentgate.core.applications import ApplicationService, serialize_application, to_summary
from talentgate.core.auth import AuthService, admin_summary
from talentgate.core.dates import local_today
from talentgate.core.export import export_csv, export_xlsx
from talentgate.core.filters import ApplicationFilter
from talentgate.core.stats import DashboardStats
from talentgate.core.workflow import StatusWorkflow, TransitionPolicy
from talentgate.errors import ValidationFailed
from talentgate.types import Principal

router = APIRouter(prefix="/api/admin", tags=["admin"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def application_filter(
    job_position_id: int | None = None,
    wilaya_id: int | None = None,
    status: str | None = None,
    age_range: str | None = None,
    date_range: str | None = None,
    page: int = 1,
) -> ApplicationFilter:
    try:
        return ApplicationFilter(
            job_position_id=job_position_id,
            wilaya_id=wilaya_id,
            status=status,
            age_range=age_range,
            date_range=date_range,
            page=page,
        )
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ()))
        raise ValidationFailed(f"Invalid {field}: {error.get('msg', 'invalid')}") from exc


@router.get("/applications", response_model=ApplicationPageResponse)
def list_applications(
    criteria: ApplicationFilter = Depends(application_filter),
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ApplicationPageResponse:
    items, page = ApplicationService(db, settings=settings).search(criteria)
    return ApplicationPageResponse(
        items=[to_summary(item) for item in items],
        total=page.total,
        page=page.number,
        page_size=page.size,
        total_pages=page.total_pages,
    )


@router.get("/applications/counts", response_model=StatusCountsResponse)
def status_counts(
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> StatusCountsResponse:
    return StatusCountsResponse(**DashboardStats(db, settings=settings).status_counts())


@router.get("/applications/export")
def export_applications(
    format: str = Query("csv"),
    criteria: ApplicationFilter = Depends(application_filter),
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    if format not in {"csv", "xlsx"}:
        raise ValidationFailed(f"Invalid export format '{format}'. Must be csv or xlsx")
    applications = ApplicationService(db, settings=settings).matching(criteria)
    today = local_today(settings.timezone)
    filename = _export_filename(today, format)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if format == "csv":
        return Response(export_csv(applications, today), media_type="text/csv; charset=utf-8", headers=headers)
    return Response(export_xlsx(applications, today), media_type=XLSX_MEDIA_TYPE, headers=headers)


@router.put("/applications/{application_id}/status")
def update_status(
    application_id: int,
    payload: StatusUpdateRequest,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    workflow = StatusWorkflow(db, policy=TransitionPolicy(settings.status_transition_policy))
    workflow.transition(application_id, payload.status)
    application = ApplicationService(db, settings=settings).get(application_id)
    return {"success": True, "application": serialize_application(application)}


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> DashboardResponse:
    return DashboardResponse(**DashboardStats(db, settings=settings).dashboard())


@router.get("/users", response_model=list[AdminResponse])
def list_admins(
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[AdminResponse]:
    rows = AuthService(db, settings=settings).list_admins(principal)
    return [AdminResponse(**admin_summary(row)) for row in rows]


@router.post("/users", response_model=AdminResponse, status_code=201)
def create_admin(
    payload: AdminCreateRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AdminResponse:
    admin = AuthService(db, settings=settings).create_admin(
        principal,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return AdminResponse(**admin_summary(admin))


@router.put("/users/{admin_id}/status", response_model=AdminResponse)
def set_admin_status(
    admin_id: int,
    payload: AdminStatusRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AdminResponse:
    admin = AuthService(db, settings=settings).set_admin_status(principal, admin_id, payload.status)
    return AdminResponse(**admin_summary(admin))


def _export_filename(today: date, extension: str) -> str:
    return f"applications-{today.isoformat()}.{extension}"
