from __future__ import annotations

import json
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import typer
import uvicorn
from sqlalchemy.orm import Session

from talentgate.api.app import create_app
from talentgate.config import get_settings
from talentgate.core.applications import ApplicationService, to_summary
from talentgate.core.auth import AuthService
from talentgate.core.dates import local_today
from talentgate.core.export import export_csv, export_xlsx
from talentgate.core.filters import ApplicationFilter
from talentgate.core.reference import ReferenceData, position_item
from talentgate.core.uploads import prune_orphaned_uploads
from talentgate.core.workflow import StatusWorkflow, TransitionPolicy
from talentgate.db.init import init_database
from talentgate.db.repositories import Repository
from talentgate.db.session import Database
from talentgate.errors import PortalError
from talentgate.logging_config import configure_logging

app = typer.Typer(help="Talentgate CLI")
admin_app = typer.Typer(help="Manage administrator accounts")
positions_app = typer.Typer(help="Job position registry")
applications_app = typer.Typer(help="Review and export applications")
uploads_app = typer.Typer(help="Uploaded file maintenance")

app.add_typer(admin_app, name="admin")
app.add_typer(positions_app, name="positions")
app.add_typer(applications_app, name="applications")
app.add_typer(uploads_app, name="uploads")


@contextmanager
def open_session() -> Generator[Session, None, None]:
    configure_logging()
    database = Database.from_settings(get_settings())
    try:
        init_database(database)
        with database.session() as db:
            yield db
    except PortalError as exc:
        raise typer.BadParameter(exc.message) from exc
    finally:
        database.dispose()


@app.command("init")
def init_cmd() -> None:
    """Initialize directories, schema, and reference data."""
    configure_logging()
    database = Database.from_settings(get_settings())
    try:
        result = init_database(database)
    finally:
        database.dispose()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(settings), host=host or settings.app_host, port=port or settings.app_port)


@admin_app.command("create")
def admin_create(
    name: str = typer.Option(..., "--name"),
    email: str = typer.Option(..., "--email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, confirmation_prompt=True),
    role: str = typer.Option("DRH", "--role"),
) -> None:
    """Create an ACTIVE administrator (bootstrap for the first DRH)."""
    with open_session() as db:
        admin = AuthService(db).create_admin(None, name=name, email=email, password=password, role=role)
        typer.echo(json.dumps({"id": admin.id, "email": admin.email, "role": admin.role}, indent=2))


@positions_app.command("list")
def positions_list() -> None:
    with open_session() as db:
        rows = ReferenceData(db).job_positions()
        typer.echo(json.dumps([position_item(row) for row in rows], indent=2, ensure_ascii=False))


@positions_app.command("add")
def positions_add(
    name: str = typer.Option(..., "--name"),
    ar_name: str = typer.Option(..., "--ar-name"),
) -> None:
    with open_session() as db:
        position = ReferenceData(db).create_job_position(name, ar_name)
        typer.echo(json.dumps(position_item(position), indent=2, ensure_ascii=False))


def _criteria(
    job_position_id: int | None,
    wilaya_id: int | None,
    status: str | None,
    age_range: str | None,
    date_range: str | None,
    page: int = 1,
) -> ApplicationFilter:
    return ApplicationFilter(
        job_position_id=job_position_id,
        wilaya_id=wilaya_id,
        status=status,
        age_range=age_range,
        date_range=date_range,
        page=page,
    )


@applications_app.command("list")
def applications_list(
    job_position_id: int | None = typer.Option(None, "--job-position-id"),
    wilaya_id: int | None = typer.Option(None, "--wilaya-id"),
    status: str | None = typer.Option(None, "--status"),
    age_range: str | None = typer.Option(None, "--age-range"),
    date_range: str | None = typer.Option(None, "--date-range"),
    page: int = typer.Option(1, "--page", min=1),
) -> None:
    with open_session() as db:
        criteria = _criteria(job_position_id, wilaya_id, status, age_range, date_range, page)
        items, result = ApplicationService(db).search(criteria)
        typer.echo(
            json.dumps(
                {
                    "items": [to_summary(item) for item in items],
                    "total": result.total,
                    "page": result.number,
                    "total_pages": result.total_pages,
                },
                indent=2,
                ensure_ascii=False,
            )
        )


@applications_app.command("set-status")
def applications_set_status(
    application_id: int = typer.Option(..., "--application-id"),
    status: str = typer.Option(..., "--status"),
) -> None:
    settings = get_settings()
    with open_session() as db:
        workflow = StatusWorkflow(db, policy=TransitionPolicy(settings.status_transition_policy))
        application = workflow.transition(application_id, status)
        typer.echo(json.dumps({"id": application.id, "status": application.status}, indent=2))


@applications_app.command("export")
def applications_export(
    output: Path = typer.Option(..., "--output"),
    format: str = typer.Option("csv", "--format"),
    job_position_id: int | None = typer.Option(None, "--job-position-id"),
    wilaya_id: int | None = typer.Option(None, "--wilaya-id"),
    status: str | None = typer.Option(None, "--status"),
    age_range: str | None = typer.Option(None, "--age-range"),
    date_range: str | None = typer.Option(None, "--date-range"),
) -> None:
    if format not in {"csv", "xlsx"}:
        raise typer.BadParameter("format must be csv or xlsx")
    settings = get_settings()
    with open_session() as db:
        criteria = _criteria(job_position_id, wilaya_id, status, age_range, date_range)
        applications = ApplicationService(db).matching(criteria)
        today = local_today(settings.timezone)
        if format == "csv":
            output.write_text(export_csv(applications, today), encoding="utf-8")
        else:
            output.write_bytes(export_xlsx(applications, today))
        typer.echo(json.dumps({"output": str(output), "rows": len(applications)}, indent=2))


@uploads_app.command("prune")
def uploads_prune(dry_run: bool = typer.Option(False, "--dry-run")) -> None:
    """Delete uploaded files that no application references."""
    settings = get_settings()
    with open_session() as db:
        references = Repository(db).list_upload_references()
        removed = prune_orphaned_uploads(references, settings, dry_run=dry_run)
        typer.echo(json.dumps({"dry_run": dry_run, "files": [str(path) for path in removed]}, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
