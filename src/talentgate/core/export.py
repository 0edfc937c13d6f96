from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from xhtml2pdf import pisa

from talentgate.core.applications import serialize_application
from talentgate.core.dates import compute_age
from talentgate.core.stats import display_name
from talentgate.db.models import Application
from talentgate.errors import StorageError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"

PERSONAL_COLUMNS: tuple[str, ...] = (
    "ID",
    "Candidate",
    "First Name",
    "Last Name",
    "Email",
    "Mobile",
    "Birth Certificate Number",
    "Birth Date",
    "Age",
    "Wilaya",
    "Commune",
    "Position",
    "Position (AR)",
    "Status",
    "Created At",
    "Updated At",
)
EDUCATION_COLUMNS: tuple[str, ...] = ("Type", "Level", "Institution", "Field of Study", "Start Date", "End Date")
EXPERIENCE_COLUMNS: tuple[str, ...] = ("Title", "Company", "Start Date", "End Date")
SUMMARY_COLUMNS: tuple[str, ...] = ("Soft Skills", "Languages", "Certifications")

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill("solid", fgColor="334D6D")

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


@dataclass(slots=True)
class FlatRecord:
    personal: list[Any]
    educations: list[list[Any]] = field(default_factory=list)
    experiences: list[list[Any]] = field(default_factory=list)
    summary: list[Any] = field(default_factory=list)


def _join(entries: list[dict[str, Any]], key: str = "name", level_key: str | None = "level") -> str:
    parts = []
    for entry in entries:
        name = str(entry.get(key, "")).strip()
        if not name:
            continue
        level = entry.get(level_key) if level_key else None
        parts.append(f"{name} ({level})" if level else name)
    return "; ".join(parts)


def flatten_application(application: Application, today: date) -> FlatRecord:
    data = serialize_application(application)
    position = data["job_position"] or {}
    personal = [
        data["id"],
        display_name(application),
        data["first_name"],
        data["last_name"],
        (data["candidate"] or {}).get("email", ""),
        data["mobile"],
        data["birth_certificate_number"],
        data["birth_date"],
        compute_age(application.birth_date, today),
        data["wilaya_name"] or data["wilaya_id"],
        data["commune_name"] or data["commune_id"],
        position.get("name", ""),
        position.get("ar_name", ""),
        data["status"],
        data["created_at"],
        data["updated_at"],
    ]
    educations = [
        [
            item["type"],
            item["level"] or "",
            item["institution"],
            item["field_of_study"],
            item["start_date"],
            item["end_date"] or ("Ongoing" if item["is_active"] else ""),
        ]
        for item in data["educations"]
    ]
    experiences = [
        [item.get("title", ""), item.get("company", ""), item.get("start_date", ""), item.get("end_date", "")]
        for item in data["experience"]
    ]
    summary = [
        _join(data["soft_skills"]),
        _join(data["languages"]),
        _join(data["certifications"], level_key="issuer"),
    ]
    return FlatRecord(personal=personal, educations=educations, experiences=experiences, summary=summary)


def tabulate(applications: list[Application], today: date) -> tuple[list[str], list[list[Any]]]:
    """Header and rows, with education/experience groups padded to the widest record."""
    records = [flatten_application(application, today) for application in applications]
    max_educations = max((len(record.educations) for record in records), default=0)
    max_experiences = max((len(record.experiences) for record in records), default=0)

    header = list(PERSONAL_COLUMNS)
    for index in range(1, max_educations + 1):
        header.extend(f"Education {index} {column}" for column in EDUCATION_COLUMNS)
    for index in range(1, max_experiences + 1):
        header.extend(f"Experience {index} {column}" for column in EXPERIENCE_COLUMNS)
    header.extend(SUMMARY_COLUMNS)

    rows: list[list[Any]] = []
    for record in records:
        row = list(record.personal)
        for index in range(max_educations):
            row.extend(record.educations[index] if index < len(record.educations) else [""] * len(EDUCATION_COLUMNS))
        for index in range(max_experiences):
            row.extend(
                record.experiences[index] if index < len(record.experiences) else [""] * len(EXPERIENCE_COLUMNS)
            )
        row.extend(record.summary)
        rows.append(row)
    return header, rows


def export_csv(applications: list[Application], today: date) -> str:
    header, rows = tabulate(applications, today)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def export_xlsx(applications: list[Application], today: date) -> bytes:
    header, rows = tabulate(applications, today)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Applications"
    sheet.append(header)
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for row in rows:
        sheet.append(row)

    for index, title in enumerate(header, start=1):
        width = max([len(str(title))] + [len(str(row[index - 1])) for row in rows])
        sheet.column_dimensions[get_column_letter(index)].width = min(max(width + 2, 10), 60)
    sheet.freeze_panes = "A2"

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def document_context(application: Application, today: date) -> dict[str, Any]:
    data = serialize_application(application)
    return {
        "application": data,
        "candidate_name": display_name(application),
        "email": (data["candidate"] or {}).get("email", ""),
        "age": compute_age(application.birth_date, today),
        "generated_on": today.isoformat(),
    }


def render_document_html(application: Application, today: date) -> str:
    template = _environment.get_template("application_document.html")
    return template.render(**document_context(application, today))


def render_document_pdf(application: Application, today: date) -> bytes:
    html = render_document_html(application, today)
    result = io.BytesIO()
    status = pisa.CreatePDF(html, dest=result, encoding="utf-8")
    if status.err:
        logger.error("PDF rendering reported %s error(s) for application_id=%s", status.err, application.id)
        raise StorageError("Error generating PDF")
    logger.info("Generated PDF for application_id=%s bytes=%s", application.id, len(result.getvalue()))
    return result.getvalue()


def document_filename(application: Application, extension: str = "pdf") -> str:
    stem = f"application-{application.first_name}-{application.last_name}".replace(" ", "_")
    return f"{stem}.{extension}"
