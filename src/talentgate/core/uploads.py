"""File uploads for the application wizard.

Files are written before the application record exists, so anything the
candidate abandons stays on disk until ``prune_orphaned_uploads`` runs.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

from talentgate.config import Settings, get_settings
from talentgate.errors import StorageError, ValidationFailed

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"
KIND_DIRECTORIES: dict[str, str] = {"image": "images", "document": "documents"}

_REF_CLEANUP = re.compile(r"[^A-Za-z0-9_-]+")


@dataclass(frozen=True, slots=True)
class StoredUpload:
    filename: str
    url: str
    size: int


def _extension(filename: str) -> str:
    suffix = Path(filename or "").suffix
    return suffix.lower().lstrip(".")


def _safe_ref(application_ref: str) -> str:
    ref = _REF_CLEANUP.sub("-", (application_ref or "").strip()).strip("-")
    return ref or "upload"


def upload_root(settings: Settings) -> Path:
    return settings.upload_dir / "applications"


def validate_upload(filename: str, content: bytes, kind: str, settings: Settings) -> str:
    allowed = settings.allowed_extensions
    if kind not in allowed:
        raise ValidationFailed(f"Invalid upload type '{kind}'. Must be one of {', '.join(sorted(allowed))}")
    extension = _extension(filename)
    if extension not in allowed[kind]:
        raise ValidationFailed(
            f"Invalid file type '.{extension}' for {kind}. Allowed: {', '.join(sorted(allowed[kind]))}"
        )
    if not content:
        raise ValidationFailed("Uploaded file is empty")
    if len(content) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes / (1024 * 1024)
        raise ValidationFailed(f"File too large. Maximum size is {limit_mb:g}MB")
    return extension


def store_upload(
    filename: str,
    content: bytes,
    kind: str,
    application_ref: str,
    *,
    settings: Settings | None = None,
    now_ms: int | None = None,
) -> StoredUpload:
    settings = settings or get_settings()
    extension = validate_upload(filename, content, kind, settings)
    directory = KIND_DIRECTORIES[kind]
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    stored_name = f"{_safe_ref(application_ref)}-{stamp}.{extension}"

    target_dir = upload_root(settings) / directory
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / stored_name).write_bytes(content)
    except OSError as exc:
        logger.exception("Failed to write upload name=%s", stored_name)
        raise StorageError("Failed to upload file") from exc

    url = f"{URL_PREFIX}/applications/{directory}/{stored_name}"
    logger.info("Stored upload kind=%s url=%s bytes=%s", kind, url, len(content))
    return StoredUpload(filename=stored_name, url=url, size=len(content))


def url_for_path(path: Path, settings: Settings) -> str:
    relative = path.relative_to(settings.upload_dir).as_posix()
    return f"{URL_PREFIX}/{relative}"


def find_orphaned_uploads(references: set[str], settings: Settings | None = None) -> list[Path]:
    """Stored files whose URL no application references."""
    settings = settings or get_settings()
    root = upload_root(settings)
    if not root.exists():
        return []
    orphans = [
        path
        for directory in KIND_DIRECTORIES.values()
        if (root / directory).is_dir()
        for path in sorted((root / directory).iterdir())
        if path.is_file() and url_for_path(path, settings) not in references
    ]
    return orphans


def prune_orphaned_uploads(
    references: set[str],
    settings: Settings | None = None,
    *,
    dry_run: bool = False,
) -> list[Path]:
    orphans = find_orphaned_uploads(references, settings)
    if dry_run:
        return orphans
    for path in orphans:
        path.unlink(missing_ok=True)
        logger.info("Pruned orphaned upload path=%s", path)
    return orphans
