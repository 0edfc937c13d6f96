from __future__ import annotations

from pathlib import Path

from talentgate.config import Settings, get_settings
from talentgate.db.seed import seed_job_positions, seed_reference_data
from talentgate.db.session import Database


def ensure_data_directories(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    paths: list[Path] = [
        settings.data_dir,
        settings.upload_dir,
        settings.upload_dir / "applications" / "images",
        settings.upload_dir / "applications" / "documents",
    ]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database(database: Database, settings: Settings | None = None) -> dict[str, int]:
    ensure_data_directories(settings)
    database.create_all()

    with database.session() as session:
        reference = seed_reference_data(session)
        positions = seed_job_positions(session)
    return {
        "seeded_wilayas": reference["wilayas"],
        "seeded_communes": reference["communes"],
        "seeded_job_positions": positions,
    }
