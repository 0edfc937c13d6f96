from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from talentgate.api.app import create_app
from talentgate.config import Settings
from talentgate.core.auth import AuthService
from talentgate.db.init import init_database
from talentgate.db.repositories import Repository
from talentgate.db.session import Database

ALGER = 16


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'talentgate.db'}",
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        bcrypt_rounds=4,
        page_size=10,
    )


@pytest.fixture()
def database(settings: Settings) -> Generator[Database, None, None]:
    db = Database(settings.database_url)
    init_database(db, settings)
    yield db
    db.dispose()


@pytest.fixture()
def db_session(database: Database) -> Generator[Session, None, None]:
    with database.session() as session:
        yield session


@pytest.fixture()
def client(settings: Settings, database: Database) -> Generator[TestClient, None, None]:
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def job_position_id(database: Database) -> int:
    with database.session() as session:
        return Repository(session).list_job_positions()[0].id


@pytest.fixture()
def application_payload(job_position_id: int) -> Callable[..., dict[str, Any]]:
    def build(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "job_position_id": job_position_id,
            "first_name": "Amina",
            "last_name": "Benali",
            "mobile": "0550123456",
            "birth_certificate_number": "BC-2024-0042",
            "birth_date": "1998-04-12",
            "wilaya_id": ALGER,
            "commune_id": ALGER,
            "experience": [
                {"title": "Developer", "company": "Sonelgaz", "start_date": "2020-01", "end_date": "2022-06"}
            ],
            "certifications": [{"name": "CCNA", "issuer": "Cisco", "date": "2021-05"}],
            "soft_skills": [{"name": "Teamwork", "level": "Fluent"}],
            "languages": [{"name": "Arabic", "level": "Native"}, {"name": "French", "level": "Fluent"}],
            "certificates": [],
            "educations": [
                {
                    "type": "universitaire",
                    "level": "Master",
                    "institution": "USTHB",
                    "field_of_study": "Computer Science",
                    "start_date": "2016-09-01",
                    "end_date": "2021-06-30",
                }
            ],
        }
        payload.update(overrides)
        return payload

    return build


def _login(client: TestClient, role: str, email: str, password: str) -> dict[str, str]:
    response = client.post(f"/api/auth/{role}/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    # Callers pass the bearer header explicitly.
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture()
def candidate_factory(client: TestClient) -> Callable[..., dict[str, Any]]:
    def create(email: str = "amina@example.com", name: str = "Amina Benali", password: str = "secret123") -> dict:
        response = client.post(
            "/api/auth/candidate/signup",
            json={"name": name, "email": email, "password": password, "confirm_password": password},
        )
        assert response.status_code == 201, response.text
        return {"id": response.json()["id"], "headers": _login(client, "candidate", email, password)}

    return create


@pytest.fixture()
def admin_factory(client: TestClient, database: Database, settings: Settings) -> Callable[..., dict[str, Any]]:
    def create(email: str = "drh@example.com", role: str = "DRH", password: str = "adminpass") -> dict:
        with database.session() as session:
            admin = AuthService(session, settings=settings).create_admin(
                None, name=f"{role} Admin", email=email, password=password, role=role
            )
            admin_id = admin.id
        return {"id": admin_id, "headers": _login(client, "admin", email, password)}

    return create


@pytest.fixture()
def candidate(candidate_factory: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return candidate_factory()


@pytest.fixture()
def admin(admin_factory: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return admin_factory()
