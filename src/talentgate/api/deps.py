from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from talentgate.config import Settings
from talentgate.core.auth import AuthService
from talentgate.db.session import Database
from talentgate.errors import PermissionDenied
from talentgate.types import Principal


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    with database.session() as db:
        yield db


def session_token(request: Request, settings: Settings = Depends(get_app_settings)) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.session_cookie_name)


def get_current_principal(
    token: str | None = Depends(session_token),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Principal:
    return AuthService(db, settings=settings).resolve_session(token)


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise PermissionDenied("Admin access required")
    return principal


def require_candidate(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.kind != "candidate":
        raise PermissionDenied("Candidate access required")
    return principal
