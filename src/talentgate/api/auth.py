from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from talentgate.api.deps import get_app_settings, get_current_principal, get_db, session_token
from talentgate.api.schemas import (
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    SignupRequest,
    SignupResponse,
)
from talentgate.config import Settings
from talentgate.core.auth import AuthService
from talentgate.errors import NotFound
from talentgate.types import Principal

router = APIRouter(prefix="/api", tags=["auth"])

ROLES = ("candidate", "admin")


def _check_role(role: str) -> None:
    if role not in ROLES:
        raise NotFound(f"Unknown role '{role}'")


@router.post("/auth/{role}/signup", response_model=SignupResponse, status_code=201)
def signup(
    role: str,
    payload: SignupRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> SignupResponse:
    _check_role(role)
    service = AuthService(db, settings=settings)
    if role == "candidate":
        account = service.signup_candidate(payload.name, payload.email, payload.password, payload.confirm_password)
        message = "Account created successfully"
    else:
        account = service.signup_admin(payload.name, payload.email, payload.password, payload.confirm_password)
        message = "Account created. Please wait for approval"
    return SignupResponse(id=account.id, name=account.name, email=account.email, status=account.status, message=message)


@router.post("/auth/{role}/login", response_model=LoginResponse)
def login(
    role: str,
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> LoginResponse:
    _check_role(role)
    token, principal = AuthService(db, settings=settings).login(role, payload.email, payload.password)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_min * 60,
        httponly=True,
        samesite="lax",
        secure=settings.app_env == "production",
    )
    return LoginResponse(token=token, principal=principal)


@router.post("/auth/logout")
def logout(
    response: Response,
    token: str | None = Depends(session_token),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    removed = AuthService(db, settings=settings).logout(token)
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True, "session_removed": removed}


@router.get("/auth/me", response_model=Principal)
def me(principal: Principal = Depends(get_current_principal)) -> Principal:
    return principal


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ProfileResponse:
    return ProfileResponse.model_validate(AuthService(db, settings=settings).get_profile(principal))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ProfileResponse:
    data = AuthService(db, settings=settings).update_profile(principal, payload.model_dump())
    return ProfileResponse.model_validate(data)


@router.put("/profile/password")
def change_password(
    payload: PasswordChangeRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    AuthService(db, settings=settings).change_password(principal, payload.current_password, payload.new_password)
    return {"success": True, "message": "Password updated successfully"}
