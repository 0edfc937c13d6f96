"""Accounts, passwords and server-side sessions.

Tokens are opaque random strings handed to the client once; only their sha256
digest is stored. Every scoped endpoint resolves a token to a ``Principal``
through ``AuthService.resolve_session``.
"""

from __future__ import annotations

import logging
import re
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from talentgate.config import Settings, get_settings
from talentgate.db.base import utcnow
from talentgate.db.models import Admin, Candidate
from talentgate.db.repositories import Repository, normalize_email
from talentgate.errors import AuthenticationFailed, Conflict, NotFound, PermissionDenied, ValidationFailed
from talentgate.types import Principal

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+?[\d\s-]{8,}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
PROFILE_FIELDS: tuple[str, ...] = ("name", "email", "phone", "address")
ADMIN_STATUSES: tuple[str, ...] = ("ACTIVE", "INACTIVE", "PENDING")
ADMIN_ROLES: tuple[str, ...] = ("RH", "DRH")


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def completion_percentage(values: dict[str, Any]) -> int:
    filled = sum(1 for field in PROFILE_FIELDS if str(values.get(field) or "").strip())
    return round(filled * 100 / len(PROFILE_FIELDS))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; they were written as UTC.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _require(value: Any, message: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationFailed(message)
    return text


def _validate_email(email: str) -> str:
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailed("Invalid email address")
    return normalize_email(email)


def _validate_new_password(password: str, confirm_password: str | None = None) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if confirm_password is not None and password != confirm_password:
        raise ValidationFailed("Passwords do not match")


def admin_summary(admin: Admin) -> dict[str, Any]:
    return {
        "id": admin.id,
        "name": admin.name,
        "email": admin.email,
        "role": admin.role,
        "status": admin.status,
        "created_at": admin.created_at.isoformat(),
    }


class AuthService:
    def __init__(self, session: Session, *, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)

    # Signup

    def signup_candidate(self, name: str, email: str, password: str, confirm_password: str) -> Candidate:
        name = _require(name, "Name is required")
        email = _validate_email(_require(email, "Email is required"))
        _validate_new_password(password, confirm_password)
        if self.repo.get_candidate_by_email(email) is not None:
            raise Conflict("Email already registered")
        try:
            candidate = self.repo.create_candidate(
                name=name,
                email=email,
                password_hash=hash_password(password, self.settings.bcrypt_rounds),
            )
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict("Email already registered") from exc
        logger.info("Candidate registered candidate_id=%s", candidate.id)
        return candidate

    def signup_admin(self, name: str, email: str, password: str, confirm_password: str) -> Admin:
        name = _require(name, "Name is required")
        email = _validate_email(_require(email, "Email is required"))
        _validate_new_password(password, confirm_password)
        if self.repo.get_admin_by_email(email) is not None:
            raise Conflict("Email already registered")
        try:
            admin = self.repo.create_admin(
                name=name,
                email=email,
                password_hash=hash_password(password, self.settings.bcrypt_rounds),
            )
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict("Email already registered") from exc
        logger.info("Admin registered admin_id=%s status=%s", admin.id, admin.status)
        return admin

    # Login / sessions

    def login(self, kind: str, email: str, password: str) -> tuple[str, Principal]:
        if kind == "candidate":
            account = self.repo.get_candidate_by_email(email or "")
        elif kind == "admin":
            account = self.repo.get_admin_by_email(email or "")
        else:
            raise NotFound(f"Unknown role '{kind}'")

        if account is None or not verify_password(password or "", account.password_hash):
            logger.info("Login rejected kind=%s", kind)
            raise AuthenticationFailed("Invalid credentials")
        self._ensure_active(kind, account)

        self.repo.purge_expired_sessions()
        token = secrets.token_urlsafe(32)
        expires_at = utcnow() + timedelta(minutes=self.settings.session_ttl_min)
        self.repo.create_session(token=token, principal_kind=kind, principal_id=account.id, expires_at=expires_at)
        logger.info("Login succeeded kind=%s id=%s", kind, account.id)
        return token, self._principal(kind, account)

    def resolve_session(self, token: str | None) -> Principal:
        if not token:
            raise AuthenticationFailed("Authentication required")
        item = self.repo.get_session_by_token(token)
        if item is None:
            raise AuthenticationFailed("Invalid or expired session")
        if _as_utc(item.expires_at) <= utcnow():
            self.repo.delete_session(token)
            raise AuthenticationFailed("Invalid or expired session")

        if item.principal_kind == "admin":
            account = self.repo.get_admin(item.principal_id)
        else:
            account = self.repo.get_candidate(item.principal_id)
        if account is None or account.status != "ACTIVE":
            raise AuthenticationFailed("Invalid or expired session")
        return self._principal(item.principal_kind, account)

    def logout(self, token: str | None) -> bool:
        if not token:
            return False
        return self.repo.delete_session(token) > 0

    # Profile

    def get_profile(self, principal: Principal) -> dict[str, Any]:
        account = self._account(principal)
        values = {
            "name": account.name,
            "email": account.email,
            "phone": account.phone if isinstance(account, Candidate) else None,
            "address": account.address if isinstance(account, Candidate) else None,
        }
        return {
            "id": account.id,
            "kind": principal.kind,
            **values,
            "role": principal.role,
            "status": account.status,
            "completion_percentage": completion_percentage(values),
            "created_at": account.created_at.isoformat(),
        }

    def update_profile(self, principal: Principal, data: dict[str, Any]) -> dict[str, Any]:
        name = str(data.get("name") or "").strip()
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationFailed(f"Name must be at least {MIN_NAME_LENGTH} characters long")
        values: dict[str, Any] = {"name": name}

        if principal.kind == "candidate":
            phone = str(data.get("phone") or "").strip()
            if phone and not PHONE_PATTERN.match(phone):
                raise ValidationFailed("Invalid phone number format")
            values["phone"] = phone
            values["address"] = str(data.get("address") or "").strip()
            self.repo.update_candidate(principal.id, values)
        else:
            self.repo.update_admin(principal.id, values)
        logger.info("Profile updated kind=%s id=%s", principal.kind, principal.id)
        return self.get_profile(principal)

    def change_password(self, principal: Principal, current_password: str, new_password: str) -> None:
        account = self._account(principal)
        if not verify_password(current_password or "", account.password_hash):
            raise AuthenticationFailed("Current password is incorrect")
        _validate_new_password(new_password or "")
        password_hash = hash_password(new_password, self.settings.bcrypt_rounds)
        if principal.kind == "candidate":
            self.repo.update_candidate(principal.id, {"password_hash": password_hash})
        else:
            self.repo.update_admin(principal.id, {"password_hash": password_hash})
        logger.info("Password changed kind=%s id=%s", principal.kind, principal.id)

    # Admin management

    def list_admins(self, principal: Principal) -> list[Admin]:
        require_drh(principal)
        return self.repo.list_admins()

    def create_admin(
        self,
        principal: Principal | None,
        *,
        name: str,
        email: str,
        password: str,
        role: str = "RH",
    ) -> Admin:
        """Create an ACTIVE admin. ``principal`` is None only for the CLI bootstrap."""
        if principal is not None:
            require_drh(principal)
        name = _require(name, "Name is required")
        email = _validate_email(_require(email, "Email is required"))
        _validate_new_password(password or "")
        if role not in ADMIN_ROLES:
            raise ValidationFailed(f"Invalid role '{role}'. Must be one of {', '.join(ADMIN_ROLES)}")
        if self.repo.get_admin_by_email(email) is not None:
            raise Conflict("Email already registered")
        admin = self.repo.create_admin(
            name=name,
            email=email,
            password_hash=hash_password(password, self.settings.bcrypt_rounds),
            role=role,
            status="ACTIVE",
        )
        logger.info("Admin created admin_id=%s role=%s", admin.id, role)
        return admin

    def set_admin_status(self, principal: Principal, admin_id: int, status: str) -> Admin:
        require_drh(principal)
        if status not in ADMIN_STATUSES:
            raise ValidationFailed(f"Invalid status '{status}'. Must be one of {', '.join(ADMIN_STATUSES)}")
        if self.repo.get_admin(admin_id) is None:
            raise NotFound("Admin not found")
        if admin_id == principal.id and status != "ACTIVE":
            raise Conflict("You cannot deactivate your own account")
        admin = self.repo.update_admin(admin_id, {"status": status})
        logger.info("Admin status changed admin_id=%s status=%s by=%s", admin_id, status, principal.id)
        return admin

    def _account(self, principal: Principal) -> Admin | Candidate:
        if principal.kind == "admin":
            account = self.repo.get_admin(principal.id)
        else:
            account = self.repo.get_candidate(principal.id)
        if account is None:
            raise NotFound("Account not found")
        return account

    @staticmethod
    def _ensure_active(kind: str, account: Admin | Candidate) -> None:
        if kind == "candidate":
            if account.status != "ACTIVE":
                raise PermissionDenied("Account is inactive")
            return
        if account.status == "PENDING":
            raise PermissionDenied("Your account is pending approval")
        if account.status != "ACTIVE":
            raise PermissionDenied("Your account has been deactivated")

    @staticmethod
    def _principal(kind: str, account: Admin | Candidate) -> Principal:
        return Principal(
            kind=kind,
            id=account.id,
            name=account.name,
            email=account.email,
            role=account.role if isinstance(account, Admin) else None,
        )


def require_drh(principal: Principal) -> None:
    if not principal.is_admin or principal.role != "DRH":
        raise PermissionDenied("Only DRH administrators can manage admin accounts")
