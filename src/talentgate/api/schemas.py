from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from talentgate.types import Principal


class SignupRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    token: str
    principal: Principal


class SignupResponse(BaseModel):
    id: int
    name: str
    email: str
    status: str
    message: str


class ProfileUpdateRequest(BaseModel):
    name: str = ""
    phone: str | None = None
    address: str | None = None


class PasswordChangeRequest(BaseModel):
    current_password: str = ""
    new_password: str = ""


class ProfileResponse(BaseModel):
    id: int
    kind: str
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    role: str | None = None
    status: str
    completion_percentage: int
    created_at: str


class JobPositionRequest(BaseModel):
    name: str = ""
    ar_name: str = ""


class JobPositionResponse(BaseModel):
    id: int
    name: str
    ar_name: str


class WilayaResponse(BaseModel):
    id: int
    name: str
    ar_name: str


class CommuneResponse(BaseModel):
    id: int
    wilaya_id: int
    name: str


class ApplicationRequest(BaseModel):
    """Wizard payload. Required-field checks happen in the service so the
    caller gets ``Missing required field: <name>`` instead of a schema error."""

    model_config = ConfigDict(extra="allow")

    job_position_id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    mobile: str | None = None
    birth_certificate_number: str | None = None
    birth_date: str | None = None
    wilaya_id: int | None = None
    commune_id: int | None = None
    photo: str | None = None
    profile_image: str | None = None
    cv: str | None = None
    experience: Any = None
    certifications: Any = None
    soft_skills: Any = None
    languages: Any = None
    certificates: Any = None
    educations: Any = None


class EducationsRequest(BaseModel):
    educations: Any = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: str | None = None


class ApplicationPageResponse(BaseModel):
    items: list[dict[str, Any]]
    total: int
    page: int
    page_size: int
    total_pages: int


class StatusCountsResponse(BaseModel):
    pending: int
    reviewing: int
    accepted: int
    rejected: int


class DashboardResponse(BaseModel):
    total_applications: int
    pending_applications: int
    reviewing_applications: int
    accepted_applications: int
    rejected_applications: int
    total_admins: int
    recent_applications: list[dict[str, Any]]


class AdminCreateRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    role: str = "RH"


class AdminStatusRequest(BaseModel):
    status: str = ""


class AdminResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    status: str
    created_at: str


class UploadResponse(BaseModel):
    filename: str
    url: str
    size: int
