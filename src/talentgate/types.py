from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator, model_validator

EducationType = Literal["universitaire", "formation-professionnelle", "formation"]
UniversityLevel = Literal["Licence", "Master", "Doctorat"]
SkillLevel = Literal["Basic", "Intermediate", "Fluent", "Expert"]
LanguageLevel = Literal["Basic", "Intermediate", "Fluent", "Native"]
PrincipalKind = Literal["candidate", "admin"]
AdminRole = Literal["RH", "DRH"]

MAX_EDUCATION_ENTRIES: dict[str, int] = {
    "universitaire": 3,
    "formation-professionnelle": 2,
    "formation": 5,
}


class _Entry(BaseModel):
    # Collections are free-form: unknown keys survive a round trip.
    model_config = ConfigDict(extra="allow")


class ExperienceEntry(_Entry):
    title: str = ""
    company: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


class CertificationEntry(_Entry):
    name: str = ""
    issuer: str = ""
    date: str = ""
    description: str = ""


class SoftSkillEntry(_Entry):
    name: str
    level: SkillLevel = "Basic"


class LanguageEntry(_Entry):
    name: str
    level: LanguageLevel = "Basic"


class EducationEntry(BaseModel):
    type: EducationType
    level: UniversityLevel | None = None
    institution: str
    field_of_study: str
    start_date: date
    end_date: date | None = None
    is_active: bool = False
    description: str | None = None

    @field_validator("institution", "field_of_study")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @model_validator(mode="after")
    def validate_level(self) -> "EducationEntry":
        if self.type == "universitaire" and self.level is None:
            raise ValueError("level is required for universitaire education")
        if self.type != "universitaire":
            self.level = None
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class Principal(BaseModel):
    kind: PrincipalKind
    id: int
    name: str
    email: str
    role: AdminRole | None = None

    @property
    def is_admin(self) -> bool:
        return self.kind == "admin"


COLLECTION_FIELDS: dict[str, TypeAdapter[Any]] = {
    "experience": TypeAdapter(list[ExperienceEntry]),
    "certifications": TypeAdapter(list[CertificationEntry]),
    "soft_skills": TypeAdapter(list[SoftSkillEntry]),
    "languages": TypeAdapter(list[LanguageEntry]),
    "certificates": TypeAdapter(list[str]),
}
