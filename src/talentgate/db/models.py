from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from talentgate.db.base import Base, TimestampMixin


class Candidate(TimestampMixin, Base):
    __tablename__ = "candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    address: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE", nullable=False)

    applications: Mapped[list[Application]] = relationship(back_populates="candidate")


class Admin(TimestampMixin, Base):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(10), default="RH", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="PENDING", nullable=False)


class AuthSession(TimestampMixin, Base):
    __tablename__ = "auth_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    principal_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    principal_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class JobPosition(TimestampMixin, Base):
    __tablename__ = "job_positions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    ar_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class Wilaya(Base):
    __tablename__ = "wilayas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    ar_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)


class Commune(Base):
    __tablename__ = "communes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    wilaya_id: Mapped[int] = mapped_column(ForeignKey("wilayas.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)


class Application(TimestampMixin, Base):
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    candidate_id: Mapped[int] = mapped_column(ForeignKey("candidates.id"), index=True)
    job_position_id: Mapped[int] = mapped_column(ForeignKey("job_positions.id"), index=True)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    mobile: Mapped[str] = mapped_column(String(40), nullable=False)
    birth_certificate_number: Mapped[str] = mapped_column(String(80), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    wilaya_id: Mapped[int] = mapped_column(ForeignKey("wilayas.id"), index=True)
    commune_id: Mapped[int] = mapped_column(ForeignKey("communes.id"))
    photo: Mapped[str | None] = mapped_column(String(600), nullable=True)
    profile_image: Mapped[str | None] = mapped_column(String(600), nullable=True)
    cv: Mapped[str | None] = mapped_column(String(600), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="PENDING", index=True, nullable=False)
    experience: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    certifications: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    soft_skills: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    languages: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    certificates: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    candidate: Mapped[Candidate] = relationship(back_populates="applications")
    job_position: Mapped[JobPosition] = relationship()
    wilaya: Mapped[Wilaya] = relationship()
    commune: Mapped[Commune] = relationship()
    educations: Mapped[list[Education]] = relationship(
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="Education.sort_order",
    )


class Education(TimestampMixin, Base):
    __tablename__ = "educations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), index=True
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    level: Mapped[str | None] = mapped_column(String(40), nullable=True)
    institution: Mapped[str] = mapped_column(String(255), nullable=False)
    field_of_study: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    application: Mapped[Application] = relationship(back_populates="educations")
