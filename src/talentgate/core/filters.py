"""Translate admin filter selections into SQLAlchemy predicates.

Every criterion is optional and the resulting predicates are AND-combined by
the caller. Age brackets and created-date buckets are resolved against the
clock at request time.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import ColumnElement

from talentgate.core.dates import (
    first_of_month,
    first_of_previous_month,
    local_midnight_utc,
    local_today,
    shift_years,
)
from talentgate.core.workflow import ApplicationStatus
from talentgate.db.models import Application
from talentgate.errors import ValidationFailed

DATE_RANGES: tuple[str, ...] = ("today", "yesterday", "last_7_days", "last_30_days", "this_month", "last_month")

_CLOSED_BRACKET = re.compile(r"^\s*(\d{1,3})\s*-\s*(\d{1,3})\s*$")
_OPEN_BRACKET = re.compile(r"^\s*(\d{1,3})\s*\+\s*$")


@dataclass(frozen=True, slots=True)
class AgeBracket:
    min_age: int
    max_age: int | None = None

    def contains(self, age: int) -> bool:
        if age < self.min_age:
            return False
        return self.max_age is None or age <= self.max_age


@dataclass(frozen=True, slots=True)
class BirthDateBounds:
    # after is exclusive, on_or_before is inclusive
    after: date | None
    on_or_before: date


@dataclass(frozen=True, slots=True)
class DateWindow:
    start: datetime
    end: datetime


def parse_age_range(value: str) -> AgeBracket:
    closed = _CLOSED_BRACKET.match(value)
    if closed:
        min_age, max_age = int(closed.group(1)), int(closed.group(2))
        if min_age > max_age:
            raise ValidationFailed(f"Invalid age range '{value}': minimum exceeds maximum")
        return AgeBracket(min_age=min_age, max_age=max_age)

    open_ended = _OPEN_BRACKET.match(value)
    if open_ended:
        return AgeBracket(min_age=int(open_ended.group(1)))

    raise ValidationFailed(f"Invalid age range '{value}'. Use 'min-max' or 'min+'")


def birth_date_bounds(bracket: AgeBracket, today: date) -> BirthDateBounds:
    """Birth dates whose age on ``today`` falls inside ``bracket``.

    age >= min  <=>  birth_date <= today - min years
    age <= max  <=>  birth_date >  today - (max + 1) years
    """
    on_or_before = shift_years(today, bracket.min_age)
    after = None if bracket.max_age is None else shift_years(today, bracket.max_age + 1)
    return BirthDateBounds(after=after, on_or_before=on_or_before)


def created_window(bucket: str, *, now: datetime, tz_name: str) -> DateWindow:
    today = local_today(tz_name, now)
    tomorrow = today + timedelta(days=1)

    if bucket == "today":
        start, end = today, tomorrow
    elif bucket == "yesterday":
        start, end = today - timedelta(days=1), today
    elif bucket == "last_7_days":
        start, end = today - timedelta(days=6), tomorrow
    elif bucket == "last_30_days":
        start, end = today - timedelta(days=29), tomorrow
    elif bucket == "this_month":
        start, end = first_of_month(today), tomorrow
    elif bucket == "last_month":
        start, end = first_of_previous_month(today), first_of_month(today)
    else:
        raise ValidationFailed(f"Invalid date range '{bucket}'. Must be one of {', '.join(DATE_RANGES)}")

    return DateWindow(start=local_midnight_utc(start, tz_name), end=local_midnight_utc(end, tz_name))


class ApplicationFilter(BaseModel):
    job_position_id: int | None = None
    wilaya_id: int | None = None
    status: str | None = None
    age_range: str | None = None
    date_range: str | None = None
    page: int = Field(default=1, ge=1)

    @field_validator("status", "age_range", "date_range", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def conditions(self, *, now: datetime | None = None, tz_name: str = "UTC") -> list[ColumnElement[bool]]:
        now = now or datetime.now(UTC)
        clauses: list[ColumnElement[bool]] = []

        if self.job_position_id is not None:
            clauses.append(Application.job_position_id == self.job_position_id)
        if self.wilaya_id is not None:
            clauses.append(Application.wilaya_id == self.wilaya_id)
        if self.status is not None:
            clauses.append(Application.status == ApplicationStatus.parse(self.status).value)
        if self.age_range is not None:
            bounds = birth_date_bounds(parse_age_range(self.age_range), local_today(tz_name, now))
            clauses.append(Application.birth_date <= bounds.on_or_before)
            if bounds.after is not None:
                clauses.append(Application.birth_date > bounds.after)
        if self.date_range is not None:
            window = created_window(self.date_range, now=now, tz_name=tz_name)
            clauses.append(Application.created_at >= window.start)
            clauses.append(Application.created_at < window.end)
        return clauses


@dataclass(slots=True)
class Page:
    number: int
    size: int
    total: int

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.size

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.size)) if self.size else 1
