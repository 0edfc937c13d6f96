from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def shift_years(day: date, years: int) -> date:
    """Move ``day`` back by ``years`` calendar years; Feb 29 lands on Feb 28."""
    target_year = day.year - years
    try:
        return day.replace(year=target_year)
    except ValueError:
        return day.replace(year=target_year, day=28)


def compute_age(birth_date: date, today: date) -> int:
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def local_today(tz_name: str, now: datetime | None = None) -> date:
    return (now or datetime.now(UTC)).astimezone(ZoneInfo(tz_name)).date()


def local_midnight_utc(day: date, tz_name: str) -> datetime:
    return datetime.combine(day, time.min, tzinfo=ZoneInfo(tz_name)).astimezone(UTC)


def first_of_month(day: date) -> date:
    return day.replace(day=1)


def first_of_previous_month(day: date) -> date:
    return (first_of_month(day) - timedelta(days=1)).replace(day=1)
