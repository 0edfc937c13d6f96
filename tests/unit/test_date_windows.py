from datetime import UTC, datetime

import pytest

from talentgate.core.filters import ApplicationFilter, created_window
from talentgate.errors import ValidationFailed

TZ = "Africa/Algiers"
NOW = datetime(2024, 6, 14, 10, 0, tzinfo=UTC)


def test_today_is_local_midnight_to_midnight() -> None:
    window = created_window("today", now=NOW, tz_name=TZ)
    assert window.start == datetime(2024, 6, 13, 23, 0, tzinfo=UTC)
    assert window.end == datetime(2024, 6, 14, 23, 0, tzinfo=UTC)


def test_yesterday_ends_where_today_starts() -> None:
    yesterday = created_window("yesterday", now=NOW, tz_name=TZ)
    today = created_window("today", now=NOW, tz_name=TZ)
    assert yesterday.end == today.start
    assert yesterday.start == datetime(2024, 6, 12, 23, 0, tzinfo=UTC)


def test_rolling_windows_include_today() -> None:
    last_7 = created_window("last_7_days", now=NOW, tz_name=TZ)
    last_30 = created_window("last_30_days", now=NOW, tz_name=TZ)
    assert last_7.start == datetime(2024, 6, 7, 23, 0, tzinfo=UTC)
    assert last_30.start == datetime(2024, 5, 15, 23, 0, tzinfo=UTC)
    assert last_7.end == last_30.end == datetime(2024, 6, 14, 23, 0, tzinfo=UTC)


def test_calendar_month_windows() -> None:
    now = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)
    this_month = created_window("this_month", now=now, tz_name=TZ)
    last_month = created_window("last_month", now=now, tz_name=TZ)
    assert this_month.start == datetime(2024, 2, 29, 23, 0, tzinfo=UTC)
    assert last_month.start == datetime(2024, 1, 31, 23, 0, tzinfo=UTC)
    assert last_month.end == this_month.start


def test_last_month_wraps_the_year() -> None:
    window = created_window("last_month", now=datetime(2025, 1, 5, 12, 0, tzinfo=UTC), tz_name="UTC")
    assert window.start == datetime(2024, 12, 1, tzinfo=UTC)
    assert window.end == datetime(2025, 1, 1, tzinfo=UTC)


def test_local_date_decides_the_day() -> None:
    late = datetime(2024, 6, 14, 23, 30, tzinfo=UTC)
    window = created_window("today", now=late, tz_name=TZ)
    assert window.start == datetime(2024, 6, 14, 23, 0, tzinfo=UTC)


def test_unknown_bucket_is_rejected() -> None:
    with pytest.raises(ValidationFailed):
        created_window("last_year", now=NOW, tz_name=TZ)


def test_filter_builds_one_predicate_per_bound() -> None:
    assert ApplicationFilter().conditions(now=NOW, tz_name=TZ) == []
    criteria = ApplicationFilter(job_position_id=2, status="pending", age_range="18-25", date_range="today")
    assert len(criteria.conditions(now=NOW, tz_name=TZ)) == 6


def test_blank_filter_values_are_ignored() -> None:
    criteria = ApplicationFilter(status="", age_range=" ", date_range="")
    assert criteria.conditions(now=NOW, tz_name=TZ) == []


def test_invalid_status_filter_is_rejected() -> None:
    with pytest.raises(ValidationFailed):
        ApplicationFilter(status="ARCHIVED").conditions(now=NOW, tz_name=TZ)
