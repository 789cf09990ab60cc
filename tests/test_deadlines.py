from __future__ import annotations

from datetime import UTC, datetime, timedelta

from permitflow.domain.deadlines import add_months, add_years, as_utc, compute_deadline, days_until, is_past


def test_compute_deadline_adds_whole_days() -> None:
    base = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    assert compute_deadline(base, 7) == datetime(2025, 1, 8, 12, 0, tzinfo=UTC)


def test_naive_datetimes_are_treated_as_utc() -> None:
    naive = datetime(2025, 3, 1, 8, 30)
    assert as_utc(naive) == datetime(2025, 3, 1, 8, 30, tzinfo=UTC)
    assert compute_deadline(naive, 1).tzinfo is UTC


def test_add_months_clamps_to_end_of_short_month() -> None:
    assert add_months(datetime(2025, 1, 31, tzinfo=UTC), 1) == datetime(2025, 2, 28, tzinfo=UTC)
    assert add_months(datetime(2025, 1, 15, tzinfo=UTC), 12) == datetime(2026, 1, 15, tzinfo=UTC)


def test_add_years_handles_leap_day() -> None:
    assert add_years(datetime(2024, 2, 29, tzinfo=UTC), 1) == datetime(2025, 2, 28, tzinfo=UTC)
    assert add_years(datetime(2025, 1, 1, tzinfo=UTC), 2) == datetime(2027, 1, 1, tzinfo=UTC)


def test_days_until_rounds_partial_days_up() -> None:
    now = datetime(2025, 1, 1, tzinfo=UTC)
    assert days_until(now + timedelta(days=10, hours=12), now) == 11
    assert days_until(now + timedelta(days=30), now) == 30
    assert days_until(now - timedelta(days=2), now) == -2


def test_is_past_is_strict_and_ignores_missing_deadline() -> None:
    now = datetime(2025, 1, 1, tzinfo=UTC)
    assert is_past(now - timedelta(seconds=1), now) is True
    assert is_past(now, now) is False
    assert is_past(None, now) is False
