"""Tests for date helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from recent_repos.core.timeutil import months_ago, to_naive_utc, to_utc_date


class TestMonthsAgo:
    @pytest.mark.parametrize(
        ("today", "months", "expected"),
        [
            (date(2026, 10, 19), 6, date(2026, 4, 19)),
            (date(2026, 3, 15), 6, date(2025, 9, 15)),
            (date(2026, 8, 31), 6, date(2026, 2, 28)),
            (date(2024, 8, 31), 6, date(2024, 2, 29)),
            (date(2026, 1, 1), 0, date(2026, 1, 1)),
            (date(2026, 12, 31), 12, date(2025, 12, 31)),
        ],
    )
    def test_months_ago(self, today: date, months: int, expected: date) -> None:
        assert months_ago(today, months) == expected


class TestUtcConversion:
    def test_aware_timestamp_is_converted(self) -> None:
        tz = timezone(timedelta(hours=9))
        assert to_utc_date(datetime(2026, 5, 1, 8, 0, tzinfo=tz)) == date(2026, 4, 30)

    def test_naive_timestamp_is_treated_as_utc(self) -> None:
        assert to_utc_date(datetime(2026, 5, 1, 23, 59)) == date(2026, 5, 1)

    def test_to_naive_utc(self) -> None:
        tz = timezone(timedelta(hours=-5))
        value = datetime(2026, 5, 1, 22, 0, 0, 123456, tzinfo=tz)

        assert to_naive_utc(value) == datetime(2026, 5, 2, 3, 0, 0)
