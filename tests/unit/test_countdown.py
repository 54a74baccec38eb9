"""Tests for countdown state computation and labels."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from wisecompanion.countdown import (
    EXPIRED,
    UNBOUNDED,
    Countdown,
    CountdownKind,
    countdown_label,
    countdown_state,
    parse_date,
)


def test_active_countdown_counts_whole_days():
    state = countdown_state("2025-01-10", datetime(2025, 1, 5, 0, 0, 0))
    assert state == Countdown(CountdownKind.ACTIVE, days=5)
    assert state.label == "剩余 5 天"


def test_partial_days_are_not_rounded_up():
    assert countdown_state("2025-01-10", datetime(2025, 1, 5, 23, 0, 0)).days == 5
    assert countdown_state("2025-01-10", datetime(2025, 1, 9, 0, 0, 1)).days == 1


def test_expired_after_end_of_day():
    assert countdown_state("2025-01-10", datetime(2025, 1, 11, 0, 0, 1)) == EXPIRED


def test_last_day_until_midnight():
    state = countdown_state("2025-01-10", datetime(2025, 1, 10, 23, 59, 59))
    assert state == Countdown(CountdownKind.ACTIVE, days=0)
    assert state.label == "最后一天"


@pytest.mark.parametrize("end_date", [None, "", "长期", "2025-13-01"])
def test_missing_or_unparseable_dates_are_unbounded(end_date):
    for now in (datetime(2000, 1, 1), datetime(2099, 12, 31, 23, 59)):
        assert countdown_state(end_date, now) == UNBOUNDED
    assert UNBOUNDED.label == "长期有效"


def test_aware_now_uses_its_own_timezone():
    shanghai = ZoneInfo("Asia/Shanghai")
    # 2025-01-10 17:00 UTC is already 2025-01-11 01:00 in Shanghai.
    now = datetime(2025, 1, 10, 17, 0, tzinfo=timezone.utc).astimezone(shanghai)
    assert countdown_state("2025-01-10", now) == EXPIRED
    assert countdown_state("2025-01-11", now) == Countdown(CountdownKind.ACTIVE, days=0)


def test_date_objects_are_accepted():
    assert countdown_state(date(2025, 1, 7), datetime(2025, 1, 5, 12)).days == 2


def test_expired_label():
    assert countdown_label(EXPIRED) == "已过期"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2025-01-10", date(2025, 1, 10)),
        ("2025.01.10", date(2025, 1, 10)),
        ("2025-01-10T08:00:00Z", date(2025, 1, 10)),
        ("10/01/2025", None),
        (20250110, None),
    ],
)
def test_parse_date(raw, expected):
    assert parse_date(raw) == expected
