"""Countdown-to-expiry computation for activity cards.

``countdown_state`` is pure: the caller supplies "now", so a live display can
re-evaluate it on every tick without touching shared state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

_DATE_PATTERN = re.compile(r"^\s*(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")


class CountdownKind(str, Enum):
    """Possible countdown states."""

    UNBOUNDED = "unbounded"
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Countdown:
    """Countdown state for one activity; ``days`` is set only when active."""

    kind: CountdownKind
    days: Optional[int] = None

    @property
    def label(self) -> str:
        return countdown_label(self)


UNBOUNDED = Countdown(CountdownKind.UNBOUNDED)
EXPIRED = Countdown(CountdownKind.EXPIRED)


def parse_date(value: object) -> Optional[date]:
    """Parse the calendar date at the start of ``value``.

    Accepts ``YYYY-MM-DD`` with ``-``, ``/`` or ``.`` separators, optionally
    followed by a time component (Airtable date-time fields). Anything else,
    including impossible dates such as ``2025-02-30``, returns ``None``.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = _DATE_PATTERN.match(value)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def end_of_day(day: date, tzinfo=None) -> datetime:
    """Return the last representable instant of ``day``."""

    return datetime.combine(day, time.max, tzinfo=tzinfo)


def countdown_state(end_date: object, now: datetime) -> Countdown:
    """Compute the countdown for an activity ending on ``end_date``.

    Days are calendar days between ``now.date()`` and the end date; partial
    days are not rounded up.

    Args:
        end_date: ISO-like date string, ``date``, or ``None``.
        now: Current instant. Naive and aware values are both accepted; the
            end of day is taken in the same timezone as ``now``.

    Returns:
        ``UNBOUNDED`` when ``end_date`` is missing or unparseable, ``EXPIRED``
        once ``now`` is past the end of that day, otherwise an active
        countdown whose ``days`` is the number of whole calendar days left
        (``0`` on the last day).
    """

    parsed = parse_date(end_date)
    if parsed is None:
        return UNBOUNDED
    if end_of_day(parsed, now.tzinfo) < now:
        return EXPIRED
    return Countdown(CountdownKind.ACTIVE, days=(parsed - now.date()).days)


def countdown_label(countdown: Countdown) -> str:
    """Return the display label for ``countdown``."""

    if countdown.kind is CountdownKind.UNBOUNDED:
        return "长期有效"
    if countdown.kind is CountdownKind.EXPIRED:
        return "已过期"
    if not countdown.days:
        return "最后一天"
    return f"剩余 {countdown.days} 天"


def current_time(timezone_name: str | None = None) -> datetime:
    """Return "now" in the configured display timezone."""

    if not timezone_name:
        return datetime.now()
    return datetime.now(ZoneInfo(timezone_name))


__all__ = [
    "Countdown",
    "CountdownKind",
    "EXPIRED",
    "UNBOUNDED",
    "countdown_label",
    "countdown_state",
    "current_time",
    "end_of_day",
    "parse_date",
]
