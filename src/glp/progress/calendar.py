"""Activity heatmap: minutes learned per UTC day over a fixed window."""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from glp.progress.streak import ActivityRecord, utc_date, utc_today

DEFAULT_WINDOW_DAYS = 365

# (exclusive lower bound in minutes, level), checked from the top
LEVEL_THRESHOLDS: list[tuple[float, int]] = [
    (120, 4),
    (60, 3),
    (30, 2),
    (0, 1),
]


@dataclass(frozen=True)
class CalendarDay:
    date: date
    minutes: float
    level: int

    @property
    def count(self) -> int:
        """Whole minutes for display, rounded half up."""
        return math.floor(self.minutes + 0.5)


def activity_level(minutes: float) -> int:
    """Map minutes learned in a day to a heatmap level 0-4."""
    for lower, level in LEVEL_THRESHOLDS:
        if minutes > lower:
            return level
    return 0


def minutes_by_day(records: Iterable[ActivityRecord]) -> dict[date, float]:
    minutes: dict[date, float] = defaultdict(float)
    for record in records:
        minutes[utc_date(record.last_watched)] += record.time_spent / 60
    return minutes


def build_calendar(
    records: Iterable[ActivityRecord],
    window_days: int = DEFAULT_WINDOW_DAYS,
    today: date | None = None,
) -> list[CalendarDay]:
    """One entry per day for [today - (window_days - 1), today], oldest first."""
    if window_days < 1:
        msg = "window_days must be positive"
        raise ValueError(msg)
    if today is None:
        today = utc_today()

    minutes = minutes_by_day(records)
    start = today - timedelta(days=window_days - 1)
    calendar = []
    for offset in range(window_days):
        day = start + timedelta(days=offset)
        spent = minutes.get(day, 0.0)
        calendar.append(CalendarDay(date=day, minutes=spent, level=activity_level(spent)))
    return calendar
