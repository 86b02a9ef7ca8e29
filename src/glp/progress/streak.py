"""Daily learning streaks over UTC calendar days.

A day is active when any progress record last touched on that day has
time spent or a completion. The current streak survives one missed day
(the grace period): a learner active yesterday but not yet today keeps
their streak, since today may still be in progress.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

GRACE_PERIOD_DAYS = 1

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class ActivityRecord:
    """The slice of a progress record that streaks and the heatmap read."""

    last_watched: datetime
    time_spent: int = 0
    completed: bool = False

    @property
    def is_active(self) -> bool:
        return self.time_spent > 0 or self.completed


@dataclass(frozen=True)
class StreakState:
    current_streak: int
    longest_streak: int
    last_learning_date: date | None


def utc_date(dt: datetime) -> date:
    """Calendar date of ``dt`` in UTC. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(timezone.utc).date()


def utc_today(now: datetime | None = None) -> date:
    if now is None:
        now = datetime.now(timezone.utc)
    return utc_date(now)


def group_active_days(records: Iterable[ActivityRecord]) -> dict[date, bool]:
    """Bucket records by UTC date; a date is active if any record on it is."""
    days: dict[date, bool] = {}
    for record in records:
        day = utc_date(record.last_watched)
        days[day] = days.get(day, False) or record.is_active
    return days


def compute_streak_from_days(
    days: Mapping[date, bool] | Iterable[tuple[date, bool]],
    today: date,
) -> StreakState:
    """Streak state from (date, is_active) pairs alone."""
    pairs = days.items() if isinstance(days, Mapping) else days
    active = {day for day, is_active in pairs if is_active}
    if not active:
        return StreakState(current_streak=0, longest_streak=0, last_learning_date=None)

    anchor: date | None = None
    for offset in range(GRACE_PERIOD_DAYS + 1):
        candidate = today - timedelta(days=offset)
        if candidate in active:
            anchor = candidate
            break

    current = 0
    if anchor is not None:
        cursor = anchor
        while cursor in active:
            current += 1
            cursor -= _ONE_DAY

    longest = 0
    run = 0
    previous: date | None = None
    for day in sorted(active):
        run = run + 1 if previous is not None and day - previous == _ONE_DAY else 1
        longest = max(longest, run)
        previous = day

    return StreakState(
        current_streak=current,
        longest_streak=max(longest, current),
        last_learning_date=anchor if anchor is not None else max(active),
    )


def compute_streak(records: Iterable[ActivityRecord], today: date | None = None) -> StreakState:
    """Current and longest streak for a user's progress records."""
    if today is None:
        today = utc_today()
    return compute_streak_from_days(group_active_days(records), today)
