"""Streak milestone badges."""

from __future__ import annotations

# (days, name), ordered by threshold
STREAK_MILESTONES: list[tuple[int, str]] = [
    (7, "Week Warrior"),
    (30, "Monthly Master"),
    (100, "Century Champion"),
    (365, "Yearly Legend"),
]


def evaluate_milestones(longest_streak: int) -> list[dict]:
    """Every milestone with whether the longest streak reaches it."""
    return [
        {"days": days, "name": name, "achieved": longest_streak >= days}
        for days, name in STREAK_MILESTONES
    ]
