"""Tests for course rollups from lesson progress."""

from datetime import datetime, timezone

from glp.db.models import LessonProgress
from glp.progress.aggregator import round_half_up, summarize_course


def _progress(progress: float, time_spent: int, completed: bool, last_watched: datetime) -> LessonProgress:
    return LessonProgress(
        user_id="user-1",
        lesson_id="lesson",
        progress=progress,
        time_spent=time_spent,
        completed=completed,
        last_watched=last_watched,
    )


class TestSummarizeCourse:
    def test_course_without_lessons(self):
        summary = summarize_course("course-1", "user-1", [])
        assert summary == {
            "course_id": "course-1",
            "user_id": "user-1",
            "total_lessons": 0,
            "completed_lessons": 0,
            "progress": 0,
            "time_spent": 0,
            "last_accessed": None,
        }

    def test_one_complete_one_untouched(self):
        watched = datetime(2026, 3, 15, 9, tzinfo=timezone.utc)
        summary = summarize_course(
            "course-1",
            "user-1",
            [[_progress(100, 300, True, watched)], []],
        )
        assert summary["progress"] == 50
        assert summary["completed_lessons"] == 1
        assert summary["total_lessons"] == 2
        assert summary["time_spent"] == 300
        assert summary["last_accessed"] == watched

    def test_partial_progress_averaged_and_rounded(self):
        watched = datetime(2026, 3, 15, tzinfo=timezone.utc)
        summary = summarize_course(
            "course-1",
            "user-1",
            [
                [_progress(33.0, 10, False, watched)],
                [_progress(34.5, 20, False, watched)],
                [],
            ],
        )
        # (33 + 34.5 + 0) / 3 = 22.5 -> 23
        assert summary["progress"] == 23
        assert summary["completed_lessons"] == 0
        assert summary["time_spent"] == 30

    def test_last_accessed_is_most_recent(self):
        older = datetime(2026, 3, 1, tzinfo=timezone.utc)
        newer = datetime(2026, 3, 10, tzinfo=timezone.utc)
        summary = summarize_course(
            "course-1",
            "user-1",
            [[_progress(10, 5, False, newer)], [_progress(95, 5, True, older)]],
        )
        assert summary["last_accessed"] == newer

    def test_untouched_course_has_no_last_access(self):
        summary = summarize_course("course-1", "user-1", [[], [], []])
        assert summary["total_lessons"] == 3
        assert summary["progress"] == 0
        assert summary["last_accessed"] is None

    def test_bounds(self):
        watched = datetime(2026, 3, 15, tzinfo=timezone.utc)
        summary = summarize_course(
            "course-1",
            "user-1",
            [[_progress(100, 60, True, watched)] for _ in range(4)],
        )
        assert 0 <= summary["completed_lessons"] <= summary["total_lessons"]
        assert summary["progress"] == 100


class TestRoundHalfUp:
    def test_half_rounds_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(0.5) == 1

    def test_below_half_rounds_down(self):
        assert round_half_up(12.49) == 12
