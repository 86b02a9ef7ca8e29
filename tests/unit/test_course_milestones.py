"""Tests for course completion milestones and their email jobs."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from glp.progress.course_milestones import (
    MILESTONE_EMAIL_JOB,
    crossed_milestone,
    enqueue_milestone_email,
)

NOTICE = {"milestone": 50, "percent": 52, "completed_lessons": 13, "total_lessons": 25}


class TestCrossedMilestone:
    @pytest.mark.parametrize(
        ("percent", "milestone"),
        [
            (0, None),
            (24, None),
            (25, 25),
            (29, 25),
            (30, None),
            (50, 50),
            (54, 50),
            (75, 75),
            (99, None),
            (100, 100),
        ],
    )
    def test_windows(self, percent, milestone):
        assert crossed_milestone(percent) == milestone


class TestEnqueueMilestoneEmail:
    @pytest.mark.asyncio
    async def test_no_queue_configured(self):
        assert await enqueue_milestone_email(None, "user-1", "course-1", NOTICE) is False

    @pytest.mark.asyncio
    async def test_job_id_dedupes_per_milestone(self):
        pool = MagicMock()
        pool.enqueue_job = AsyncMock(return_value=object())

        assert await enqueue_milestone_email(pool, "user-1", "course-1", NOTICE) is True
        pool.enqueue_job.assert_awaited_once_with(
            MILESTONE_EMAIL_JOB,
            "user-1",
            "course-1",
            50,
            13,
            25,
            _job_id="milestone:user-1:course-1:50",
        )

    @pytest.mark.asyncio
    async def test_duplicate_job_not_queued(self):
        pool = MagicMock()
        pool.enqueue_job = AsyncMock(return_value=None)
        assert await enqueue_milestone_email(pool, "user-1", "course-1", NOTICE) is False

    @pytest.mark.asyncio
    async def test_queue_failure_is_swallowed(self):
        pool = MagicMock()
        pool.enqueue_job = AsyncMock(side_effect=ConnectionError("redis down"))
        assert await enqueue_milestone_email(pool, "user-1", "course-1", NOTICE) is False
