"""Course completion milestones (25/50/75/100%) and their announcement emails.

Milestone detection runs after a progress write and is best-effort: a
failure here is logged and never fails the write itself.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from glp.db.models import CourseMilestoneNotice, CourseModule, Lesson, LessonProgress
from glp.progress.aggregator import round_half_up

logger = logging.getLogger(__name__)

COURSE_MILESTONES = (25, 50, 75, 100)
MILESTONE_WINDOW = 5
MILESTONE_EMAIL_JOB = "send_progress_milestone_email"


def crossed_milestone(percent: int) -> int | None:
    """Milestone whose window [m, m + 5) contains ``percent``."""
    for milestone in COURSE_MILESTONES:
        if milestone <= percent < milestone + MILESTONE_WINDOW:
            return milestone
    return None


async def course_id_for_lesson(db: AsyncSession, lesson_id: str) -> str | None:
    result = await db.execute(
        select(CourseModule.course_id)
        .join(Lesson, Lesson.module_id == CourseModule.id)
        .where(Lesson.id == lesson_id)
    )
    return result.scalar_one_or_none()


async def check_course_milestone(db: AsyncSession, user_id: str, course_id: str) -> dict | None:
    """Record a newly reached milestone. Returns it, or None if none is new."""
    total_result = await db.execute(
        select(func.count(Lesson.id))
        .join(CourseModule, Lesson.module_id == CourseModule.id)
        .where(CourseModule.course_id == course_id)
    )
    total_lessons = total_result.scalar() or 0
    if total_lessons == 0:
        return None

    completed_result = await db.execute(
        select(func.count(LessonProgress.id))
        .join(Lesson, LessonProgress.lesson_id == Lesson.id)
        .join(CourseModule, Lesson.module_id == CourseModule.id)
        .where(
            CourseModule.course_id == course_id,
            LessonProgress.user_id == user_id,
            LessonProgress.completed.is_(True),
        )
    )
    completed_lessons = completed_result.scalar() or 0

    percent = round_half_up(completed_lessons / total_lessons * 100)
    milestone = crossed_milestone(percent)
    if milestone is None:
        return None

    stmt = (
        pg_insert(CourseMilestoneNotice)
        .values(user_id=user_id, course_id=course_id, milestone=milestone)
        .on_conflict_do_nothing(constraint="uq_milestone_user_course")
        .returning(CourseMilestoneNotice.id)
    )
    inserted = (await db.execute(stmt)).scalar_one_or_none()
    if inserted is None:
        return None  # Already announced

    return {
        "milestone": milestone,
        "percent": percent,
        "completed_lessons": completed_lessons,
        "total_lessons": total_lessons,
    }


async def record_course_milestone(db: AsyncSession, user_id: str, lesson_id: str) -> tuple[str, dict] | None:
    """Best-effort milestone check for the course owning ``lesson_id``.

    Runs in a savepoint so a failure leaves the progress write intact.
    """
    try:
        async with db.begin_nested():
            course_id = await course_id_for_lesson(db, lesson_id)
            if course_id is None:
                return None
            notice = await check_course_milestone(db, user_id, course_id)
            return (course_id, notice) if notice else None
    except Exception:
        logger.warning("Course milestone check failed for user %s", user_id, exc_info=True)
        return None


async def enqueue_milestone_email(pool: Any, user_id: str, course_id: str, notice: dict) -> bool:  # noqa: ANN401
    """Queue the milestone email on the arq worker. Returns True if queued."""
    if pool is None:
        return False
    milestone = notice["milestone"]
    try:
        job = await pool.enqueue_job(
            MILESTONE_EMAIL_JOB,
            user_id,
            course_id,
            milestone,
            notice["completed_lessons"],
            notice["total_lessons"],
            _job_id=f"milestone:{user_id}:{course_id}:{milestone}",
        )
    except Exception:
        logger.warning("Failed to enqueue milestone email for user %s", user_id, exc_info=True)
        return False
    return job is not None
