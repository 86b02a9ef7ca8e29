"""Per-user, per-lesson progress records.

Writes merge into the existing row under a row lock: progress keeps its
maximum, time spent accumulates, and completion is sticky once progress
reaches the threshold.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from glp.db.models import CourseModule, Enrollment, Lesson, LessonProgress, User
from glp.progress.errors import storage_errors
from glp.progress.streak import ActivityRecord

logger = logging.getLogger(__name__)

COMPLETION_THRESHOLD = 90.0
MAX_PROGRESS = 100.0
# One interaction reports at most a day of watching
MAX_TIME_SPENT_DELTA = 86_400


def validate_update(progress: float, time_spent_delta: int) -> None:
    """Reject out-of-range input before touching the store."""
    if not 0 <= progress <= MAX_PROGRESS:
        msg = f"progress must be between 0 and {MAX_PROGRESS:g}, got {progress}"
        raise ValueError(msg)
    if not 0 <= time_spent_delta <= MAX_TIME_SPENT_DELTA:
        msg = f"time_spent_delta must be between 0 and {MAX_TIME_SPENT_DELTA}, got {time_spent_delta}"
        raise ValueError(msg)


def apply_progress_update(
    record: LessonProgress,
    progress: float,
    time_spent_delta: int,
    now: datetime,
) -> LessonProgress:
    """Merge one interaction into a progress record in place.

    completed_at is only stamped on the incomplete -> complete transition.
    """
    record.progress = max(record.progress or 0.0, progress)
    record.time_spent = (record.time_spent or 0) + time_spent_delta
    if progress >= COMPLETION_THRESHOLD and not record.completed:
        record.completed = True
        record.completed_at = now
    elif record.completed is None:
        record.completed = False
    record.last_watched = now
    return record


async def get_lesson_progress(db: AsyncSession, user_id: str, lesson_id: str) -> LessonProgress | None:
    """Fetch a user's record for a lesson, or None if they never opened it."""
    with storage_errors("get_lesson_progress"):
        result = await db.execute(
            select(LessonProgress).where(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id == lesson_id,
            )
        )
        return result.scalar_one_or_none()


async def upsert_lesson_progress(
    db: AsyncSession,
    user_id: str,
    lesson_id: str,
    progress: float,
    time_spent_delta: int = 0,
    *,
    now: datetime | None = None,
) -> LessonProgress:
    """Create or merge the user's record for a lesson. Flushes, does not commit.

    The row is inserted if missing (ON CONFLICT DO NOTHING) and then locked
    with SELECT ... FOR UPDATE, so two concurrent writes for the same lesson
    serialize instead of losing one update.
    """
    validate_update(progress, time_spent_delta)
    if now is None:
        now = datetime.now(timezone.utc)

    with storage_errors("upsert_lesson_progress"):
        # Users come from the identity provider; mirror the id on first write
        await db.execute(pg_insert(User).values(id=user_id).on_conflict_do_nothing(index_elements=["id"]))

        stmt = pg_insert(LessonProgress).values(
            id=str(uuid4()),
            user_id=user_id,
            lesson_id=lesson_id,
            progress=0.0,
            time_spent=0,
            completed=False,
            completed_at=None,
            last_watched=now,
        )
        await db.execute(stmt.on_conflict_do_nothing(constraint="uq_progress_user_lesson"))

        result = await db.execute(
            select(LessonProgress)
            .where(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id == lesson_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one()
        was_completed = record.completed
        apply_progress_update(record, progress, time_spent_delta, now)
        await db.flush()

    if record.completed and not was_completed:
        logger.info("Lesson %s completed by user %s", lesson_id, user_id)
    return record


async def is_enrolled_in_lesson_course(db: AsyncSession, user_id: str, lesson_id: str) -> bool:
    """Whether the user holds an enrollment in the course that owns the lesson."""
    with storage_errors("is_enrolled_in_lesson_course"):
        result = await db.execute(
            select(Enrollment.id)
            .join(CourseModule, CourseModule.course_id == Enrollment.course_id)
            .join(Lesson, Lesson.module_id == CourseModule.id)
            .where(Lesson.id == lesson_id, Enrollment.user_id == user_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None


async def mark_lesson_completed(
    db: AsyncSession,
    user_id: str,
    lesson_id: str,
    *,
    now: datetime | None = None,
) -> LessonProgress:
    """Record full progress on a lesson."""
    return await upsert_lesson_progress(db, user_id, lesson_id, MAX_PROGRESS, now=now)


async def fetch_activity_records(db: AsyncSession, user_id: str) -> list[ActivityRecord]:
    """All of a user's progress records, most recent first.

    One snapshot feeds both the streak and the heatmap of a response.
    """
    with storage_errors("fetch_activity_records"):
        result = await db.execute(
            select(
                LessonProgress.last_watched,
                LessonProgress.time_spent,
                LessonProgress.completed,
            )
            .where(LessonProgress.user_id == user_id)
            .order_by(LessonProgress.last_watched.desc())
        )
        rows = result.all()
    return [
        ActivityRecord(last_watched=row.last_watched, time_spent=row.time_spent, completed=row.completed)
        for row in rows
    ]
