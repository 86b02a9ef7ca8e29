"""Roll lesson progress up through modules to course summaries."""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from glp.db.models import Course, CourseModule, Enrollment, Lesson, LessonProgress
from glp.progress.errors import storage_errors


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def summarize_course(
    course_id: str,
    user_id: str,
    lessons: Sequence[Sequence[LessonProgress]],
) -> dict:
    """Summarize a course from each lesson's progress records for one user.

    ``lessons`` holds one entry per lesson in the course; an empty entry is a
    lesson the user has not started and counts as 0% and 0 seconds.
    """
    total_lessons = len(lessons)
    if total_lessons == 0:
        return {
            "course_id": course_id,
            "user_id": user_id,
            "total_lessons": 0,
            "completed_lessons": 0,
            "progress": 0,
            "time_spent": 0,
            "last_accessed": None,
        }

    completed_lessons = 0
    progress_sum = 0.0
    time_spent = 0
    last_accessed: datetime | None = None
    for records in lessons:
        if any(r.completed for r in records):
            completed_lessons += 1
        progress_sum += max((r.progress for r in records), default=0.0)
        time_spent += sum(r.time_spent for r in records)
        for r in records:
            if r.last_watched is not None and (last_accessed is None or r.last_watched > last_accessed):
                last_accessed = r.last_watched

    return {
        "course_id": course_id,
        "user_id": user_id,
        "total_lessons": total_lessons,
        "completed_lessons": completed_lessons,
        "progress": round_half_up(progress_sum / total_lessons),
        "time_spent": time_spent,
        "last_accessed": last_accessed,
    }


async def _lesson_progress_by_course(
    db: AsyncSession,
    user_id: str,
    course_ids: Sequence[str],
) -> dict[str, list[list[LessonProgress]]]:
    """Left-join every lesson of the courses with the user's progress rows."""
    result = await db.execute(
        select(CourseModule.course_id, Lesson.id, LessonProgress)
        .join(Lesson, Lesson.module_id == CourseModule.id)
        .outerjoin(
            LessonProgress,
            and_(LessonProgress.lesson_id == Lesson.id, LessonProgress.user_id == user_id),
        )
        .where(CourseModule.course_id.in_(course_ids))
        .order_by(CourseModule.course_id, CourseModule.order, Lesson.order, Lesson.id)
    )

    grouped: dict[str, dict[str, list[LessonProgress]]] = {}
    for course_id, lesson_id, record in result.all():
        lessons = grouped.setdefault(course_id, {})
        records = lessons.setdefault(lesson_id, [])
        if record is not None:
            records.append(record)
    return {course_id: list(lessons.values()) for course_id, lessons in grouped.items()}


async def get_course_progress(db: AsyncSession, user_id: str, course_id: str) -> dict | None:
    """Course summary for a user, or None if the course does not exist."""
    with storage_errors("get_course_progress"):
        course = await db.get(Course, course_id)
        if course is None:
            return None
        by_course = await _lesson_progress_by_course(db, user_id, [course_id])
    return summarize_course(course_id, user_id, by_course.get(course_id, []))


async def get_user_enrolled_courses(db: AsyncSession, user_id: str) -> list[dict]:
    """Every enrolled course annotated with the user's progress, in enrollment order."""
    with storage_errors("get_user_enrolled_courses"):
        result = await db.execute(
            select(Enrollment, Course)
            .join(Course, Course.id == Enrollment.course_id)
            .where(Enrollment.user_id == user_id)
            .order_by(Enrollment.enrolled_at, Enrollment.id)
        )
        rows = result.all()
        if not rows:
            return []
        by_course = await _lesson_progress_by_course(db, user_id, [course.id for _, course in rows])

    items = []
    for enrollment, course in rows:
        summary = summarize_course(course.id, user_id, by_course.get(course.id, []))
        items.append({
            "id": course.id,
            "title": course.title,
            "description": course.description,
            "published": course.published,
            "enrollment": {
                "id": enrollment.id,
                "status": enrollment.status,
                "enrolled_at": enrollment.enrolled_at,
                "completed_at": enrollment.completed_at,
            },
            "progress": summary["progress"],
            "completed_lessons": summary["completed_lessons"],
            "total_lessons": summary["total_lessons"],
            "time_spent": summary["time_spent"],
            "last_accessed": summary["last_accessed"],
        })
    return items
