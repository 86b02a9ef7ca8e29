"""Previous/next lesson lookup across a course's modules."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glp.db.models import CourseModule, Lesson
from glp.progress.errors import storage_errors


async def _ordered_lessons(db: AsyncSession, course_id: str) -> list[dict]:
    with storage_errors("ordered_lessons"):
        result = await db.execute(
            select(Lesson, CourseModule)
            .join(CourseModule, Lesson.module_id == CourseModule.id)
            .where(CourseModule.course_id == course_id)
            .order_by(CourseModule.order, CourseModule.id, Lesson.order, Lesson.id)
        )
        rows = result.all()
    return [
        {
            "id": lesson.id,
            "title": lesson.title,
            "order": lesson.order,
            "duration_minutes": lesson.duration_minutes,
            "module_id": module.id,
            "module_title": module.title,
        }
        for lesson, module in rows
    ]


async def _adjacent_lesson(db: AsyncSession, course_id: str, lesson_id: str, step: int) -> dict | None:
    lessons = await _ordered_lessons(db, course_id)
    index = next((i for i, lesson in enumerate(lessons) if lesson["id"] == lesson_id), None)
    if index is None:
        return None
    target = index + step
    if target < 0 or target >= len(lessons):
        return None
    return lessons[target]


async def get_next_lesson(db: AsyncSession, course_id: str, lesson_id: str) -> dict | None:
    """The lesson after ``lesson_id`` in course order, or None at the end."""
    return await _adjacent_lesson(db, course_id, lesson_id, 1)


async def get_previous_lesson(db: AsyncSession, course_id: str, lesson_id: str) -> dict | None:
    """The lesson before ``lesson_id`` in course order, or None at the start."""
    return await _adjacent_lesson(db, course_id, lesson_id, -1)
