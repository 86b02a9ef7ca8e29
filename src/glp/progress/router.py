"""Progress API endpoints for lessons, courses and streaks."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from glp.auth.dependencies import get_current_user_id
from glp.config import get_settings
from glp.database import get_session
from glp.db.models import Lesson, LessonProgress
from glp.dependencies import get_job_queue
from glp.progress import aggregator, navigation, store
from glp.progress.calendar import build_calendar
from glp.progress.course_milestones import enqueue_milestone_email, record_course_milestone
from glp.progress.errors import storage_errors
from glp.progress.milestones import evaluate_milestones
from glp.progress.schemas import (
    AdjacentLessonResponse,
    CalendarEntry,
    CourseProgressResponse,
    EnrolledCoursesResponse,
    LessonProgressResponse,
    LessonProgressUpdate,
    MilestoneEntry,
    StreakResponse,
)
from glp.progress.streak import compute_streak, utc_today

router = APIRouter(prefix="/api/v1/progress", tags=["Progress"])


async def _require_lesson(db: AsyncSession, lesson_id: str) -> Lesson:
    with storage_errors("get_lesson"):
        lesson = await db.get(Lesson, lesson_id)
    if lesson is None:
        raise HTTPException(404, "Lesson not found")
    return lesson


async def _require_enrollment(db: AsyncSession, user_id: str, lesson_id: str) -> None:
    if not await store.is_enrolled_in_lesson_course(db, user_id, lesson_id):
        raise HTTPException(403, "You must be enrolled in this course to track progress")


async def _commit_progress(
    db: AsyncSession,
    queue: Any,  # noqa: ANN401
    user_id: str,
    lesson_id: str,
    record: LessonProgress,
) -> LessonProgressResponse:
    """Check course milestones, commit, then queue any milestone email."""
    reached = await record_course_milestone(db, user_id, lesson_id)
    with storage_errors("commit_progress"):
        await db.commit()
    if reached is not None:
        course_id, notice = reached
        await enqueue_milestone_email(queue, user_id, course_id, notice)
    return LessonProgressResponse.model_validate(record)


# ---- Lesson progress ----


@router.post("/lessons/{lesson_id}", response_model=LessonProgressResponse)
async def update_lesson_progress(
    lesson_id: str,
    payload: LessonProgressUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    queue: Any = Depends(get_job_queue),  # noqa: ANN401
) -> LessonProgressResponse:
    """Record progress and time spent on a lesson. Progress never decreases."""
    await _require_lesson(db, lesson_id)
    await _require_enrollment(db, user_id, lesson_id)
    record = await store.upsert_lesson_progress(db, user_id, lesson_id, payload.progress, payload.time_spent)
    return await _commit_progress(db, queue, user_id, lesson_id, record)


@router.post("/lessons/{lesson_id}/complete", response_model=LessonProgressResponse)
async def complete_lesson(
    lesson_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    queue: Any = Depends(get_job_queue),  # noqa: ANN401
) -> LessonProgressResponse:
    """Mark a lesson as fully watched."""
    await _require_lesson(db, lesson_id)
    await _require_enrollment(db, user_id, lesson_id)
    record = await store.mark_lesson_completed(db, user_id, lesson_id)
    return await _commit_progress(db, queue, user_id, lesson_id, record)


@router.get("/lessons/{lesson_id}", response_model=LessonProgressResponse)
async def get_lesson_progress(
    lesson_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> LessonProgressResponse:
    record = await store.get_lesson_progress(db, user_id, lesson_id)
    if record is None:
        raise HTTPException(404, "No progress recorded for this lesson")
    return LessonProgressResponse.model_validate(record)


# ---- Courses ----


@router.get("/course/{course_id}", response_model=CourseProgressResponse)
async def get_course_progress(
    course_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Course-level rollup of the user's lesson progress."""
    summary = await aggregator.get_course_progress(db, user_id, course_id)
    if summary is None:
        raise HTTPException(404, "Course not found")
    return summary


@router.get("/courses", response_model=EnrolledCoursesResponse)
async def list_enrolled_courses(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Enrolled courses with progress, in enrollment order."""
    return {"courses": await aggregator.get_user_enrolled_courses(db, user_id)}


@router.get("/course/{course_id}/lessons/{lesson_id}/next", response_model=AdjacentLessonResponse)
async def next_lesson(
    course_id: str,
    lesson_id: str,
    _user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> dict:
    lesson = await navigation.get_next_lesson(db, course_id, lesson_id)
    if lesson is None:
        raise HTTPException(404, "No next lesson")
    return lesson


@router.get("/course/{course_id}/lessons/{lesson_id}/previous", response_model=AdjacentLessonResponse)
async def previous_lesson(
    course_id: str,
    lesson_id: str,
    _user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> dict:
    lesson = await navigation.get_previous_lesson(db, course_id, lesson_id)
    if lesson is None:
        raise HTTPException(404, "No previous lesson")
    return lesson


# ---- Streak ----


@router.get("/streak", response_model=StreakResponse)
async def get_streak(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> StreakResponse:
    """Current/longest streak, the activity heatmap and streak milestones."""
    records = await store.fetch_activity_records(db, user_id)
    today = utc_today()
    state = compute_streak(records, today=today)
    calendar = build_calendar(records, window_days=get_settings().calendar_window_days, today=today)

    return StreakResponse(
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        last_learning_date=state.last_learning_date,
        calendar_data=[CalendarEntry(date=day.date, count=day.count, level=day.level) for day in calendar],
        milestones=[MilestoneEntry(**m) for m in evaluate_milestones(state.longest_streak)],
    )
