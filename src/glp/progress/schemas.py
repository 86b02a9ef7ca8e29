"""Pydantic request/response models for progress endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from glp.progress.store import MAX_TIME_SPENT_DELTA


# --- Lesson progress ---


class LessonProgressUpdate(BaseModel):
    progress: float = Field(ge=0, le=100)
    time_spent: int = Field(
        default=0,
        ge=0,
        le=MAX_TIME_SPENT_DELTA,
        description="Seconds spent since the last update",
    )


class LessonProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    lesson_id: str
    progress: float
    time_spent: int
    completed: bool
    completed_at: datetime | None = None
    last_watched: datetime


# --- Course ---


class CourseProgressResponse(BaseModel):
    course_id: str
    user_id: str
    total_lessons: int
    completed_lessons: int
    progress: int
    time_spent: int
    last_accessed: datetime | None = None


class EnrollmentInfo(BaseModel):
    id: str
    status: str
    enrolled_at: datetime | None = None
    completed_at: datetime | None = None


class EnrolledCourseResponse(BaseModel):
    id: str
    title: str
    description: str
    published: bool
    enrollment: EnrollmentInfo
    progress: int
    completed_lessons: int
    total_lessons: int
    time_spent: int
    last_accessed: datetime | None = None


class EnrolledCoursesResponse(BaseModel):
    courses: list[EnrolledCourseResponse]


class AdjacentLessonResponse(BaseModel):
    id: str
    title: str
    order: int
    duration_minutes: int
    module_id: str
    module_title: str


# --- Streak ---


class CalendarEntry(BaseModel):
    date: date
    count: int
    level: int


class MilestoneEntry(BaseModel):
    days: int
    name: str
    achieved: bool


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_learning_date: date | None = None
    calendar_data: list[CalendarEntry]
    milestones: list[MilestoneEntry]
