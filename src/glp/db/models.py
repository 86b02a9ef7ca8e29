"""ORM models for courses, enrollments and per-lesson progress.

Tables are created by the Alembic migration in alembic/versions.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glp.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Users (identity is owned by the external provider; this is a local mirror)
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table. ``id`` is the identity provider's subject."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, unique=True)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    enrollments: Mapped[list[Enrollment]] = relationship("Enrollment", back_populates="user")


# ---------------------------------------------------------------------------
# Course structure: course -> modules -> lessons
# ---------------------------------------------------------------------------


class Course(Base):
    """A published or draft course."""

    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    modules: Mapped[list[CourseModule]] = relationship(
        "CourseModule",
        back_populates="course",
        order_by="CourseModule.order",
        cascade="all, delete-orphan",
    )


class CourseModule(Base):
    """Ordered grouping of lessons within a course."""

    __tablename__ = "course_modules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    course: Mapped[Course] = relationship("Course", back_populates="modules")
    lessons: Mapped[list[Lesson]] = relationship(
        "Lesson",
        back_populates="module",
        order_by="Lesson.order",
        cascade="all, delete-orphan",
    )


class Lesson(Base):
    """Smallest content unit of a course."""

    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    module_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("course_modules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    module: Mapped[CourseModule] = relationship("CourseModule", back_populates="lessons")
    progress: Mapped[list[LessonProgress]] = relationship("LessonProgress", back_populates="lesson")


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


class Enrollment(Base):
    """User enrollment in a course, UNIQUE(user_id, course_id)."""

    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id: Mapped[str] = mapped_column(String(36), ForeignKey("courses.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="ACTIVE")
    enrolled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="enrollments")
    course: Mapped[Course] = relationship("Course")


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class LessonProgress(Base):
    """One user's engagement with one lesson, UNIQUE(user_id, lesson_id)."""

    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_progress_user_lesson"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_progress_range"),
        CheckConstraint("time_spent >= 0", name="ck_time_spent_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    lesson_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    progress: Mapped[float] = mapped_column(Float, nullable=False, server_default="0")
    time_spent: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_watched: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    lesson: Mapped[Lesson] = relationship("Lesson", back_populates="progress")


Index("idx_progress_user_last_watched", LessonProgress.user_id, LessonProgress.last_watched.desc())


class CourseMilestoneNotice(Base):
    """Course completion milestone already announced to a user (25/50/75/100%)."""

    __tablename__ = "course_milestone_notices"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", "milestone", name="uq_milestone_user_course"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id: Mapped[str] = mapped_column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    milestone: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
