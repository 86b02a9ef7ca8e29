"""arq worker that delivers course progress milestone emails.

Jobs are queued by the progress API after a write commits; the job id is
derived from (user, course, milestone) so a milestone is mailed at most once.
"""

from __future__ import annotations

import logging

from arq.connections import RedisSettings

from glp.config import get_settings
from glp.database import Database
from glp.db.models import Course, User
from glp.email.service import EmailService

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Open the database and build the email service on worker startup."""
    settings = get_settings()
    ctx["database"] = Database(settings.database_url, pool_size=5, max_overflow=5)
    ctx["email"] = EmailService(redis=ctx.get("redis"))
    logger.info("Milestone worker started (provider=%s)", settings.email_provider)


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    database: Database | None = ctx.get("database")
    if database:
        await database.close()
    logger.info("Milestone worker shut down")


async def send_progress_milestone_email(
    ctx: dict,  # type: ignore[type-arg]
    user_id: str,
    course_id: str,
    milestone: int,
    completed_lessons: int,
    total_lessons: int,
) -> bool:
    """Email the learner that they reached ``milestone`` percent of a course."""
    database: Database = ctx["database"]
    email: EmailService = ctx["email"]

    async with database.session_factory() as db:
        user = await db.get(User, user_id)
        course = await db.get(Course, course_id)

    if user is None or course is None:
        logger.warning("Milestone email skipped: user %s or course %s missing", user_id, course_id)
        return False
    if not user.email:
        logger.info("Milestone email skipped: user %s has no email address", user_id)
        return False

    settings = get_settings()
    return await email.send_template(
        user.email,
        "progress_milestone",
        {
            "user_name": user.name,
            "course_title": course.title,
            "milestone": milestone,
            "completed_lessons": completed_lessons,
            "total_lessons": total_lessons,
            "course_url": f"{settings.frontend_base_url.rstrip('/')}/courses/{course_id}",
        },
    )


class WorkerSettings:
    """arq worker settings for milestone emails."""

    functions = [send_progress_milestone_email]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().arq_redis_url)
    max_jobs = 10
    job_timeout = 60
    max_tries = 3
