"""Tests for the milestone email arq job."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from glp.db.models import Course, User
from glp.progress.course_milestones import MILESTONE_EMAIL_JOB
from glp.workers.milestone_worker import WorkerSettings, send_progress_milestone_email


class _Session:
    def __init__(self, objects: dict) -> None:
        self.objects = objects

    async def get(self, model, key):
        return self.objects.get((model, key))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        return None


def _ctx(objects: dict) -> dict:
    database = MagicMock()
    database.session_factory = lambda: _Session(objects)
    email = MagicMock()
    email.send_template = AsyncMock(return_value=True)
    return {"database": database, "email": email}


def test_job_registered_under_queued_name():
    assert [f.__name__ for f in WorkerSettings.functions] == [MILESTONE_EMAIL_JOB]


@pytest.mark.asyncio
async def test_sends_template_to_learner():
    ctx = _ctx({
        (User, "user-1"): User(id="user-1", email="ada@example.com", name="Ada"),
        (Course, "course-1"): Course(id="course-1", title="Python Basics"),
    })

    assert await send_progress_milestone_email(ctx, "user-1", "course-1", 50, 2, 4) is True

    to, template, context = ctx["email"].send_template.await_args.args
    assert to == "ada@example.com"
    assert template == "progress_milestone"
    assert context["milestone"] == 50
    assert context["course_title"] == "Python Basics"
    assert context["course_url"].endswith("/courses/course-1")


@pytest.mark.asyncio
async def test_skips_user_without_email():
    ctx = _ctx({
        (User, "user-1"): User(id="user-1", email=None),
        (Course, "course-1"): Course(id="course-1", title="Python Basics"),
    })
    assert await send_progress_milestone_email(ctx, "user-1", "course-1", 25, 1, 4) is False
    ctx["email"].send_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_skips_missing_course():
    ctx = _ctx({(User, "user-1"): User(id="user-1", email="ada@example.com")})
    assert await send_progress_milestone_email(ctx, "user-1", "course-1", 25, 1, 4) is False
