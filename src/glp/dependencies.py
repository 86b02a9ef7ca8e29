"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import Any

from starlette.requests import HTTPConnection


def get_job_queue(conn: HTTPConnection) -> Any:  # noqa: ANN401
    """The arq pool for background jobs, or None when the app runs without one."""
    return getattr(conn.app.state, "arq", None)
