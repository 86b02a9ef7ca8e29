"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
Runs in offline (--sql) mode so no database is needed.
"""

import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def _alembic(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        capture_output=True,
        text=True,
        cwd=ROOT,
    )


def test_upgrade_head_renders_schema() -> None:
    """alembic upgrade head --sql emits every progress table."""
    result = _alembic("upgrade", "head", "--sql")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"
    for table in ("users", "courses", "course_modules", "lessons", "enrollments", "lesson_progress", "course_milestone_notices"):
        assert f"CREATE TABLE {table}" in result.stdout
    assert "uq_progress_user_lesson" in result.stdout
    assert "time_spent BIGINT" in result.stdout


def test_heads_shows_single_revision() -> None:
    """alembic heads shows the latest revision."""
    result = _alembic("heads")
    assert result.returncode == 0
    assert "001_progress_tables" in result.stdout
