"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import jwt
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from glp.auth.dependencies import get_current_user_id
from glp.auth.jwt import reset_keys
from glp.config import get_settings
from glp.database import Database, get_session
from glp.db.base import Base
from glp.db.models import Lesson
from glp.main import create_app

TEST_USER_ID = "user-1"


class FakeSession:
    """Stand-in for AsyncSession in API tests: only what the routes touch directly."""

    def __init__(self) -> None:
        self.objects: dict[tuple[type, str], Any] = {}
        self.commit = AsyncMock()

    def add_object(self, model: type, key: str, obj: Any) -> None:  # noqa: ANN401
        self.objects[(model, key)] = obj

    async def get(self, model: type, key: str) -> Any:  # noqa: ANN401
        return self.objects.get((model, key))


@pytest.fixture
def fake_session() -> FakeSession:
    session = FakeSession()
    session.add_object(Lesson, "lesson-1", Lesson(id="lesson-1", module_id="module-1", title="Intro", order=1))
    return session


@pytest.fixture
def app(fake_session: FakeSession) -> Iterator[FastAPI]:
    """Application with the database session replaced; no lifespan runs under ASGITransport."""
    application = create_app()

    async def _session() -> AsyncGenerator[FakeSession, None]:
        yield fake_session

    application.dependency_overrides[get_session] = _session
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def authed_client(app: FastAPI, client: AsyncClient) -> AsyncClient:
    """Client whose requests resolve to TEST_USER_ID without a real token."""
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    return client


# ---------------------------------------------------------------------------
# JWT keys
# ---------------------------------------------------------------------------


@pytest.fixture
def rsa_keys(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[dict[str, Any]]:
    """Generate an RSA key pair and point the verifier at the public half."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    public_path = tmp_path / "jwt_public.pem"
    public_path.write_bytes(public_pem)

    monkeypatch.setenv("GLP_JWT_PUBLIC_KEY_PATH", str(public_path))
    get_settings.cache_clear()
    reset_keys()

    yield {"private_key": private_key, "public_path": public_path}

    get_settings.cache_clear()
    reset_keys()


@pytest.fixture
def make_token(rsa_keys: dict[str, Any]) -> Callable[..., str]:
    """Sign access tokens the way the identity provider would.

    Pass a claim as None to leave it out.
    """

    def _make(**overrides: Any) -> str:  # noqa: ANN401
        now = int(datetime.now(timezone.utc).timestamp())
        claims: dict[str, Any] = {
            "sub": TEST_USER_ID,
            "iss": get_settings().jwt_issuer,
            "iat": now,
            "exp": now + 900,
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        return jwt.encode(claims, rsa_keys["private_key"], algorithm="RS256")

    return _make


# ---------------------------------------------------------------------------
# PostgreSQL (integration tests only)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """A fresh schema on the configured PostgreSQL; skips when it is unreachable."""
    db = Database(get_settings().database_url, pool_size=5, max_overflow=5)
    try:
        async with db.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError) as exc:
        await db.close()
        pytest.skip(f"PostgreSQL unavailable: {exc}")

    yield db

    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await db.close()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for test assertions."""
    async with database.session_factory() as session:
        yield session
