"""Shared test fixtures.

Tests run against an in-memory SQLite database (aiosqlite) shared through a
StaticPool, so no PostgreSQL or Redis instance is needed.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("EDU_LOG_FORMAT", "console")
os.environ["EDU_RANKING_BACKEND"] = "weighted"

from edurewards.auth import jwt as jwt_module  # noqa: E402
from edurewards.config import get_settings  # noqa: E402
from edurewards.database import get_session  # noqa: E402
from edurewards.db.models import Base, User  # noqa: E402
from edurewards.dependencies import get_cache  # noqa: E402
from edurewards.ranking.oracles import get_ranking_oracle  # noqa: E402
from edurewards.users.service import get_or_create_user  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def _ensure_test_keys() -> tuple[str, str]:
    """Generate an RSA key pair for signing test tokens (once per process)."""
    private_path = os.environ.get("EDU_JWT_PRIVATE_KEY_PATH")
    public_path = os.environ.get("EDU_JWT_PUBLIC_KEY_PATH")
    if private_path and public_path and os.path.exists(private_path) and os.path.exists(public_path):
        return private_path, public_path

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    tmpdir = tempfile.mkdtemp(prefix="edu_test_keys_")
    private_path = os.path.join(tmpdir, "jwt_private.pem")
    public_path = os.path.join(tmpdir, "jwt_public.pem")
    with open(private_path, "wb") as f:
        f.write(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
    with open(public_path, "wb") as f:
        f.write(
            key.public_key().public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )

    os.environ["EDU_JWT_PRIVATE_KEY_PATH"] = private_path
    os.environ["EDU_JWT_PUBLIC_KEY_PATH"] = public_path
    get_settings.cache_clear()
    jwt_module.reset_keys()
    return private_path, public_path


_ensure_test_keys()
get_settings.cache_clear()
get_ranking_oracle.cache_clear()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory schema per test."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Sessions on separate connections to one SQLite file, for concurrent writers.

    Every transaction opens with BEGIN IMMEDIATE so writers queue on the
    database lock (busy timeout) instead of failing on lock upgrade.
    """
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rewards.db'}", connect_args={"timeout": 30})

    @event.listens_for(eng.sync_engine, "connect")
    def _autocommit_driver(dbapi_connection, _record):  # noqa: ANN001
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _begin_immediate(conn):  # noqa: ANN001
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service-level tests and assertions."""
    async with session_factory() as session:
        yield session


async def create_user(
    db: AsyncSession,
    uid: str,
    points: int = 0,
    display_name: str | None = None,
    email: str | None = None,
    **fields: object,
) -> User:
    """Provision a user and force its balance/counters for test setup."""
    user, _ = await get_or_create_user(db, uid, display_name=display_name, email=email)
    values = {"points_balance": points, **fields}
    await db.execute(update(User).where(User.id == uid).values(**values))
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def make_user(db_session: AsyncSession):
    async def _make(uid: str = "student-1", points: int = 0, **fields: object) -> User:
        return await create_user(db_session, uid, points, **fields)

    return _make


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """App wired to the test database; Redis disabled."""
    from edurewards.main import create_app

    application = create_app()

    async def _session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _no_cache() -> AsyncGenerator[None, None]:
        yield None

    application.dependency_overrides[get_session] = _session_override
    application.dependency_overrides[get_cache] = _no_cache
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(
    uid: str = "student-1",
    name: str | None = "Asha Student",
    email: str | None = "asha@example.com",
    role: str | None = None,
) -> dict[str, str]:
    token = jwt_module.create_access_token(uid, name=name, email=email, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers(uid="admin-1", name="Admin", email="admin@example.com", role="admin")
