import os
from datetime import datetime

# Must be set before timetrack.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("NARRATIVE_BACKEND", "template")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timetrack.core.security import create_access_token
from timetrack.database import Base, get_db
from timetrack.main import app
from timetrack.models.user import User
from timetrack.services.narrative import (
    NarrativeGenerator,
    TemplateNarrativeGenerator,
    UpstreamError,
    get_narrative_generator,
)
from timetrack.utils.password import hash_password

# A fixed Monday morning keeps day buckets deterministic.
T0 = datetime(2026, 3, 2, 9, 0, 0)
TEST_PASSWORD = "correct-horse-battery"


class FailingNarrativeGenerator(NarrativeGenerator):
    """Generator whose backend is always down."""

    async def generate_daily_summary(self, data):
        raise UpstreamError("backend down")

    async def generate_task_title(self, user_input):
        raise UpstreamError("backend down")

    async def generate_task_description(self, title):
        raise UpstreamError("backend down")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def _create_user(session_factory, email: str, name: str) -> User:
    async with session_factory() as session:
        user = User(email=email, name=name, hashed_password=hash_password(TEST_PASSWORD), is_active=True)
        session.add(user)
        await session.commit()
        return user


@pytest_asyncio.fixture
async def user(session_factory):
    return await _create_user(session_factory, "alice@example.com", "Alice")


@pytest_asyncio.fixture
async def other_user(session_factory):
    return await _create_user(session_factory, "bob@example.com", "Bob")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def other_auth_headers(other_user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(other_user.id)})}"}


@pytest.fixture
def narrative_generator():
    """Generator injected into the API; tests may swap it for a failing one."""
    return TemplateNarrativeGenerator()


@pytest_asyncio.fixture
async def client(session_factory, narrative_generator):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_narrative_generator] = lambda: narrative_generator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
