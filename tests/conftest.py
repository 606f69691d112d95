"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import hitit.models  # noqa: F401
from hitit.database import Base, configure_sqlite, get_db
from hitit.main import app
from hitit.models.clip import Clip
from hitit.models.user import User
from hitit.routers.auth import COOKIE_KEY, create_access_token


@pytest_asyncio.fixture
async def db_session():
    """Create an in-memory test database session."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session_factory() as session:
        async def override_get_db():
            yield session
        app.dependency_overrides[get_db] = override_get_db
        yield session
        app.dependency_overrides.clear()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session):
    """Async test client bound to the in-memory database."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# -----------------------------------------------------------------------------
# Users & auth
# -----------------------------------------------------------------------------

async def _make_user(db_session, name: str) -> User:
    user = User(user_name=name, email=f"{name.lower()}@hitit.test")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def owner(db_session):
    return await _make_user(db_session, "Olivia")


@pytest_asyncio.fixture
async def alice(db_session):
    return await _make_user(db_session, "Alice")


@pytest_asyncio.fixture
async def bob(db_session):
    return await _make_user(db_session, "Bob")


@pytest_asyncio.fixture
async def clips(db_session, owner):
    """Three clips owned by ``owner``."""
    created = [Clip(title=f"Loop {i}", user_id=owner.id) for i in range(1, 4)]
    db_session.add_all(created)
    await db_session.commit()
    return created


def auth_headers(user: User) -> dict:
    """Cookie header carrying a JWT for ``user``."""
    token = create_access_token({"sub": str(user.id)})
    return {"Cookie": f"{COOKIE_KEY}={token}"}


@pytest.fixture
def as_user():
    return auth_headers
