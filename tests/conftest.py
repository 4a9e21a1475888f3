"""
Test configuration and fixtures for pytest.

Storage-level and HTTP tests run against both backends: the dict-backed
``MemoryStorage`` and ``DatabaseStorage`` over an in-memory aiosqlite
database created fresh for every test.
"""

import os

# Cheap hashes keep the auth-heavy tests fast; must be set before settings load
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ["OPENAI_API_KEY"] = ""

from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fitsocial.api.deps import get_storage
from fitsocial.api.endpoints.analysis import get_analysis_service
from fitsocial.db.base_class import Base
from fitsocial.main import app
from fitsocial.services.ai_analysis import WorkoutAnalysisService
from fitsocial.services.database_storage import DatabaseStorage
from fitsocial.services.memory_storage import MemoryStorage
from fitsocial.services.storage import AbstractStorage
import fitsocial.models  # noqa: F401

TEST_PASSWORD = "password123"


@pytest_asyncio.fixture
async def async_engine():
    """Create an async SQLAlchemy engine over a private in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def async_db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def database_storage(async_db_session) -> DatabaseStorage:
    return DatabaseStorage(async_db_session)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest_asyncio.fixture(params=["memory", "database"])
async def storage(request, async_engine) -> AsyncGenerator[AbstractStorage, None]:
    """Each test using this fixture runs once per storage backend."""
    if request.param == "memory":
        yield MemoryStorage()
        return

    async_session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with async_session_factory() as session:
        yield DatabaseStorage(session)


@pytest.fixture
def analysis_service() -> WorkoutAnalysisService:
    """Analysis service without a model, so reports come from the local template."""
    return WorkoutAnalysisService(llm=None)


@pytest_asyncio.fixture
async def async_client(storage, analysis_service) -> AsyncGenerator[AsyncClient, None]:
    """Create an HTTP client for the app with the storage dependency overridden."""

    async def override_get_storage():
        yield storage

    app.dependency_overrides[get_storage] = override_get_storage
    app.dependency_overrides[get_analysis_service] = lambda: analysis_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def register_user(async_client):
    """Register a user through the API; the client keeps the session cookie."""

    async def _register(username: str = "testuser", email: str = None, **extra) -> Dict:
        payload = {
            "username": username,
            "email": email or f"{username}@example.com",
            "password": TEST_PASSWORD,
            **extra,
        }
        response = await async_client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def login_as(async_client):
    async def _login(username: str, password: str = TEST_PASSWORD) -> Dict:
        response = await async_client.post("/api/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest.fixture
def log_workout(async_client):
    async def _log(name: str = "Push Day", exercises=None, **extra) -> Dict:
        if exercises is None:
            exercises = [
                {"name": "Bench Press", "sets": [{"weight": 100, "reps": 5}, {"weight": 100, "reps": 5}]},
                {"name": "Dips", "sets": [{"reps": 12}]},
            ]
        response = await async_client.post("/api/workouts", json={"name": name, "exercises": exercises, **extra})
        assert response.status_code == 201, response.text
        return response.json()

    return _log
