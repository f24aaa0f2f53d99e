"""Shared pytest fixtures for service and API tests.

Every test gets its own throw-away SQLite database (aiosqlite), so
conditional updates, unique indexes and chunked deletes run against a real
store.
"""

import os
import uuid
from datetime import date
from importlib.util import find_spec

import pytest

# Settings are read at import time; tests never touch a real server database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.main import app  # noqa: E402
from app.config import settings  # noqa: E402
from app.core.security import Principal  # noqa: E402
from app.database import Base, create_engine_from_url, create_session_factory, get_db  # noqa: E402
from app.models.enums import AdminRole, CourseCategory, CourseLevel, DayOfWeek  # noqa: E402
from app.schemas.academic import CourseCreate, ScheduleSlot  # noqa: E402
from app.schemas.season import SeasonCreate  # noqa: E402
from app.services.admin_service import AdminService  # noqa: E402
from app.services.course_service import CourseService  # noqa: E402
from app.services.pending_feed import pending_feed  # noqa: E402
from app.services.season_service import SeasonService  # noqa: E402

# Skip store-backed tests when the SQLite async driver is missing
requires_db = pytest.mark.skipif(
    find_spec("aiosqlite") is None,
    reason="aiosqlite must be installed (pip install -e .[test])",
)

SUPERADMIN_LOGIN = "root"
SUPERADMIN_PASSWORD = "TestPassword123!"


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite file per test; a file (not :memory:) so several sessions share it."""
    test_engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'academy_test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = create_session_factory(engine)
    pending_feed.session_factory = factory
    yield factory
    pending_feed.close()
    pending_feed.session_factory = None


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def principal() -> Principal:
    """A superadmin acting on services directly."""
    return Principal(admin_id=uuid.uuid4(), role=AdminRole.SUPERADMIN)


@pytest.fixture
def admin_principal() -> Principal:
    """A regular admin."""
    return Principal(admin_id=uuid.uuid4(), role=AdminRole.ADMIN)


@pytest.fixture
def unique_suffix() -> str:
    """Unique suffix for test data to avoid collisions."""
    return str(uuid.uuid4())[:8]


@pytest.fixture
async def season(db, principal):
    return await SeasonService.create_season(
        db,
        SeasonCreate(name="2026 Winter", start_date=date(2026, 12, 1), end_date=date(2027, 2, 28)),
        principal,
    )


@pytest.fixture
def make_course(db, season, principal):
    """Factory: create a course in the test season."""

    async def _make(
        title: str = "Algebra II",
        capacity: int = 2,
        slots=((DayOfWeek.MONDAY, 1, 2),),
        season_id=None,
    ):
        course_in = CourseCreate(
            season_id=season_id or season.id,
            title=title,
            instructor="Kim",
            category=CourseCategory.MATH,
            level=CourseLevel.INTERMEDIATE,
            room="301",
            capacity=capacity,
            schedules=[ScheduleSlot(day=day, start_period=s, end_period=e) for day, s, e in slots],
        )
        return await CourseService.create_course(db, course_in.season_id, course_in, principal)

    return _make


@pytest.fixture
def api_base() -> str:
    """Base URL for API requests."""
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
async def async_client(session_factory, api_base: str):
    """Async HTTP client against the app, wired to the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    client = AsyncClient(transport=transport, base_url=api_base, timeout=30.0)
    yield client
    await client.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
async def superadmin(db):
    return await AdminService.ensure_superadmin(db, SUPERADMIN_LOGIN, SUPERADMIN_PASSWORD)


@pytest.fixture
async def auth_headers(async_client: AsyncClient, api_base: str, superadmin) -> dict:
    """Bearer headers of the bootstrap superadmin."""
    resp = await async_client.post(
        f"{api_base}/auth/login",
        json={"login_id": SUPERADMIN_LOGIN, "password": SUPERADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}
