"""Shared fixtures: a fresh SQLite database per test plus seeded courts."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./court_booking_test.db")
os.environ.setdefault("CREATE_TABLES", "false")

from decimal import Decimal  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.database import Base, get_db  # noqa: E402
from app.models.court import Court  # noqa: E402
from app.models.facility import Facility  # noqa: E402
from app.schemas.working_hours import WEEKDAYS  # noqa: E402

OPEN_8_TO_22 = {day: {"open": "08:00", "close": "22:00", "closed": False} for day in WEEKDAYS}


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def facility(db):
    facility = Facility(
        name="Padel Club Mitte",
        timezone="Europe/Berlin",
        working_hours=OPEN_8_TO_22,
        fallback_price=Decimal("20.00"),
    )
    db.add(facility)
    await db.commit()
    return facility


@pytest.fixture
async def court(db, facility):
    court = Court(
        facility_id=facility.id,
        name="Court 1",
        sport_type="padel",
        slot_duration_minutes=60,
        pricing={"mode": "basic", "basic_price": 25},
    )
    db.add(court)
    await db.commit()
    await db.refresh(court, ["facility"])
    return court


@pytest.fixture
async def client(session_factory):
    from app.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
