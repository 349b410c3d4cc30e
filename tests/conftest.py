"""Shared fixtures: in-memory database, API client and seed data factories."""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_TOKEN"] = "test-token"
for _key in (
    "ALGOLIA_APP_ID",
    "ALGOLIA_SEARCH_KEY",
    "ALGOLIA_ADMIN_KEY",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
):
    os.environ.pop(_key, None)

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tribes_admin.core import database
from tribes_admin.core.database import Base, get_db
from tribes_admin.main import app
from tribes_admin.models import (
    ClientAccount,
    Publisher,
    Tenant,
    TenantMembership,
    Territory,
    TribesEntity,
    Writer,
)

ADMIN_HEADERS = {"X-Admin-Token": "test-token"}

TERRITORIES = [
    ("US", "United States", "North America", 1),
    ("CA", "Canada", "North America", 2),
    ("GB", "United Kingdom", "Europe", 3),
    ("FR", "France", "Europe", 4),
    ("DE", "Germany", "Europe", 5),
    ("JP", "Japan", "Asia", 6),
]


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_maker(engine, monkeypatch):
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    # Background tasks open their own sessions through the module attribute
    monkeypatch.setattr(database, "async_session_maker", maker)
    return maker


@pytest.fixture
async def db(session_maker):
    """Session for service-level tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=ADMIN_HEADERS,
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


async def _persist(session_maker, obj):
    async with session_maker() as session:
        session.add(obj)
        await session.commit()
    return obj


@pytest.fixture
async def territories(session_maker):
    async with session_maker() as session:
        for code, name, region, order in TERRITORIES:
            session.add(Territory(code=code, name=name, region=region, sort_order=order))
        await session.commit()


@pytest.fixture
async def tribes_entities(session_maker):
    ascap = TribesEntity(name="Tribes Rights Management (ASCAP)", pro="ASCAP")
    bmi = TribesEntity(name="Tribes Rights Management (BMI)", pro="BMI")
    async with session_maker() as session:
        session.add_all([ascap, bmi])
        await session.commit()
    return {"ASCAP": ascap, "BMI": bmi}


@pytest.fixture
def writer_factory(session_maker):
    async def create(name="Jane Doe", pro="ASCAP", ipi_number=None):
        return await _persist(session_maker, Writer(name=name, pro=pro, ipi_number=ipi_number))
    return create


@pytest.fixture
def publisher_factory(session_maker):
    async def create(name="North Star Music", pro="ASCAP", ipi_number="00123456789"):
        return await _persist(session_maker, Publisher(name=name, pro=pro, ipi_number=ipi_number))
    return create


@pytest.fixture
def client_account_factory(session_maker):
    async def create(name="Grace Church", primary_email="music@grace.example"):
        return await _persist(session_maker, ClientAccount(name=name, primary_email=primary_email))
    return create


@pytest.fixture
def membership_factory(session_maker):
    async def create(user_email="new.user@example.com", status="pending", tenant_id=None):
        return await _persist(session_maker, TenantMembership(
            user_id=user_email.split("@")[0],
            user_email=user_email,
            status=status,
            tenant_id=tenant_id,
        ))
    return create


@pytest.fixture
def tenant_factory(session_maker):
    async def create(name="Grace Church", slug="grace-church"):
        return await _persist(session_maker, Tenant(name=name, slug=slug))
    return create


def deal_payload(writer_id, publishers=None, writer_share=100, territory_mode="world", territories=None, **extra):
    """JSON body for POST /deals."""
    payload = {
        "writer_id": str(writer_id) if writer_id else None,
        "writer_share": writer_share,
        "territory_mode": territory_mode,
        "territories": territories or [],
        "publishers": publishers if publishers is not None else [
            {"publisher_name": "North Star Music", "publisher_pro": "ASCAP", "share": writer_share},
        ],
    }
    payload.update(extra)
    return payload


def submission_data(writers, title="Great Is Thy Mercy", **extra):
    """Song submission payload (SongSubmissionData)."""
    data = {
        "title": title,
        "writers": writers,
        "language": "English",
        "song_type": "original",
        "publication_year": "2024",
    }
    data.update(extra)
    return data


def queue_writer(writer_id=None, name="Jane Doe", split=100, publishers=None, **extra):
    writer = {"writer_id": str(writer_id) if writer_id else None, "name": name, "split": split}
    if publishers is not None:
        writer["publishers"] = publishers
    writer.update(extra)
    return writer
