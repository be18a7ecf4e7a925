import pytest
from datetime import date
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.app.clock import FixedClock, get_clock
from backend.app.database import get_document_store
from backend.app.main import app
from backend.app.models.models import Base
from backend.app.schemas.couples import CoupleCreate
from backend.app.schemas.users import UserCreate
from backend.app.services.couple_service import create_couple, join_couple
from backend.app.services.user_service import create_or_update_user
from backend.app.store import MemoryDocumentStore, SqlDocumentStore

# In-memory SQLite shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture
def store(db_engine):
    """SQL-backed document store on a fresh database for each test"""
    return SqlDocumentStore(async_sessionmaker(db_engine, expire_on_commit=False), timeout=5)

@pytest.fixture
def memory_store():
    return MemoryDocumentStore()

@pytest.fixture
def clock():
    return FixedClock(date(2025, 2, 14))

@pytest.fixture
async def client(store, clock):
    """Async HTTP client with the test store and clock injected"""
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

@pytest.fixture
async def test_user(store):
    """Creates a test user and returns it"""
    return await create_or_update_user(
        store, UserCreate(email="test@example.com", display_name="Test User")
    )

@pytest.fixture
async def test_partner(store):
    return await create_or_update_user(
        store, UserCreate(email="partner@example.com", display_name="Partner User")
    )

@pytest.fixture
async def pending_couple(store, test_user):
    """Couple started by test_user, not joined yet"""
    return await create_couple(
        store,
        test_user.id,
        CoupleCreate(relationship_start=date(2023, 2, 14), anniversary_date=date(2023, 2, 14)),
        generate_code=lambda: "AB12CD",
    )

@pytest.fixture
async def active_couple(store, pending_couple, test_partner):
    """test_user and test_partner paired through the invite code"""
    return await join_couple(store, test_partner.id, pending_couple.invite_code)
