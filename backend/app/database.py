from functools import lru_cache

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from backend.app.config import get_settings
from backend.app.store import DocumentStore, MemoryDocumentStore, SqlDocumentStore

settings = get_settings()
DATABASE_URL = settings.database_url

# Create SQLAlchemy engine
engine = create_async_engine(
    DATABASE_URL, connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

# Create sessionmaker
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

# Create tables in the database
async def create_tables():
    from backend.app.models.models import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

@lru_cache()
def _build_store() -> DocumentStore:
    timeout = settings.collaborator_timeout_seconds
    if settings.store_backend == "memory":
        return MemoryDocumentStore(timeout=timeout)
    return SqlDocumentStore(SessionLocal, timeout=timeout)

# Dependency to get the document store
def get_document_store() -> DocumentStore:
    return _build_store()
