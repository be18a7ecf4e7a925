"""Document store collaborator.

Services never touch SQLAlchemy directly: they read and write plain
``dict`` records through a :class:`DocumentStore`, addressed by
collection name (``users``, ``couples``, ``anniversaries``) and record id.
Two implementations ship here: :class:`SqlDocumentStore` on top of the
async SQLAlchemy engine, and :class:`MemoryDocumentStore` for local runs
and tests.

``update`` accepts an ``expected`` mapping and only writes when every
listed field still holds the expected value. The pairing registry relies
on this for its compare-and-swap on the couple status.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import delete as sa_delete, select, update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from backend.app.exceptions import (
    CollaboratorTimeoutError, ConflictError, NotFoundError, UnavailableError, ValidationError
)
from backend.app.models.models import COLLECTIONS

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class DocumentStore(ABC):
    """Async CRUD over named collections with an optional per-call timeout."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def get(self, collection: str, record_id: str) -> Record:
        """Return the record or raise ``NotFoundError``."""
        return await self._call(f"get {collection}/{record_id}", self._get(collection, record_id))

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Record]:
        """Return records whose fields equal every value in ``filters``."""
        return await self._call(
            f"query {collection}",
            self._query(collection, filters or {}, order_by, descending),
        )

    async def create(self, collection: str, data: Record) -> str:
        """Insert a record and return its id. ``created_at``/``updated_at`` are set by the store."""
        return await self._call(f"create {collection}", self._create(collection, data))

    async def update(
        self,
        collection: str,
        record_id: str,
        changes: Record,
        expected: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Apply ``changes``; with ``expected``, only if those fields still match (else ``ConflictError``)."""
        await self._call(
            f"update {collection}/{record_id}",
            self._update(collection, record_id, changes, expected or {}),
        )

    async def delete(self, collection: str, record_id: str) -> None:
        await self._call(f"delete {collection}/{record_id}", self._delete(collection, record_id))

    async def _call(self, operation: str, coro: Awaitable[Any]) -> Any:
        if not self.timeout:
            return await coro
        try:
            return await asyncio.wait_for(coro, self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Store call timed out: %s (%.1fs)", operation, self.timeout)
            raise CollaboratorTimeoutError(f"{operation} timed out after {self.timeout}s") from exc

    @staticmethod
    def _model(collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValidationError(f"Unknown collection {collection}") from None

    def _check_fields(self, collection: str, fields) -> None:
        columns = self._model(collection).__table__.columns
        unknown = [field for field in fields if field not in columns]
        if unknown:
            raise ValidationError(f"Unknown field(s) for {collection}: {', '.join(sorted(unknown))}")

    @abstractmethod
    async def _get(self, collection: str, record_id: str) -> Record: ...

    @abstractmethod
    async def _query(self, collection, filters, order_by, descending) -> List[Record]: ...

    @abstractmethod
    async def _create(self, collection: str, data: Record) -> str: ...

    @abstractmethod
    async def _update(self, collection, record_id, changes, expected) -> None: ...

    @abstractmethod
    async def _delete(self, collection: str, record_id: str) -> None: ...


class SqlDocumentStore(DocumentStore):
    """Document store backed by the SQLAlchemy models in ``models.py``."""

    def __init__(self, session_factory: async_sessionmaker, timeout: Optional[float] = None):
        super().__init__(timeout)
        self._session_factory = session_factory

    async def _call(self, operation, coro):
        try:
            return await super()._call(operation, coro)
        except IntegrityError as exc:
            raise ConflictError(f"{operation} violates a uniqueness constraint") from exc
        except SQLAlchemyError as exc:
            logger.error("Database error during %s", operation, exc_info=exc)
            raise UnavailableError(f"{operation} failed: database unavailable") from exc

    @staticmethod
    def _to_record(obj) -> Record:
        return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}

    async def _get(self, collection, record_id):
        model = self._model(collection)
        async with self._session_factory() as session:
            obj = await session.get(model, record_id)
            if obj is None:
                raise NotFoundError(f"{collection} record {record_id} not found")
            return self._to_record(obj)

    async def _query(self, collection, filters, order_by, descending):
        model = self._model(collection)
        self._check_fields(collection, list(filters) + ([order_by] if order_by else []))

        stmt = select(model)
        for field, value in filters.items():
            stmt = stmt.where(model.__table__.c[field] == value)
        if order_by:
            column = model.__table__.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_record(obj) for obj in result.scalars().all()]

    async def _create(self, collection, data):
        model = self._model(collection)
        self._check_fields(collection, data)
        record_id = data.get("id") or str(uuid4())

        async with self._session_factory() as session:
            session.add(model(**{**data, "id": record_id}))
            await session.commit()
        return record_id

    async def _update(self, collection, record_id, changes, expected):
        model = self._model(collection)
        self._check_fields(collection, list(changes) + list(expected))

        stmt = sa_update(model).where(model.id == record_id)
        for field, value in expected.items():
            stmt = stmt.where(model.__table__.c[field] == value)
        stmt = stmt.values(**changes).execution_options(synchronize_session=False)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                exists = await session.get(model, record_id) is not None
                await session.rollback()
                if not exists:
                    raise NotFoundError(f"{collection} record {record_id} not found")
                raise ConflictError(f"{collection} record {record_id} no longer matches {expected}")
            await session.commit()

    async def _delete(self, collection, record_id):
        model = self._model(collection)
        stmt = sa_delete(model).where(model.id == record_id).execution_options(synchronize_session=False)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                await session.rollback()
                raise NotFoundError(f"{collection} record {record_id} not found")
            await session.commit()


class MemoryDocumentStore(DocumentStore):
    """Process-local store. Conditional updates are serialized by a lock."""

    def __init__(self, timeout: Optional[float] = None):
        super().__init__(timeout)
        self._collections: Dict[str, Dict[str, Record]] = {name: {} for name in COLLECTIONS}
        self._lock = asyncio.Lock()

    def _records(self, collection: str) -> Dict[str, Record]:
        self._model(collection)
        return self._collections[collection]

    async def _get(self, collection, record_id):
        record = self._records(collection).get(record_id)
        if record is None:
            raise NotFoundError(f"{collection} record {record_id} not found")
        return copy.deepcopy(record)

    async def _query(self, collection, filters, order_by, descending):
        self._check_fields(collection, list(filters) + ([order_by] if order_by else []))
        matches = [
            copy.deepcopy(record)
            for record in self._records(collection).values()
            if all(record.get(field) == value for field, value in filters.items())
        ]
        if order_by:
            # keeps None out of comparisons with real values
            matches.sort(key=lambda r: (r[order_by] is None, r[order_by]), reverse=descending)
        return matches

    async def _create(self, collection, data):
        self._check_fields(collection, data)
        record_id = data.get("id") or str(uuid4())
        now = datetime.utcnow()

        record = {column.name: None for column in self._model(collection).__table__.columns}
        record.update(copy.deepcopy(data))
        record.update(id=record_id, created_at=now, updated_at=now)

        async with self._lock:
            records = self._records(collection)
            if record_id in records:
                raise ConflictError(f"{collection} record {record_id} already exists")
            records[record_id] = record
        return record_id

    async def _update(self, collection, record_id, changes, expected):
        self._check_fields(collection, list(changes) + list(expected))
        async with self._lock:
            record = self._records(collection).get(record_id)
            if record is None:
                raise NotFoundError(f"{collection} record {record_id} not found")
            if any(record.get(field) != value for field, value in expected.items()):
                raise ConflictError(f"{collection} record {record_id} no longer matches {expected}")
            record.update(copy.deepcopy(changes))
            record["updated_at"] = datetime.utcnow()

    async def _delete(self, collection, record_id):
        async with self._lock:
            if self._records(collection).pop(record_id, None) is None:
                raise NotFoundError(f"{collection} record {record_id} not found")
