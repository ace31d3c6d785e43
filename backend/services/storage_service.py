"""Keyed storage layer - one async collection per entity kind."""

from contextlib import asynccontextmanager
from typing import Any, Callable, Iterable, List, Optional, Tuple, Type
import asyncio
import logging

from pydantic import BaseModel
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import AsyncSessionLocal
from models import (
    TruckRecord, Expense, Statement, FleetVehicle, StoredFile,
    User, Setting, AuditEntry,
)
from schemas import (
    ExtractedRecord, ExpenseRecord, CardStatement, FleetEntry,
    UploadedFileRecord, UploadedFileSummary, UserResponse, AuditLog,
    CascadeDeleteResult,
)
from services.search_index import build_search_index

logger = logging.getLogger(__name__)


@asynccontextmanager
async def session_scope(session_factory: async_sessionmaker):
    """One session, one transaction: commit on success, roll back and re-raise on error."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


class KeyedStore:
    """
    Insert-or-replace collection keyed by a single primary key column.

    Entities go in and come out as pydantic schemas; rows never leak to
    callers. When `indexed` is set the search index is recomputed on
    every write.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        model: Type[Any],
        schema: Type[BaseModel],
        indexed: bool = False,
    ):
        self._session_factory = session_factory
        self.model = model
        self.schema = schema
        self.indexed = indexed
        self._columns = {column.key for column in model.__table__.columns}
        self._key = model.__table__.primary_key.columns.values()[0]

    def _to_row(self, entity: BaseModel):
        data = {
            name: value
            for name, value in entity.model_dump(mode="json").items()
            if name in self._columns
        }
        if self.indexed:
            data["search_index"] = build_search_index(entity)
        return self.model(**data)

    def _to_schema(self, row) -> BaseModel:
        return self.schema.model_validate(row)

    async def put(self, entity: BaseModel) -> None:
        await self.put_many([entity])

    async def put_many(self, entities: Iterable[BaseModel]) -> int:
        """Insert or fully overwrite each entity. Returns the number written."""
        count = 0
        async with session_scope(self._session_factory) as session:
            for entity in entities:
                await session.merge(self._to_row(entity))
                count += 1
        return count

    async def get(self, key: str) -> Optional[BaseModel]:
        async with self._session_factory() as session:
            row = await session.get(self.model, key)
            return self._to_schema(row) if row is not None else None

    async def get_all(self) -> List[BaseModel]:
        async with self._session_factory() as session:
            result = await session.execute(select(self.model))
            return [self._to_schema(row) for row in result.scalars().all()]

    async def delete_by_ids(self, ids: Iterable[str]) -> int:
        """Remove the given keys. Unknown keys are ignored."""
        keys = list(dict.fromkeys(ids))
        if not keys:
            return 0
        async with session_scope(self._session_factory) as session:
            result = await session.execute(delete(self.model).where(self._key.in_(keys)))
            return result.rowcount or 0

    async def clear(self) -> int:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(delete(self.model))
            return result.rowcount or 0


class FleetStore(KeyedStore):
    """Fleet roster. Rows are keyed by an auto sequence that preserves roster order."""

    def __init__(self, session_factory: async_sessionmaker):
        super().__init__(session_factory, FleetVehicle, FleetEntry)

    async def get_all(self) -> List[FleetEntry]:
        async with self._session_factory() as session:
            result = await session.execute(select(FleetVehicle).order_by(FleetVehicle.seq))
            return [self._to_schema(row) for row in result.scalars().all()]

    async def replace_all(self, entries: Iterable[FleetEntry]) -> int:
        """Drop the current roster and store `entries` in their given order."""
        rows = [self._to_row(entry) for entry in entries]
        async with session_scope(self._session_factory) as session:
            await session.execute(delete(FleetVehicle))
            session.add_all(rows)
        logger.info(f"Fleet roster replaced ({len(rows)} entries)")
        return len(rows)


class SettingsStore:
    """Key/value settings collection."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get_value(self, key: str) -> Optional[Any]:
        async with self._session_factory() as session:
            row = await session.get(Setting, key)
            return row.value if row is not None else None

    async def set_value(self, key: str, value: Any) -> None:
        async with session_scope(self._session_factory) as session:
            await session.merge(Setting(key=key, value=value))


class StorageService:
    """
    All persistent collections plus the cross-collection operations.

    `write_lock` is held by callers around every write that must not
    interleave with a read-then-write of the same rows.
    """

    def __init__(self, session_factory: async_sessionmaker = AsyncSessionLocal):
        self._session_factory = session_factory
        self.write_lock = asyncio.Lock()
        self.records = KeyedStore(session_factory, TruckRecord, ExtractedRecord, indexed=True)
        self.expenses = KeyedStore(session_factory, Expense, ExpenseRecord, indexed=True)
        self.statements = KeyedStore(session_factory, Statement, CardStatement)
        self.fleet = FleetStore(session_factory)
        self.files = KeyedStore(session_factory, StoredFile, UploadedFileRecord)
        self.users = KeyedStore(session_factory, User, UserResponse)
        self.settings = SettingsStore(session_factory)
        self.audit = KeyedStore(session_factory, AuditEntry, AuditLog)

    async def reconcile_records(
        self,
        reconcile_fn: Callable[[List[ExtractedRecord], List[FleetEntry]], List[ExtractedRecord]],
        new_fleet: Optional[Iterable[FleetEntry]] = None,
    ) -> Tuple[int, List[ExtractedRecord]]:
        """
        Re-run `reconcile_fn` over every stored record and save the results.

        With `new_fleet` the roster is replaced first. Roster swap, record
        read and record write share one transaction, so a failure keeps
        the old roster and the old annotations together.

        Returns:
            (roster size, reconciled records)
        """
        async with session_scope(self._session_factory) as session:
            if new_fleet is None:
                result = await session.execute(select(FleetVehicle).order_by(FleetVehicle.seq))
                fleet = [self.fleet._to_schema(row) for row in result.scalars().all()]
            else:
                fleet = list(new_fleet)
                await session.execute(delete(FleetVehicle))
                session.add_all([self.fleet._to_row(entry) for entry in fleet])

            result = await session.execute(select(TruckRecord))
            records = [self.records._to_schema(row) for row in result.scalars().all()]
            reconciled = reconcile_fn(records, fleet)

            for record in reconciled:
                await session.merge(self.records._to_row(record))

        if new_fleet is not None:
            logger.info(f"Fleet roster replaced ({len(fleet)} entries)")
        return len(fleet), reconciled

    async def list_file_summaries(self) -> List[UploadedFileSummary]:
        """File listing without loading the stored content, newest first."""
        columns = (
            StoredFile.id, StoredFile.name, StoredFile.mime_type,
            StoredFile.size_bytes, StoredFile.created_at,
        )
        async with self._session_factory() as session:
            result = await session.execute(select(*columns).order_by(StoredFile.created_at.desc()))
            return [UploadedFileSummary.model_validate(dict(row._mapping)) for row in result.all()]

    @staticmethod
    async def _delete_dependents(session: AsyncSession, model, file_ids: List[str]) -> int:
        result = await session.execute(select(model.id).where(model.source_file_id.in_(file_ids)))
        dependent_ids = list(result.scalars().all())
        if dependent_ids:
            await session.execute(delete(model).where(model.id.in_(dependent_ids)))
        return len(dependent_ids)

    async def delete_files_and_dependents(self, file_ids: Iterable[str]) -> CascadeDeleteResult:
        """
        Delete files and every record, expense and statement sourced from them.

        Runs as a single transaction: either everything is removed or,
        on failure, nothing is and the error is re-raised.
        """
        ids = list(dict.fromkeys(file_ids))
        if not ids:
            return CascadeDeleteResult()

        async with session_scope(self._session_factory) as session:
            records = await self._delete_dependents(session, TruckRecord, ids)
            expenses = await self._delete_dependents(session, Expense, ids)
            statements = await self._delete_dependents(session, Statement, ids)

            result = await session.execute(select(StoredFile.id).where(StoredFile.id.in_(ids)))
            existing_files = list(result.scalars().all())
            if existing_files:
                await session.execute(delete(StoredFile).where(StoredFile.id.in_(existing_files)))

        deleted = CascadeDeleteResult(
            files=len(existing_files),
            records=records,
            expenses=expenses,
            statements=statements,
        )
        logger.info(f"Cascading delete for {len(ids)} file id(s): {deleted.model_dump()}")
        return deleted


# Lazy initialization - service will be created on first use
_storage_service_instance = None


def get_storage_service() -> StorageService:
    """Get or create Storage service instance (lazy initialization)."""
    global _storage_service_instance
    if _storage_service_instance is None:
        _storage_service_instance = StorageService()
    return _storage_service_instance
