"""
Ingestion pipeline - reconcile, persist and audit.

Every write that can race a read-then-write of the same rows holds the
storage `write_lock`, so an upload, a reconciliation and a delete never
interleave.
"""

from typing import Iterable, List, Optional
import logging
import uuid

from models import now_ms
from schemas import (
    Actor, AuditAction, CardStatement, CascadeDeleteResult, ExpenseItem,
    ExpenseRecord, ExtractedItem, ExtractedRecord, FleetEntry,
    FleetReplaceResponse, IngestRecordsResponse, IngestStatementResponse,
    ReconciliationSummary, StatementMetadata, SystemSnapshot, ThemeSettings,
    UploadedFileCreate, UploadedFileRecord, UploadedFileSummary,
)
from services.audit_service import AuditService
from services.reconciliation_service import reconcile, summarize
from services.search_index import filter_by_query
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

THEME_KEY = "theme"


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def to_file_record(file: UploadedFileCreate) -> UploadedFileRecord:
    return UploadedFileRecord(
        id=file.id or generate_id("file"),
        name=file.name,
        mime_type=file.mime_type,
        size_bytes=file.size_bytes,
        content_base64=file.content_base64,
        created_at=now_ms(),
    )


class PipelineService:
    """Application-level operations over the storage layer."""

    def __init__(self, storage: StorageService, audit: Optional[AuditService] = None):
        self.storage = storage
        self.audit = audit or AuditService(storage)

    # --- Truck records ---

    async def ingest_records(
        self,
        file: UploadedFileCreate,
        items: Iterable[ExtractedItem],
        actor: Optional[Actor] = None,
    ) -> IngestRecordsResponse:
        """
        Store an extracted document and its movements, reconciled against the roster.

        The file is written first so stored records never point at a missing file.
        """
        async with self.storage.write_lock:
            file_record = to_file_record(file)
            records = [
                ExtractedRecord(
                    **item.model_dump(),
                    id=generate_id("rec"),
                    source_file_id=file_record.id,
                    source_file_name=file_record.name,
                )
                for item in items
            ]
            fleet = await self.storage.fleet.get_all()
            reconciled = reconcile(records, fleet)

            await self.storage.files.put(file_record)
            await self.storage.records.put_many(reconciled)

        summary = summarize(reconciled)
        logger.info(f"Ingested {summary.total} records from {file_record.name} ({summary.verified} verified)")
        await self.audit.log_action(
            actor, AuditAction.IMPORT, "Records",
            f"Imported {summary.total} truck movements from {file_record.name}.",
        )
        return IngestRecordsResponse(file_id=file_record.id, records=reconciled, summary=summary)

    async def reconcile_all(self) -> ReconciliationSummary:
        """Re-run reconciliation over every stored record against the current roster."""
        async with self.storage.write_lock:
            _, summary = await self._reconcile_stored()
        return summary

    async def _reconcile_stored(self, new_fleet: Optional[List[FleetEntry]] = None):
        fleet_size, reconciled = await self.storage.reconcile_records(reconcile, new_fleet)
        return fleet_size, summarize(reconciled)

    async def list_records(self, query: Optional[str] = None) -> List[ExtractedRecord]:
        records = await self.storage.records.get_all()
        return filter_by_query(records, query)

    async def delete_records(self, ids: List[str], actor: Optional[Actor] = None) -> int:
        async with self.storage.write_lock:
            deleted = await self.storage.records.delete_by_ids(ids)
        await self.audit.log_action(actor, AuditAction.DELETE, "Records", f"Deleted {deleted} movements.")
        return deleted

    async def clear_records(self, actor: Optional[Actor] = None) -> int:
        async with self.storage.write_lock:
            deleted = await self.storage.records.clear()
        await self.audit.log_action(actor, AuditAction.DELETE, "Records", "Movements table cleared.")
        return deleted

    # --- Fleet ---

    async def replace_fleet(
        self,
        entries: Iterable[FleetEntry],
        actor: Optional[Actor] = None,
    ) -> FleetReplaceResponse:
        """Replace the whole roster, then re-reconcile every stored record against it."""
        async with self.storage.write_lock:
            fleet_size, summary = await self._reconcile_stored(list(entries))

        await self.audit.log_action(
            actor, AuditAction.UPDATE, "Fleet",
            f"Fleet roster updated ({fleet_size} entries).",
        )
        return FleetReplaceResponse(fleet_size=fleet_size, summary=summary)

    # --- Statements & expenses ---

    async def ingest_statement(
        self,
        file: UploadedFileCreate,
        metadata: StatementMetadata,
        items: Iterable[ExpenseItem],
        actor: Optional[Actor] = None,
    ) -> IngestStatementResponse:
        """Store a card statement header, its toll line items and the source file."""
        async with self.storage.write_lock:
            file_record = to_file_record(file)
            statement_id = generate_id("stmt")
            expenses = [
                ExpenseRecord(
                    **item.model_dump(),
                    id=f"exp-{statement_id}-{index}",
                    statement_id=statement_id,
                    source_file_id=file_record.id,
                    source_file_name=file_record.name,
                )
                for index, item in enumerate(items)
            ]
            statement = CardStatement(
                id=statement_id,
                source_file_id=file_record.id,
                **metadata.model_dump(),
                total_tolls_detected=round(sum(e.amount for e in expenses), 2),
                created_at=now_ms(),
            )

            await self.storage.files.put(file_record)
            await self.storage.statements.put(statement)
            await self.storage.expenses.put_many(expenses)

        await self.audit.log_action(
            actor, AuditAction.IMPORT, "Expenses",
            f"Imported {len(expenses)} card/toll expenses from {file_record.name}.",
        )
        return IngestStatementResponse(statement=statement, expenses=expenses)

    async def list_expenses(self, query: Optional[str] = None) -> List[ExpenseRecord]:
        expenses = await self.storage.expenses.get_all()
        return filter_by_query(expenses, query)

    async def list_statements(self) -> List[CardStatement]:
        """Statements, newest first."""
        statements = await self.storage.statements.get_all()
        return sorted(statements, key=lambda s: s.created_at or 0, reverse=True)

    async def delete_expenses(self, ids: List[str], actor: Optional[Actor] = None) -> int:
        async with self.storage.write_lock:
            deleted = await self.storage.expenses.delete_by_ids(ids)
        await self.audit.log_action(actor, AuditAction.DELETE, "Expenses", f"Deleted {deleted} expenses.")
        return deleted

    # --- Files ---

    async def list_files(self) -> List[UploadedFileSummary]:
        """Uploaded files without their content, newest first."""
        return await self.storage.list_file_summaries()

    async def get_file(self, file_id: str) -> Optional[UploadedFileRecord]:
        return await self.storage.files.get(file_id)

    async def delete_files(self, file_ids: List[str], actor: Optional[Actor] = None) -> CascadeDeleteResult:
        """Delete files together with everything extracted from them."""
        async with self.storage.write_lock:
            deleted = await self.storage.delete_files_and_dependents(file_ids)

        await self.audit.log_action(
            actor, AuditAction.DELETE, "Reports",
            f"Bulk delete: {deleted.files} files, {deleted.statements} statements, "
            f"{deleted.expenses} expenses, {deleted.records} movements.",
        )
        return deleted

    # --- Settings ---

    async def get_theme(self) -> Optional[ThemeSettings]:
        value = await self.storage.settings.get_value(THEME_KEY)
        return ThemeSettings.model_validate(value) if value else None

    async def save_theme(self, theme: ThemeSettings, actor: Optional[Actor] = None) -> ThemeSettings:
        await self.storage.settings.set_value(THEME_KEY, theme.model_dump())
        await self.audit.log_action(actor, AuditAction.SETTINGS, "Settings", "Theme updated.")
        return theme

    # --- Snapshot ---

    async def load_snapshot(self) -> SystemSnapshot:
        """
        Load everything the dashboard shows.

        Each kind loads independently; a failing one is logged and comes
        back empty instead of failing the whole snapshot.
        """
        snapshot = SystemSnapshot()
        loaders = (
            ("records", self.storage.records.get_all),
            ("expenses", self.storage.expenses.get_all),
            ("statements", self.list_statements),
            ("fleet", self.storage.fleet.get_all),
            ("theme", self.get_theme),
        )
        for name, loader in loaders:
            try:
                setattr(snapshot, name, await loader())
            except Exception as e:
                logger.error(f"Failed to load {name}: {e}")
                snapshot.errors.append(name)
        return snapshot
