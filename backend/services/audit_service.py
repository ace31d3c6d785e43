"""Audit trail service - best effort, never blocks the action it records."""

from typing import List, Optional
import logging
import uuid

from models import now_ms
from schemas import Actor, AuditAction, AuditLog
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = Actor()


class AuditService:
    """Writes and lists audit log entries."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    async def log_action(
        self,
        actor: Optional[Actor],
        action: AuditAction,
        module: str,
        details: str,
    ) -> Optional[AuditLog]:
        """
        Record an action.

        Failures are logged and swallowed so the primary operation is
        never rolled back or failed because of the audit trail.

        Returns:
            The stored entry, or None if it could not be written
        """
        actor = actor or SYSTEM_ACTOR
        entry = AuditLog(
            id=f"log-{now_ms()}-{uuid.uuid4().hex[:5]}",
            user_id=actor.id,
            user_name=actor.name,
            action=action,
            module=module,
            details=details,
            timestamp=now_ms(),
        )
        try:
            await self.storage.audit.put(entry)
            return entry
        except Exception as e:
            logger.error(f"Audit log failed ({action.value} {module}): {e}")
            return None

    async def get_logs(self) -> List[AuditLog]:
        """All entries, newest first."""
        logs = await self.storage.audit.get_all()
        return sorted(logs, key=lambda log: log.timestamp, reverse=True)
