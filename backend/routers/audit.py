"""Audit log router."""

from fastapi import APIRouter, Depends, Query
from typing import List

from dependencies import get_audit
from schemas import AuditLog
from services.audit_service import AuditService

router = APIRouter()


@router.get("/", response_model=List[AuditLog])
async def list_audit_logs(
    limit: int = Query(200, ge=1, le=5000),
    audit: AuditService = Depends(get_audit)
):
    """Most recent audit entries first."""
    logs = await audit.get_logs()
    return logs[:limit]
