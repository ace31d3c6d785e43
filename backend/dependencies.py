"""FastAPI dependencies shared by the routers."""

from typing import Optional

from fastapi import Depends, Header

from schemas import Actor
from services.audit_service import AuditService
from services.pipeline_service import PipelineService
from services.storage_service import StorageService, get_storage_service


def get_storage() -> StorageService:
    return get_storage_service()


def get_pipeline(storage: StorageService = Depends(get_storage)) -> PipelineService:
    return PipelineService(storage)


def get_audit(storage: StorageService = Depends(get_storage)) -> AuditService:
    return AuditService(storage)


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> Actor:
    """
    Actor recorded in the audit log.

    Authentication happens upstream; callers pass the user through
    X-User-Id / X-User-Name. Anonymous calls are logged as the system actor.
    """
    if not x_user_id:
        return Actor()
    return Actor(id=x_user_id, name=x_user_name or x_user_id)
