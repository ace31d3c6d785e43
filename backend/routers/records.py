"""Truck movement records router."""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from dependencies import get_actor, get_pipeline
from schemas import (
    Actor, DeleteIdsRequest, ExtractedRecord, IngestRecordsRequest,
    IngestRecordsResponse, ReconciliationSummary,
)
from services.pipeline_service import PipelineService

router = APIRouter()


@router.get("/", response_model=List[ExtractedRecord])
async def list_records(
    q: Optional[str] = Query(None, description="Free-text search (accent and case insensitive)"),
    pipeline: PipelineService = Depends(get_pipeline)
):
    """List stored movements, optionally filtered by a search query."""
    return await pipeline.list_records(q)


@router.post("/ingest", response_model=IngestRecordsResponse)
async def ingest_records(
    request: IngestRecordsRequest,
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """Store one extracted document: the file plus its reconciled movements."""
    return await pipeline.ingest_records(request.file, request.items, actor)


@router.post("/reconcile", response_model=ReconciliationSummary)
async def reconcile_records(pipeline: PipelineService = Depends(get_pipeline)):
    """Re-run reconciliation of all stored movements against the current roster."""
    return await pipeline.reconcile_all()


@router.delete("/all")
async def clear_records(
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """Delete every stored movement."""
    deleted = await pipeline.clear_records(actor)
    return {"deleted": deleted}


@router.delete("/")
async def delete_records(
    request: DeleteIdsRequest,
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """Delete movements by id. Unknown ids are ignored."""
    deleted = await pipeline.delete_records(request.ids, actor)
    return {"deleted": deleted}
