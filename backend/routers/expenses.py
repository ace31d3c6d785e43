"""Card statements and toll expenses router."""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from dependencies import get_actor, get_pipeline
from schemas import (
    Actor, CardStatement, DeleteIdsRequest, ExpenseRecord,
    IngestStatementRequest, IngestStatementResponse,
)
from services.pipeline_service import PipelineService

router = APIRouter()


@router.get("/", response_model=List[ExpenseRecord])
async def list_expenses(
    q: Optional[str] = Query(None, description="Free-text search (accent and case insensitive)"),
    pipeline: PipelineService = Depends(get_pipeline)
):
    """List toll/card expenses, optionally filtered by a search query."""
    return await pipeline.list_expenses(q)


@router.get("/statements", response_model=List[CardStatement])
async def list_statements(pipeline: PipelineService = Depends(get_pipeline)):
    """List card statements, newest first."""
    return await pipeline.list_statements()


@router.post("/statements", response_model=IngestStatementResponse)
async def ingest_statement(
    request: IngestStatementRequest,
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """
    Store one extracted card statement.

    The statement total of detected tolls is the sum of the extracted items;
    the billed total comes from the statement header as-is.
    """
    return await pipeline.ingest_statement(request.file, request.metadata, request.items, actor)


@router.delete("/")
async def delete_expenses(
    request: DeleteIdsRequest,
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """Delete expenses by id. Unknown ids are ignored."""
    deleted = await pipeline.delete_expenses(request.ids, actor)
    return {"deleted": deleted}
