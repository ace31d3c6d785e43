"""Uploaded source files router."""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from dependencies import get_actor, get_pipeline
from schemas import Actor, CascadeDeleteResult, DeleteIdsRequest, UploadedFileRecord, UploadedFileSummary
from services.pipeline_service import PipelineService

router = APIRouter()


@router.get("/", response_model=List[UploadedFileSummary])
async def list_files(pipeline: PipelineService = Depends(get_pipeline)):
    """List uploaded files (without content), newest first."""
    return await pipeline.list_files()


@router.get("/{file_id}", response_model=UploadedFileRecord)
async def get_file(file_id: str, pipeline: PipelineService = Depends(get_pipeline)):
    """Get a file including its base64 content."""
    file = await pipeline.get_file(file_id)

    if not file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )

    return file


@router.post("/delete", response_model=CascadeDeleteResult)
async def delete_files(
    request: DeleteIdsRequest,
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """Delete files and every movement, expense and statement extracted from them."""
    return await pipeline.delete_files(request.ids, actor)
