"""Fleet roster router - the master registry trucks are reconciled against."""

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from typing import List
import logging

from config import settings
from dependencies import get_actor, get_pipeline, get_storage
from schemas import Actor, FleetEntry, FleetReplaceResponse
from services.fleet_importer import FleetImportError, build_roster, read_roster_rows
from services.pipeline_service import PipelineService
from services.storage_service import StorageService

router = APIRouter()
logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".xlsx", ".xls", ".csv")


@router.get("/", response_model=List[FleetEntry])
async def list_fleet(storage: StorageService = Depends(get_storage)):
    """Current roster in roster order."""
    return await storage.fleet.get_all()


@router.put("/", response_model=FleetReplaceResponse)
async def replace_fleet(
    entries: List[FleetEntry],
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """Replace the whole roster with an already-mapped list and re-reconcile stored records."""
    return await pipeline.replace_fleet(entries, actor)


@router.post("/upload", response_model=FleetReplaceResponse)
async def upload_fleet(
    file: UploadFile = File(...),
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    """
    Upload a roster spreadsheet.

    Steps:
    1. Read every sheet into raw rows
    2. Find the header row and guess the plate/owner/tag/unit columns
    3. Deduplicate rows by plate (or tag)
    4. Replace the roster and re-reconcile stored records
    """
    filename = file.filename or ""
    if not filename.lower().endswith(ALLOWED_EXTENSIONS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.max_upload_mb}MB"
        )

    try:
        entries = build_roster(read_roster_rows(content, filename))
    except FleetImportError as e:
        logger.warning(f"Rejected roster upload {filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return await pipeline.replace_fleet(entries, actor)
