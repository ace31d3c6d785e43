"""Application preferences router (theme) and the dashboard snapshot."""

from fastapi import APIRouter, Depends

from dependencies import get_actor, get_pipeline
from schemas import Actor, SystemSnapshot, ThemeSettings
from services.pipeline_service import PipelineService

router = APIRouter()


@router.get("/settings/theme", response_model=ThemeSettings)
async def get_theme(pipeline: PipelineService = Depends(get_pipeline)):
    """Saved theme, or the defaults when none was saved yet."""
    return await pipeline.get_theme() or ThemeSettings()


@router.put("/settings/theme", response_model=ThemeSettings)
async def save_theme(
    theme: ThemeSettings,
    pipeline: PipelineService = Depends(get_pipeline),
    actor: Actor = Depends(get_actor)
):
    return await pipeline.save_theme(theme, actor)


@router.get("/snapshot", response_model=SystemSnapshot)
async def get_snapshot(pipeline: PipelineService = Depends(get_pipeline)):
    """
    Everything the dashboard loads on refresh.

    Kinds that fail to load come back empty and are named in `errors`.
    """
    return await pipeline.load_snapshot()
