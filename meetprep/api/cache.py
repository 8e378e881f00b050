"""API endpoint for clearing the discovery cache and artifact store."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from meetprep.api.dependencies import (
    get_access_token,
    get_artifact_repo,
    get_discovery_cache_repo,
)
from meetprep.api.discovery import error_response
from meetprep.repositories.artifact_repo import ArtifactRepository
from meetprep.repositories.discovery_cache_repo import DiscoveryCacheRepository

logger = structlog.get_logger()

router = APIRouter(prefix="/cache", tags=["cache"])


class CacheClearResponse(BaseModel):
    success: bool
    message: str
    artifactsDeleted: int
    discoveryEntriesDeleted: int


@router.post("/clear", response_model=CacheClearResponse)
async def clear_cache(
    access_token: Annotated[str, Depends(get_access_token)],
    artifacts: Annotated[ArtifactRepository, Depends(get_artifact_repo)],
    discovery_cache: Annotated[DiscoveryCacheRepository, Depends(get_discovery_cache_repo)],
):
    """Delete every cached preparation artifact and discovery result."""
    try:
        artifacts_deleted = await artifacts.clear_all()
        discovery_deleted = await discovery_cache.clear_all()
    except Exception as e:
        logger.error("cache clear failed", error=str(e))
        return error_response(500, "Failed to clear cache", str(e))

    logger.info(
        "cache cleared",
        artifacts_deleted=artifacts_deleted,
        discovery_entries_deleted=discovery_deleted,
    )
    return CacheClearResponse(
        success=True,
        message=(
            f"Cleared {artifacts_deleted} preparation artifacts and "
            f"{discovery_deleted} discovery entries"
        ),
        artifactsDeleted=artifacts_deleted,
        discoveryEntriesDeleted=discovery_deleted,
    )
