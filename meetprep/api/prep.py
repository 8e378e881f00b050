"""API endpoint for preparation brief generation."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends

from meetprep.api.dependencies import get_access_token, get_preparation_pipeline
from meetprep.api.discovery import error_response
from meetprep.discovery.discovery_service import TargetMeetingNotFoundError
from meetprep.prep.preparation_pipeline import PreparationPipeline
from meetprep.prep.schemas import PreparationRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/meeting-prep", tags=["prep"])


@router.post("")
async def generate_preparation(
    request: PreparationRequest,
    access_token: Annotated[str, Depends(get_access_token)],
    pipeline: Annotated[PreparationPipeline, Depends(get_preparation_pipeline)],
):
    """Generate a preparation brief from user-confirmed selections.

    Args:
        request: PreparationRequest with meetingId and selections

    Returns:
        PreparationResult with brief, per-item summaries and stats
    """
    if not request.meeting_id or not request.meeting_id.strip():
        return error_response(400, "meetingId is required")

    try:
        result = await pipeline.prepare(
            access_token,
            request.meeting_id.strip(),
            request.selections,
        )
    except TargetMeetingNotFoundError:
        return error_response(404, "Target meeting not found")
    except Exception as e:
        logger.error("preparation failed", meeting_id=request.meeting_id, error=str(e))
        return error_response(500, "Failed to generate meeting preparation", str(e))

    return result.model_dump(mode="json", by_alias=True)
