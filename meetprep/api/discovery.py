"""API endpoint for meeting context discovery.

GET /meeting-prep/discover returns ranked candidates for a target
meeting, served from the discovery cache when fresh.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from meetprep.api.dependencies import get_access_token, get_discovery_service
from meetprep.discovery.discovery_service import (
    DiscoveryService,
    TargetMeetingNotFoundError,
)
from meetprep.discovery.keyword_booster import InvalidKeywordsError

logger = structlog.get_logger()

router = APIRouter(prefix="/meeting-prep", tags=["discovery"])


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    """JSON error body in the ``{error, details}`` shape."""
    content: dict = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@router.get("/discover")
async def discover(
    access_token: Annotated[str, Depends(get_access_token)],
    service: Annotated[DiscoveryService, Depends(get_discovery_service)],
    meeting_id: Annotated[str | None, Query(alias="meetingId")] = None,
    keywords: Annotated[str | None, Query()] = None,
):
    """Discover and rank context candidates for a target meeting.

    Args:
        meeting_id: Target meeting id (required)
        keywords: Optional comma-separated keywords that boost matching titles

    Returns:
        DiscoveryResult with cached, cacheAge, keywordsApplied, processingTimeMs
    """
    if not meeting_id or not meeting_id.strip():
        return error_response(400, "meetingId is required")

    try:
        outcome = await service.discover(access_token, meeting_id.strip(), keywords)
    except InvalidKeywordsError as e:
        return error_response(400, "Invalid keywords", str(e))
    except TargetMeetingNotFoundError:
        return error_response(404, "Meeting not found")
    except Exception as e:
        logger.error("discovery failed", meeting_id=meeting_id, error=str(e))
        return error_response(500, "Failed to discover meeting context", str(e))

    return outcome.to_payload()
