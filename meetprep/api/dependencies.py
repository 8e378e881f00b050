"""Shared FastAPI dependencies: caller credential and app-state services."""

from typing import Annotated

from fastapi import Header, HTTPException, Request

from meetprep.discovery.discovery_service import DiscoveryService
from meetprep.prep.preparation_pipeline import PreparationPipeline
from meetprep.repositories.artifact_repo import ArtifactRepository
from meetprep.repositories.discovery_cache_repo import DiscoveryCacheRepository


def get_access_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Delegated Graph credential from the ``Authorization: Bearer`` header.

    Raises:
        HTTPException: 401 if the header is missing or not a bearer token
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return token.strip()


def _state_service(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{label} not initialized")
    return service


def get_discovery_service(request: Request) -> DiscoveryService:
    """Dependency to get DiscoveryService instance from app state.

    Raises:
        HTTPException: If service not initialized
    """
    return _state_service(request, "discovery_service", "DiscoveryService")


def get_preparation_pipeline(request: Request) -> PreparationPipeline:
    """Dependency to get PreparationPipeline instance from app state."""
    return _state_service(request, "preparation_pipeline", "PreparationPipeline")


def get_artifact_repo(request: Request) -> ArtifactRepository:
    return _state_service(request, "artifact_repo", "ArtifactRepository")


def get_discovery_cache_repo(request: Request) -> DiscoveryCacheRepository:
    return _state_service(request, "discovery_cache_repo", "DiscoveryCacheRepository")
