"""API router aggregation."""

from fastapi import APIRouter

from meetprep.api.cache import router as cache_router
from meetprep.api.discovery import router as discovery_router
from meetprep.api.health import router as health_router
from meetprep.api.prep import router as prep_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(discovery_router)
api_router.include_router(prep_router)
api_router.include_router(cache_router)
