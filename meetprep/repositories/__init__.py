"""Repositories for the discovery cache and preparation artifacts."""

from meetprep.repositories.artifact_repo import ArtifactRepository, PreparationArtifact
from meetprep.repositories.discovery_cache_repo import (
    CacheEntry,
    CacheStore,
    DiscoveryCacheRepository,
    discovery_cache_key,
)

__all__ = [
    "ArtifactRepository",
    "CacheEntry",
    "CacheStore",
    "DiscoveryCacheRepository",
    "PreparationArtifact",
    "discovery_cache_key",
]
