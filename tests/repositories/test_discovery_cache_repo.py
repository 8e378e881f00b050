"""Tests for DiscoveryCacheRepository."""

from datetime import UTC, datetime

import pytest

from meetprep.db.turso import TursoClient
from meetprep.repositories.discovery_cache_repo import (
    CacheEntry,
    DiscoveryCacheRepository,
    discovery_cache_key,
)


@pytest.fixture
async def repo(db_client: TursoClient, clock):
    """Create DiscoveryCacheRepository with initialized table."""
    repo = DiscoveryCacheRepository(db_client, clock=clock)
    await repo.initialize()
    return repo


def test_cache_key_without_keywords():
    assert discovery_cache_key("meeting-1") == "meeting-1"


def test_cache_key_with_keywords():
    assert discovery_cache_key("meeting-1", "budget,q3") == "meeting-1:budget,q3"


def test_entry_expiry_boundary():
    """An entry is expired only once its age exceeds the TTL."""
    created = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    entry = CacheEntry(key="k", payload={}, created_at=created, ttl_minutes=30)

    assert not entry.is_expired(datetime(2026, 3, 2, 9, 30, tzinfo=UTC))
    assert entry.is_expired(datetime(2026, 3, 2, 9, 30, 1, tzinfo=UTC))


@pytest.mark.asyncio
async def test_initialize_creates_table(db_client: TursoClient):
    """Initialize should create discovery_cache table."""
    repo = DiscoveryCacheRepository(db_client)
    await repo.initialize()

    result = await db_client.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='discovery_cache'"
    )
    assert len(result.rows) == 1


@pytest.mark.asyncio
async def test_put_and_get(repo: DiscoveryCacheRepository):
    """Should store a payload and return it while fresh."""
    await repo.put("meeting-1", {"targetMeeting": {"id": "meeting-1"}}, 30)

    entry = await repo.get("meeting-1")

    assert entry is not None
    assert entry.payload == {"targetMeeting": {"id": "meeting-1"}}
    assert entry.ttl_minutes == 30
    assert entry.created_at == datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_get_missing_returns_none(repo: DiscoveryCacheRepository):
    assert await repo.get("nonexistent") is None


@pytest.mark.asyncio
async def test_expired_entry_not_returned(repo: DiscoveryCacheRepository, clock):
    """Entries older than their TTL should read as absent."""
    await repo.put("meeting-1", {"v": 1}, 30)

    clock.advance(minutes=29)
    assert await repo.get("meeting-1") is not None

    clock.advance(minutes=2)
    assert await repo.get("meeting-1") is None


@pytest.mark.asyncio
async def test_put_replaces_existing(repo: DiscoveryCacheRepository, clock):
    """Second put to the same key should overwrite payload and reset age."""
    await repo.put("meeting-1", {"v": 1}, 30)
    clock.advance(minutes=25)
    await repo.put("meeting-1", {"v": 2}, 30)
    clock.advance(minutes=25)

    entry = await repo.get("meeting-1")

    assert entry is not None
    assert entry.payload == {"v": 2}
    assert entry.age_seconds(clock()) == 25 * 60


@pytest.mark.asyncio
async def test_clear_all_counts_entries(repo: DiscoveryCacheRepository, clock):
    """clear_all should delete expired and fresh entries alike."""
    await repo.put("old", {"v": 1}, 1)
    clock.advance(minutes=10)
    await repo.put("meeting-1", {"v": 1}, 30)
    await repo.put("meeting-1:budget", {"v": 2}, 30)

    deleted = await repo.clear_all()

    assert deleted == 3
    assert await repo.get("meeting-1") is None
