"""TTL cache for assembled discovery results.

Entries are keyed by target meeting id, optionally suffixed with the
normalized keyword string, and expire purely by age. Uses SQLite (via
TursoClient) so cached results are shared across workers.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from meetprep.db.turso import TursoClient

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def discovery_cache_key(meeting_id: str, normalized_keywords: str = "") -> str:
    """Cache key for a discovery request; keyword queries get their own entry."""
    if normalized_keywords:
        return f"{meeting_id}:{normalized_keywords}"
    return meeting_id


@dataclass(frozen=True)
class CacheEntry:
    """A stored discovery payload and its freshness metadata."""

    key: str
    payload: dict
    created_at: datetime
    ttl_minutes: int

    def is_expired(self, now: datetime) -> bool:
        return now - self.created_at > timedelta(minutes=self.ttl_minutes)

    def age_seconds(self, now: datetime) -> int:
        return max(0, int((now - self.created_at).total_seconds()))


class CacheStore(Protocol):
    """Key-value store with TTL semantics for discovery results."""

    async def get(self, key: str) -> CacheEntry | None: ...

    async def put(self, key: str, payload: dict, ttl_minutes: int) -> CacheEntry: ...


class DiscoveryCacheRepository:
    """SQLite-backed CacheStore.

    Concurrent writes to the same key are last-write-wins; there is no
    locking because payloads can always be regenerated.
    """

    def __init__(self, db_client: TursoClient, clock: Clock | None = None):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
            clock: Source of "now"; injectable to simulate expiry in tests
        """
        self._db = db_client
        self._clock = clock or utc_now

    async def initialize(self) -> None:
        """Create discovery_cache table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS discovery_cache (
                cache_key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                created_at TEXT NOT NULL,
                ttl_minutes INTEGER NOT NULL
            )
            """,
            ]
        )

    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry for a key, or None if absent or expired."""
        result = await self._db.execute(
            """
            SELECT cache_key, payload, created_at, ttl_minutes
            FROM discovery_cache
            WHERE cache_key = ?
            """,
            [key],
        )
        if not result.rows:
            return None

        row = result.rows[0]
        entry = CacheEntry(
            key=row[0],
            payload=json.loads(row[1]),
            created_at=datetime.fromisoformat(row[2]),
            ttl_minutes=int(row[3]),
        )
        if entry.is_expired(self._clock()):
            return None
        return entry

    async def put(self, key: str, payload: dict, ttl_minutes: int) -> CacheEntry:
        """Store a payload under a key, replacing any existing entry."""
        created_at = self._clock()
        await self._db.execute(
            """
            INSERT INTO discovery_cache (cache_key, payload, created_at, ttl_minutes)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(cache_key)
            DO UPDATE SET
                payload = excluded.payload,
                created_at = excluded.created_at,
                ttl_minutes = excluded.ttl_minutes
            """,
            [key, json.dumps(payload), created_at.isoformat(), ttl_minutes],
        )
        return CacheEntry(
            key=key,
            payload=payload,
            created_at=created_at,
            ttl_minutes=ttl_minutes,
        )

    async def clear_all(self) -> int:
        """Delete every entry, expired or not.

        Returns:
            Number of entries deleted
        """
        result = await self._db.execute("DELETE FROM discovery_cache")
        return result.rows_affected
