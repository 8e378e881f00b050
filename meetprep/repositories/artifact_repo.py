"""Repository for generated per-item preparation artifacts.

Stores the summary generated for a meeting or email, keyed by the source
item id, so the same item is never summarized twice. Writes are
unconditional upserts; there is no TTL and no versioning.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from meetprep.db.turso import TursoClient

ArtifactKind = Literal["meeting", "email"]


@dataclass(frozen=True)
class PreparationArtifact:
    """Cached generated summary for a single source item."""

    item_id: str
    item_kind: ArtifactKind
    summary: dict
    subject: str | None = None
    model: str | None = None
    generated_at: datetime | None = None
    generated_by: str | None = None


def _row_to_artifact(row) -> PreparationArtifact:
    return PreparationArtifact(
        item_id=row[0],
        item_kind=row[1],
        subject=row[2],
        summary=json.loads(row[3]),
        model=row[4],
        generated_at=datetime.fromisoformat(row[5]) if row[5] else None,
        generated_by=row[6],
    )


class ArtifactRepository:
    """Repository for preparation artifacts.

    Uses SQLite (via TursoClient) for persistence. Latest write wins.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create preparation_artifacts table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS preparation_artifacts (
                item_id TEXT PRIMARY KEY,
                item_kind TEXT NOT NULL,
                subject TEXT,
                summary TEXT NOT NULL,
                model TEXT,
                generated_at TEXT NOT NULL,
                generated_by TEXT
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_artifacts_generated
            ON preparation_artifacts(generated_at)
            """,
            ]
        )

    async def get(self, item_id: str) -> PreparationArtifact | None:
        """Get the cached artifact for a source item, if any."""
        result = await self._db.execute(
            """
            SELECT item_id, item_kind, subject, summary, model,
                   generated_at, generated_by
            FROM preparation_artifacts
            WHERE item_id = ?
            """,
            [item_id],
        )
        if result.rows:
            return _row_to_artifact(result.rows[0])
        return None

    async def save(
        self,
        item_id: str,
        item_kind: ArtifactKind,
        summary: dict,
        subject: str | None = None,
        model: str | None = None,
        generated_by: str | None = None,
    ) -> PreparationArtifact:
        """Save an artifact (upsert).

        If an artifact already exists for this item id, it is replaced.

        Args:
            item_id: Meeting or email id the summary was generated for
            item_kind: "meeting" or "email"
            summary: Generated summary as a JSON-serializable dict
            subject: Subject of the source item
            model: Model that produced the summary
            generated_by: User who requested generation

        Returns:
            The stored artifact
        """
        generated_at = datetime.now(UTC)
        await self._db.execute(
            """
            INSERT INTO preparation_artifacts
                (item_id, item_kind, subject, summary, model, generated_at, generated_by)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_id)
            DO UPDATE SET
                item_kind = excluded.item_kind,
                subject = excluded.subject,
                summary = excluded.summary,
                model = excluded.model,
                generated_at = excluded.generated_at,
                generated_by = excluded.generated_by
            """,
            [
                item_id,
                item_kind,
                subject,
                json.dumps(summary),
                model,
                generated_at.isoformat(),
                generated_by,
            ],
        )
        return PreparationArtifact(
            item_id=item_id,
            item_kind=item_kind,
            summary=summary,
            subject=subject,
            model=model,
            generated_at=generated_at,
            generated_by=generated_by,
        )

    async def clear_all(self) -> int:
        """Delete every artifact.

        Returns:
            Number of artifacts deleted
        """
        result = await self._db.execute("DELETE FROM preparation_artifacts")
        return result.rows_affected
