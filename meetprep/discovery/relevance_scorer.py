"""Relevance scoring through an external classification oracle.

The scorer owns aggregation and fallback only: one oracle call per
non-empty source type, all types concurrently, results merged by item id.
"""

import asyncio
from typing import Protocol

import structlog

from meetprep.config import settings
from meetprep.discovery.schemas import (
    ClassificationItem,
    DiscoveredItem,
    EmailItem,
    FileItem,
    MeetingItem,
    RelevanceScore,
    ScoredCandidate,
    SourceKind,
    TeamItem,
)

logger = structlog.get_logger()

CATEGORY_NAMES: dict[SourceKind, str] = {
    SourceKind.MEETING: "meetings",
    SourceKind.EMAIL: "emails",
    SourceKind.TEAM: "teams",
    SourceKind.FILE: "files",
}


class RelevanceOracle(Protocol):
    """Expensive, rate-limited relevance classifier."""

    async def classify(
        self,
        target_title: str,
        items: list[ClassificationItem],
        category: str,
        keywords: str | None = None,
    ) -> list[RelevanceScore]: ...


def _short_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "unknown date"


def describe_for_classification(item: DiscoveredItem) -> str:
    """One-line metadata shown to the oracle next to the item title."""
    if isinstance(item, MeetingItem):
        return f"{_short_date(item.start_time)} - {item.attendee_count} attendees"
    if isinstance(item, EmailItem):
        sender = item.from_name or item.from_email or "Unknown"
        return f"From: {sender} - {_short_date(item.received_time)}"
    if isinstance(item, TeamItem):
        return item.description or ""
    if isinstance(item, FileItem):
        parts = [f"Source: {item.document_source.value}"]
        if item.container_name:
            parts.append(f"Container: {item.container_name}")
        if item.owner:
            parts.append(f"Owner: {item.owner}")
        if item.modified_time:
            parts.append(f"Modified: {_short_date(item.modified_time)}")
        return " | ".join(parts)
    return ""


def to_classification_item(item: DiscoveredItem) -> ClassificationItem:
    return ClassificationItem(
        id=item.id,
        title=item.title,
        metadata=describe_for_classification(item),
    )


class RelevanceScorer:
    """Scores discovered items per source type via the oracle."""

    def __init__(self, oracle: RelevanceOracle, timeout_seconds: float | None = None):
        self._oracle = oracle
        self._timeout = timeout_seconds or settings.classification_timeout_seconds

    async def score_all(
        self,
        target_title: str,
        items_by_kind: dict[SourceKind, list[DiscoveredItem]],
        keywords: list[str] | None = None,
    ) -> dict[SourceKind, list[ScoredCandidate]]:
        """Score every source type concurrently.

        Args:
            target_title: Title of the meeting being prepared for
            items_by_kind: Deduplicated items per source type
            keywords: Parsed user keyword tokens, forwarded to the oracle

        Returns:
            Scored candidates per source type, in input order
        """
        kinds = list(items_by_kind)
        keyword_text = ", ".join(keywords) if keywords else None

        results = await asyncio.gather(
            *(
                self.score_kind(target_title, kind, items_by_kind[kind], keyword_text)
                for kind in kinds
            )
        )
        return dict(zip(kinds, results, strict=True))

    async def score_kind(
        self,
        target_title: str,
        kind: SourceKind,
        items: list[DiscoveredItem],
        keywords: str | None = None,
    ) -> list[ScoredCandidate]:
        """Score one source type with a single oracle call.

        Empty input never reaches the oracle. A failed or timed-out call
        scores the whole category 0.
        """
        if not items:
            return []

        category = CATEGORY_NAMES[kind]
        try:
            scores = await asyncio.wait_for(
                self._oracle.classify(
                    target_title,
                    [to_classification_item(item) for item in items],
                    category,
                    keywords,
                ),
                timeout=self._timeout,
            )
        except Exception as e:
            logger.warning(
                "relevance classification failed",
                category=category,
                items=len(items),
                error=str(e) or type(e).__name__,
            )
            scores = []

        by_id: dict[str, RelevanceScore] = {}
        for score in scores:
            by_id.setdefault(str(score.id), score)

        scored = []
        for item in items:
            match = by_id.get(item.id)
            scored.append(
                ScoredCandidate(
                    item=item,
                    score=match.score if match else 0,
                    reasoning=match.reasoning if match else "",
                )
            )

        logger.debug(
            "scored category",
            category=category,
            items=len(items),
            matched=sum(1 for item in items if item.id in by_id),
        )
        return scored
