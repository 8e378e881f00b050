"""Parallel, failure-isolated retrieval from every discovery source.

Each Workspace Graph call runs concurrently under its own timeout. A
failing or timed-out source degrades to an empty list and a warning;
it never aborts the others.
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from meetprep.adapters.base import WorkspaceGraph
from meetprep.config import settings
from meetprep.discovery.schemas import DocumentSource

logger = structlog.get_logger()


@dataclass
class FetchedSources:
    """Raw payloads from one discovery fan-out."""

    meetings: list[dict] = field(default_factory=list)
    emails: list[dict] = field(default_factory=list)
    teams: list[dict] = field(default_factory=list)
    documents: dict[DocumentSource, list[dict]] = field(default_factory=dict)
    failed_sources: list[str] = field(default_factory=list)


def build_search_query(target_title: str, keywords: list[str]) -> str:
    """Seed the free-text content search with the title and keyword tokens."""
    return " ".join(part for part in [target_title.strip(), *keywords] if part)


class SourceFetcher:
    """Fans out to every Workspace Graph source for one discovery request."""

    def __init__(
        self,
        timeout_seconds: float | None = None,
        message_limit: int | None = None,
        recent_files_limit: int | None = None,
        insights_limit: int | None = None,
        search_limit: int | None = None,
    ):
        self._timeout = timeout_seconds or settings.source_timeout_seconds
        self._message_limit = message_limit or settings.message_fetch_limit
        self._recent_limit = recent_files_limit or settings.recent_files_limit
        self._insights_limit = insights_limit or settings.insights_limit
        self._search_limit = search_limit or settings.search_limit

    async def fetch_all(
        self,
        graph: WorkspaceGraph,
        target_title: str,
        window_start: datetime,
        window_end: datetime,
        keywords: list[str] | None = None,
    ) -> FetchedSources:
        """Fetch every source concurrently.

        Latency is bounded by the slowest source, not the sum.

        Args:
            graph: Workspace Graph bound to the caller's credential
            target_title: Target meeting title, seeds the content search
            window_start: Earliest meeting start / message receipt
            window_end: Latest meeting start
            keywords: Parsed user keyword tokens

        Returns:
            FetchedSources with an empty list for every failed source
        """
        query = build_search_query(target_title, keywords or [])

        calls: dict[str, Awaitable[list[dict]]] = {
            "meetings": graph.list_meetings(window_start, window_end),
            "emails": graph.list_messages(window_start, self._message_limit),
            "teams": graph.list_joined_teams(),
            DocumentSource.RECENT.value: graph.list_recent_files(self._recent_limit),
            DocumentSource.TRENDING.value: graph.list_trending_documents(
                self._insights_limit
            ),
            DocumentSource.USED.value: graph.list_used_documents(self._insights_limit),
            DocumentSource.SHARED.value: graph.list_shared_documents(
                self._insights_limit
            ),
            DocumentSource.SEARCH.value: graph.search_content(
                query, self._search_limit
            ),
        }

        results = await asyncio.gather(
            *(self._with_timeout(call) for call in calls.values()),
            return_exceptions=True,
        )

        fetched = FetchedSources()
        by_source: dict[str, list[dict]] = {}
        for source_name, result in zip(calls, results, strict=True):
            if isinstance(result, BaseException):
                fetched.failed_sources.append(source_name)
            by_source[source_name] = self._extract_result(result, source_name)

        fetched.meetings = by_source["meetings"]
        fetched.emails = by_source["emails"]
        fetched.teams = by_source["teams"]
        fetched.documents = {
            source: by_source[source.value] for source in DocumentSource
        }

        logger.info(
            "fetched discovery sources",
            meetings=len(fetched.meetings),
            emails=len(fetched.emails),
            teams=len(fetched.teams),
            documents={s.value: len(d) for s, d in fetched.documents.items()},
            failed_sources=fetched.failed_sources,
        )
        return fetched

    async def _with_timeout(self, call: Awaitable[list[dict]]) -> list[dict]:
        return await asyncio.wait_for(call, timeout=self._timeout)

    def _extract_result(self, result, source_name: str) -> list[dict]:
        """Extract result from asyncio.gather, handling exceptions."""
        if isinstance(result, BaseException):
            logger.warning(
                "discovery source failed",
                source=source_name,
                error=str(result) or type(result).__name__,
            )
            return []
        return list(result or [])
