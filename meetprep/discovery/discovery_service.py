"""DiscoveryService orchestrates the discovery-and-ranking pipeline.

cache lookup -> SourceFetcher -> normalize/Deduplicator -> RelevanceScorer
-> KeywordBooster -> CandidateAssembler -> cache write.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog

from meetprep.adapters.base import WorkspaceGraph
from meetprep.config import settings
from meetprep.discovery.candidate_assembler import CandidateAssembler, filter_complete
from meetprep.discovery.deduplicator import (
    collapse_conversations,
    deduplicate_documents,
    exclude_target,
)
from meetprep.discovery.keyword_booster import (
    apply_keyword_boost,
    normalize_keywords,
    validate_keywords,
)
from meetprep.discovery.normalizer import (
    NO_SUBJECT,
    normalize_documents,
    normalize_email,
    normalize_meeting,
    normalize_team,
    parse_graph_datetime,
)
from meetprep.discovery.relevance_scorer import RelevanceScorer
from meetprep.discovery.schemas import (
    DiscoveredItem,
    DiscoveryResult,
    SourceKind,
    TargetMeeting,
)
from meetprep.discovery.source_fetcher import SourceFetcher
from meetprep.repositories.discovery_cache_repo import CacheStore, discovery_cache_key

logger = structlog.get_logger()

GraphFactory = Callable[[str], WorkspaceGraph]


class TargetMeetingNotFoundError(Exception):
    """Raised when the target meeting does not exist for the caller."""

    def __init__(self, meeting_id: str):
        self.meeting_id = meeting_id
        super().__init__(f"Meeting not found: {meeting_id}")


@dataclass(frozen=True)
class DiscoveryOutcome:
    """A DiscoveryResult plus how it was obtained."""

    result: DiscoveryResult
    cached: bool
    cache_age_seconds: int
    keywords_applied: bool
    processing_time_ms: int

    def to_payload(self) -> dict:
        """Response body: the camelCase result with request metadata."""
        payload = self.result.model_dump(mode="json", by_alias=True)
        payload["cached"] = self.cached
        payload["cacheAge"] = self.cache_age_seconds
        payload["keywordsApplied"] = self.keywords_applied
        payload["processingTimeMs"] = self.processing_time_ms
        return payload


async def _close_graph(graph: WorkspaceGraph) -> None:
    aclose = getattr(graph, "aclose", None)
    if aclose is not None:
        await aclose()


class DiscoveryService:
    """Produces ranked candidates for a target meeting, cached by TTL.

    A fresh cache entry short-circuits the whole pipeline, so the
    relevance oracle is called at most once per category per key per TTL
    window (concurrent misses may each compute; last write wins).
    """

    def __init__(
        self,
        graph_factory: GraphFactory,
        cache: CacheStore,
        fetcher: SourceFetcher,
        scorer: RelevanceScorer,
        assembler: CandidateAssembler,
        ttl_minutes: int | None = None,
        window_days: int | None = None,
        keyword_boost: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize DiscoveryService with dependencies.

        Args:
            graph_factory: Builds a Workspace Graph bound to an access token
            cache: TTL store for assembled results
            fetcher: Concurrent source fetcher
            scorer: Relevance scorer backed by the classification oracle
            assembler: Candidate list and stats builder
            ttl_minutes: Discovery cache TTL (defaults from settings)
            window_days: Look-back window for meetings and mail
            keyword_boost: Score added on keyword title match
            clock: Source of "now" (defaults to UTC wall clock)
        """
        self._graph_factory = graph_factory
        self._cache = cache
        self._fetcher = fetcher
        self._scorer = scorer
        self._assembler = assembler
        self._ttl_minutes = ttl_minutes or settings.discovery_cache_ttl_minutes
        self._window_days = window_days or settings.discovery_window_days
        self._keyword_boost = (
            keyword_boost if keyword_boost is not None else settings.keyword_boost
        )
        self._clock = clock or (lambda: datetime.now(UTC))

    async def discover(
        self,
        access_token: str,
        meeting_id: str,
        keywords: str | None = None,
    ) -> DiscoveryOutcome:
        """Run discovery for one target meeting.

        Args:
            access_token: Caller's delegated Graph credential
            meeting_id: Target meeting id
            keywords: Optional comma-separated keyword string

        Returns:
            DiscoveryOutcome, from cache when a fresh entry exists

        Raises:
            InvalidKeywordsError: If the keyword string is rejected
            TargetMeetingNotFoundError: If the target meeting does not exist
        """
        started = time.monotonic()
        keyword_list = validate_keywords(keywords)
        cache_key = discovery_cache_key(meeting_id, normalize_keywords(keyword_list))

        cached = await self._read_cache(cache_key)
        if cached is not None:
            result, age = cached
            logger.info("discovery cache hit", cache_key=cache_key, cache_age=age)
            return DiscoveryOutcome(
                result=result,
                cached=True,
                cache_age_seconds=age,
                keywords_applied=bool(keyword_list),
                processing_time_ms=_elapsed_ms(started),
            )

        graph = self._graph_factory(access_token)
        try:
            result = await self._run_pipeline(graph, meeting_id, keyword_list)
        finally:
            await _close_graph(graph)

        await self._write_cache(cache_key, result)

        processing_time_ms = _elapsed_ms(started)
        logger.info(
            "discovery complete",
            meeting_id=meeting_id,
            keywords=keyword_list,
            auto_selected=result.stats.auto_selected_count,
            processing_time_ms=processing_time_ms,
        )
        return DiscoveryOutcome(
            result=result,
            cached=False,
            cache_age_seconds=0,
            keywords_applied=bool(keyword_list),
            processing_time_ms=processing_time_ms,
        )

    async def _run_pipeline(
        self,
        graph: WorkspaceGraph,
        meeting_id: str,
        keywords: list[str],
    ) -> DiscoveryResult:
        raw_target = await graph.get_event(meeting_id)
        if not raw_target:
            raise TargetMeetingNotFoundError(meeting_id)

        target = TargetMeeting(
            id=str(raw_target.get("id") or meeting_id),
            subject=raw_target.get("subject") or NO_SUBJECT,
            start_time=parse_graph_datetime(raw_target.get("start")),
            end_time=parse_graph_datetime(raw_target.get("end")),
        )
        logger.info("starting discovery", meeting_id=meeting_id, target=target.subject)

        now = self._clock()
        window_start = now - timedelta(days=self._window_days)
        fetched = await self._fetcher.fetch_all(
            graph, target.subject, window_start, now, keywords
        )

        meetings = exclude_target(
            [normalize_meeting(raw) for raw in fetched.meetings], target.id
        )
        emails = [normalize_email(raw) for raw in fetched.emails]
        collapsed = collapse_conversations(emails)
        teams = [normalize_team(raw) for raw in fetched.teams]

        file_source_counts = {
            source.value: len(raw_items)
            for source, raw_items in fetched.documents.items()
        }
        files = deduplicate_documents(normalize_documents(fetched.documents))

        items_by_kind: dict[SourceKind, list[DiscoveredItem]] = {
            SourceKind.MEETING: filter_complete(meetings),
            SourceKind.EMAIL: filter_complete(collapsed),
            SourceKind.TEAM: filter_complete(teams),
            SourceKind.FILE: filter_complete(files),
        }

        scored = await self._scorer.score_all(target.subject, items_by_kind, keywords)
        boosted = {
            kind: apply_keyword_boost(candidates, keywords, self._keyword_boost)
            for kind, candidates in scored.items()
        }

        return await self._assembler.assemble(
            graph,
            target,
            boosted,
            file_source_counts=file_source_counts,
            emails_before_collapse=len(emails),
            now=now,
        )

    async def _read_cache(self, cache_key: str) -> tuple[DiscoveryResult, int] | None:
        """Fresh cached result and its age, or None. Read errors count as a miss."""
        try:
            entry = await self._cache.get(cache_key)
            if entry is None:
                return None
            result = DiscoveryResult.model_validate(entry.payload)
        except Exception as e:
            logger.warning("discovery cache read failed", cache_key=cache_key, error=str(e))
            return None
        return result, entry.age_seconds(self._clock())

    async def _write_cache(self, cache_key: str, result: DiscoveryResult) -> None:
        """Best-effort cache write; a failure never fails the request."""
        try:
            await self._cache.put(
                cache_key,
                result.model_dump(mode="json", by_alias=True),
                self._ttl_minutes,
            )
        except Exception as e:
            logger.warning(
                "discovery cache write failed", cache_key=cache_key, error=str(e)
            )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
