"""PreparationPipeline turns confirmed selections into a preparation brief.

Two stages: per-item summaries (reused from the artifact store when
present, generated and stored otherwise), then one brief over all of them.
"""

import asyncio
import time
from collections.abc import Callable

import structlog

from meetprep.adapters.base import WorkspaceGraph
from meetprep.discovery.discovery_service import TargetMeetingNotFoundError
from meetprep.discovery.normalizer import NO_SUBJECT, parse_graph_datetime
from meetprep.discovery.schemas import TargetMeeting
from meetprep.prep.content_fetcher import (
    ContentFetcher,
    FetchedEmail,
    FetchedMeeting,
    attendee_names,
)
from meetprep.prep.formatter import format_channel_context, render_brief_context
from meetprep.prep.schemas import (
    EmailSummaryEntry,
    MeetingSummaryEntry,
    PrepSelections,
    PreparationResult,
    PreparationSummaries,
    PrepStats,
)
from meetprep.repositories.artifact_repo import (
    ArtifactKind,
    ArtifactRepository,
    PreparationArtifact,
)
from meetprep.services.summarizer import EmailSummary, MeetingSummary, Summarizer

logger = structlog.get_logger()

GraphFactory = Callable[[str], WorkspaceGraph]


def _iso_or_unknown(value) -> str:
    return value.isoformat() if value else "unknown"


class PreparationPipeline:
    """Generates a preparation brief from user-selected items.

    Summaries are cached per source item id, so re-preparing with an
    overlapping selection only summarizes the new items.
    """

    def __init__(
        self,
        graph_factory: GraphFactory,
        artifacts: ArtifactRepository,
        summarizer: Summarizer,
        content_fetcher: ContentFetcher | None = None,
    ):
        """Initialize PreparationPipeline with dependencies.

        Args:
            graph_factory: Builds a Workspace Graph bound to an access token
            artifacts: Store of generated per-item summaries
            summarizer: LLM-backed summarizer
            content_fetcher: Fetcher for full item content
        """
        self._graph_factory = graph_factory
        self._artifacts = artifacts
        self._summarizer = summarizer
        self._fetcher = content_fetcher or ContentFetcher()

    async def prepare(
        self,
        access_token: str,
        meeting_id: str,
        selections: PrepSelections,
        requested_by: str | None = None,
    ) -> PreparationResult:
        """Generate the preparation brief for a target meeting.

        Args:
            access_token: Caller's delegated Graph credential
            meeting_id: Target meeting id
            selections: User-confirmed items to include
            requested_by: Recorded as generated_by on new artifacts; resolved
                from the caller's Graph profile when not given

        Returns:
            PreparationResult with brief, summaries and stats

        Raises:
            TargetMeetingNotFoundError: If the target meeting does not exist
            LLMClientError: If brief generation fails
        """
        started = time.monotonic()

        graph = self._graph_factory(access_token)
        try:
            raw_target = await graph.get_event(meeting_id)
            if not raw_target:
                raise TargetMeetingNotFoundError(meeting_id)
            content, caller = await asyncio.gather(
                self._fetcher.fetch(graph, selections),
                self._caller_identity(graph, requested_by),
            )
        finally:
            aclose = getattr(graph, "aclose", None)
            if aclose is not None:
                await aclose()

        target = TargetMeeting(
            id=raw_target.get("id") or meeting_id,
            subject=raw_target.get("subject") or NO_SUBJECT,
            start_time=parse_graph_datetime(raw_target.get("start")),
            end_time=parse_graph_datetime(raw_target.get("end")),
        )
        logger.info(
            "starting preparation",
            meeting_id=meeting_id,
            meetings=len(content.meetings),
            emails=len(content.emails),
            channels=len(content.channels),
            files=len(content.files),
        )

        meeting_results = await asyncio.gather(
            *(self._meeting_summary(m, caller) for m in content.meetings),
            return_exceptions=True,
        )
        email_results = await asyncio.gather(
            *(self._email_summary(e, caller) for e in content.emails),
            return_exceptions=True,
        )

        meetings: list[MeetingSummaryEntry] = []
        unsummarized: list[FetchedMeeting] = []
        for meeting, result in zip(content.meetings, meeting_results, strict=True):
            entry = self._extract_result(result, "meeting", meeting.id)
            if entry is not None:
                meetings.append(entry)
            elif not isinstance(result, BaseException):
                unsummarized.append(meeting)

        emails: list[EmailSummaryEntry] = []
        for email, result in zip(content.emails, email_results, strict=True):
            entry = self._extract_result(result, "email", email.id)
            if entry is not None:
                emails.append(entry)

        channel_context, channel_message_count = format_channel_context(content.channels)

        context = render_brief_context(
            target_subject=target.subject,
            target_start=_iso_or_unknown(target.start_time),
            attendees=attendee_names(raw_target),
            meetings=meetings,
            emails=emails,
            channel_context=channel_context,
            files=content.files,
            unsummarized_meetings=unsummarized,
        )
        brief = await self._summarizer.create_brief(context)

        stats = PrepStats(
            total_meetings=len(content.meetings),
            meetings_cached=sum(1 for m in meetings if m.cached),
            meetings_generated=sum(1 for m in meetings if not m.cached),
            total_emails=len(content.emails),
            emails_cached=sum(1 for e in emails if e.cached),
            emails_generated=sum(1 for e in emails if not e.cached),
            channel_message_count=channel_message_count,
            processing_time_ms=int((time.monotonic() - started) * 1000),
        )
        logger.info(
            "preparation complete",
            meeting_id=meeting_id,
            cached=stats.meetings_cached + stats.emails_cached,
            generated=stats.meetings_generated + stats.emails_generated,
            processing_time_ms=stats.processing_time_ms,
        )

        return PreparationResult(
            target_meeting=target,
            preparation_brief=brief,
            summaries=PreparationSummaries(meetings=meetings, emails=emails),
            files=content.files,
            stats=stats,
        )

    def _extract_result(self, result, kind: str, item_id: str):
        """Extract result from asyncio.gather, handling exceptions."""
        if isinstance(result, BaseException):
            logger.warning(
                "item summarization failed",
                kind=kind,
                item_id=item_id,
                error=str(result) or type(result).__name__,
            )
            return None
        return result

    async def _meeting_summary(
        self,
        meeting: FetchedMeeting,
        requested_by: str | None,
    ) -> MeetingSummaryEntry | None:
        """Cached or generated summary; None when there is nothing to summarize."""
        artifact = await self._cached_artifact(meeting.id)
        if artifact is not None:
            return MeetingSummaryEntry(
                meeting_id=meeting.id,
                subject=meeting.subject,
                date=meeting.start_time,
                summary=MeetingSummary.model_validate(artifact.summary),
                cached=True,
            )

        if not meeting.content:
            logger.info("no transcript or notes for meeting", meeting_id=meeting.id)
            return None

        summary = await self._summarizer.summarize_meeting(
            subject=meeting.subject,
            date=_iso_or_unknown(meeting.start_time),
            content=meeting.content,
            is_transcript=bool(meeting.transcript),
        )
        await self._store_artifact(
            meeting.id, "meeting", meeting.subject, summary.model_dump(mode="json"), requested_by
        )
        return MeetingSummaryEntry(
            meeting_id=meeting.id,
            subject=meeting.subject,
            date=meeting.start_time,
            summary=summary,
            cached=False,
        )

    async def _email_summary(
        self,
        email: FetchedEmail,
        requested_by: str | None,
    ) -> EmailSummaryEntry | None:
        artifact = await self._cached_artifact(email.id)
        if artifact is not None:
            return EmailSummaryEntry(
                email_id=email.id,
                subject=email.subject,
                sender=email.sender,
                date=email.received_time,
                summary=EmailSummary.model_validate(artifact.summary),
                cached=True,
            )

        if not email.body.strip():
            logger.info("no body for email", email_id=email.id)
            return None

        summary = await self._summarizer.summarize_email(
            subject=email.subject,
            sender=email.sender,
            date=_iso_or_unknown(email.received_time),
            content=email.body,
        )
        await self._store_artifact(
            email.id, "email", email.subject, summary.model_dump(mode="json"), requested_by
        )
        return EmailSummaryEntry(
            email_id=email.id,
            subject=email.subject,
            sender=email.sender,
            date=email.received_time,
            summary=summary,
            cached=False,
        )

    async def _caller_identity(
        self, graph: WorkspaceGraph, requested_by: str | None
    ) -> str | None:
        """Mail address of the caller, recorded on generated artifacts."""
        if requested_by:
            return requested_by
        try:
            profile = await graph.get_current_user()
        except Exception as e:
            logger.info("caller profile unavailable", error=str(e))
            return None
        profile = profile or {}
        return profile.get("mail") or profile.get("userPrincipalName")

    async def _cached_artifact(self, item_id: str) -> PreparationArtifact | None:
        """Stored artifact for an item. Read failures count as a miss."""
        try:
            return await self._artifacts.get(item_id)
        except Exception as e:
            logger.warning("artifact read failed", item_id=item_id, error=str(e))
            return None

    async def _store_artifact(
        self,
        item_id: str,
        item_kind: ArtifactKind,
        subject: str,
        summary: dict,
        requested_by: str | None,
    ) -> None:
        """Best-effort artifact upsert; a failure never drops the summary."""
        try:
            await self._artifacts.save(
                item_id=item_id,
                item_kind=item_kind,
                summary=summary,
                subject=subject,
                model=self._summarizer.model,
                generated_by=requested_by,
            )
        except Exception as e:
            logger.warning("artifact write failed", item_id=item_id, error=str(e))
