"""Tests for PreparationPipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from meetprep.discovery.discovery_service import TargetMeetingNotFoundError
from meetprep.prep.content_fetcher import ContentFetcher
from meetprep.prep.preparation_pipeline import PreparationPipeline
from meetprep.prep.schemas import PrepSelections, TeamChannelRef
from meetprep.repositories.artifact_repo import ArtifactRepository
from meetprep.services.llm_client import LLMClientError
from meetprep.services.summarizer import EmailSummary, MeetingSummary, Summarizer


@pytest.fixture
def summarizer():
    """Mock summarizer producing fixed summaries."""
    mock = MagicMock(spec=Summarizer)
    mock.model = "claude-sonnet-4-5"
    mock.summarize_meeting = AsyncMock(
        return_value=MeetingSummary(key_decisions=["Freeze scope"], full_summary="Frozen.")
    )
    mock.summarize_email = AsyncMock(
        return_value=EmailSummary(subject="Re: Budget", sender="Alice Chen", summary="Over.")
    )
    mock.create_brief = AsyncMock(return_value="## Context\nReady.")
    return mock


@pytest.fixture
async def artifacts(db_client):
    repo = ArtifactRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
def prep_graph(fake_graph, graph_payloads):
    """Graph with a target, two prior meetings and one email."""
    fake_graph.events["target"] = graph_payloads.event("target", "Q3 Planning")
    fake_graph.events["m1"] = graph_payloads.event("m1", "Budget Review", online=True)
    fake_graph.transcripts["https://teams.example.com/join/m1"] = "Alice: freeze scope"
    fake_graph.events["m2"] = graph_payloads.event("m2", "Hallway chat")
    email = graph_payloads.message("e1", "Re: Budget")
    email["body"] = {"contentType": "text", "content": "We are over budget."}
    fake_graph.messages_by_id["e1"] = email
    fake_graph.channel_messages[("t1", "c1")] = [
        {
            "messageType": "message",
            "createdDateTime": "2026-02-27T09:00:00Z",
            "from": {"user": {"displayName": "Bob"}},
            "body": {"contentType": "text", "content": "Numbers attached"},
        }
    ]
    fake_graph.drive_items["f1"] = graph_payloads.drive_item("f1", "Q3 Plan.docx")
    return fake_graph


SELECTIONS = PrepSelections(
    meeting_ids=["m1", "m2"],
    email_ids=["e1"],
    team_channels=[TeamChannelRef(team_id="t1", channel_id="c1")],
    file_ids=["f1"],
)


def _pipeline(graph, artifacts, summarizer) -> PreparationPipeline:
    return PreparationPipeline(
        graph_factory=lambda token: graph,
        artifacts=artifacts,
        summarizer=summarizer,
        content_fetcher=ContentFetcher(timeout_seconds=5, channel_messages_limit=50),
    )


class TestPrepare:
    """Tests for PreparationPipeline.prepare."""

    async def test_generates_brief_and_summaries(self, prep_graph, artifacts, summarizer):
        result = await _pipeline(prep_graph, artifacts, summarizer).prepare(
            "token", "target", SELECTIONS, requested_by="user-1"
        )

        assert result.preparation_brief == "## Context\nReady."
        assert result.target_meeting.subject == "Q3 Planning"
        assert [m.meeting_id for m in result.summaries.meetings] == ["m1"]
        assert [e.email_id for e in result.summaries.emails] == ["e1"]
        assert result.files[0].name == "Q3 Plan.docx"
        assert result.stats.total_meetings == 2
        assert result.stats.meetings_generated == 1
        assert result.stats.emails_generated == 1
        assert result.stats.channel_message_count == 1
        assert prep_graph.closed is True

    async def test_transcript_used_for_meeting_summary(self, prep_graph, artifacts, summarizer):
        await _pipeline(prep_graph, artifacts, summarizer).prepare("token", "target", SELECTIONS)

        kwargs = summarizer.summarize_meeting.await_args.kwargs
        assert kwargs["content"] == "Alice: freeze scope"
        assert kwargs["is_transcript"] is True

    async def test_brief_context_includes_everything(self, prep_graph, artifacts, summarizer):
        await _pipeline(prep_graph, artifacts, summarizer).prepare("token", "target", SELECTIONS)

        context = summarizer.create_brief.await_args.args[0]
        assert "Subject: Q3 Planning" in context
        assert "Budget Review" in context
        assert "- Hallway chat" in context
        assert "Bob: Numbers attached" in context
        assert "Q3 Plan.docx" in context

    async def test_artifacts_stored_and_reused(self, prep_graph, artifacts, summarizer):
        """A second preparation reuses stored summaries instead of regenerating."""
        pipeline = _pipeline(prep_graph, artifacts, summarizer)
        await pipeline.prepare("token", "target", SELECTIONS, requested_by="user-1")

        stored = await artifacts.get("m1")
        assert stored is not None
        assert stored.summary["key_decisions"] == ["Freeze scope"]
        assert stored.model == "claude-sonnet-4-5"
        assert stored.generated_by == "user-1"

        prep_graph.closed = False
        second = await pipeline.prepare("token", "target", SELECTIONS)

        assert summarizer.summarize_meeting.await_count == 1
        assert summarizer.summarize_email.await_count == 1
        assert second.stats.meetings_cached == 1
        assert second.stats.emails_cached == 1
        assert second.summaries.meetings[0].cached is True
        assert second.summaries.meetings[0].summary.key_decisions == ["Freeze scope"]

    async def test_generated_by_from_caller_profile(self, prep_graph, artifacts, summarizer):
        prep_graph.current_user = {
            "id": "u1",
            "mail": "dana@example.com",
            "userPrincipalName": "dana@corp.example.com",
        }

        await _pipeline(prep_graph, artifacts, summarizer).prepare("token", "target", SELECTIONS)

        assert (await artifacts.get("m1")).generated_by == "dana@example.com"
        assert (await artifacts.get("e1")).generated_by == "dana@example.com"

    async def test_generated_by_falls_back_to_principal_name(
        self, prep_graph, artifacts, summarizer
    ):
        prep_graph.current_user = {"id": "u1", "mail": None, "userPrincipalName": "dana@corp"}

        await _pipeline(prep_graph, artifacts, summarizer).prepare("token", "target", SELECTIONS)

        assert (await artifacts.get("m1")).generated_by == "dana@corp"

    async def test_caller_profile_failure_tolerated(self, prep_graph, artifacts, summarizer):
        prep_graph.failures["get_current_user"] = RuntimeError("403")

        result = await _pipeline(prep_graph, artifacts, summarizer).prepare(
            "token", "target", SELECTIONS
        )

        assert result.stats.meetings_generated == 1
        assert (await artifacts.get("m1")).generated_by is None

    async def test_explicit_requester_skips_profile_lookup(
        self, prep_graph, artifacts, summarizer
    ):
        await _pipeline(prep_graph, artifacts, summarizer).prepare(
            "token", "target", SELECTIONS, requested_by="user-1"
        )

        assert ("get_current_user",) not in prep_graph.calls

    async def test_item_summary_failure_dropped(self, prep_graph, artifacts, summarizer):
        """A failed per-item summary is omitted; the brief is still produced."""
        summarizer.summarize_email.side_effect = LLMClientError("rate limited")

        result = await _pipeline(prep_graph, artifacts, summarizer).prepare(
            "token", "target", SELECTIONS
        )

        assert result.summaries.emails == []
        assert result.stats.total_emails == 1
        assert result.stats.emails_generated == 0
        assert result.preparation_brief

    async def test_artifact_store_failures_tolerated(self, prep_graph, summarizer):
        store = MagicMock(spec=ArtifactRepository)
        store.get = AsyncMock(side_effect=RuntimeError("db locked"))
        store.save = AsyncMock(side_effect=RuntimeError("db locked"))

        result = await _pipeline(prep_graph, store, summarizer).prepare(
            "token", "target", SELECTIONS
        )

        assert result.stats.meetings_generated == 1
        assert result.stats.emails_generated == 1

    async def test_brief_failure_propagates(self, prep_graph, artifacts, summarizer):
        summarizer.create_brief.side_effect = LLMClientError("overloaded")

        with pytest.raises(LLMClientError):
            await _pipeline(prep_graph, artifacts, summarizer).prepare(
                "token", "target", SELECTIONS
            )

    async def test_target_not_found(self, fake_graph, artifacts, summarizer):
        with pytest.raises(TargetMeetingNotFoundError):
            await _pipeline(fake_graph, artifacts, summarizer).prepare(
                "token", "missing", PrepSelections()
            )

        assert fake_graph.closed is True
        summarizer.create_brief.assert_not_called()

    async def test_empty_selections_still_brief(self, prep_graph, artifacts, summarizer):
        result = await _pipeline(prep_graph, artifacts, summarizer).prepare(
            "token", "target", PrepSelections()
        )

        assert result.summaries.meetings == []
        assert result.stats.total_meetings == 0
        assert "No related meetings found" in summarizer.create_brief.await_args.args[0]
