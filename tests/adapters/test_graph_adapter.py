"""Tests for GraphAdapter."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from meetprep.adapters.base import GraphAPIError, WorkspaceGraph
from meetprep.adapters.graph_adapter import GraphAdapter

BASE_URL = "https://graph.example.com/v1.0"


class RecordingTransport:
    """Routes requests to canned responses and records them."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode().split("?")[0]
        response = self.routes.get((request.method, path))
        if response is None:
            return httpx.Response(404, json={"error": {"message": "not found"}})
        return response


def _adapter(routes: dict) -> tuple[GraphAdapter, RecordingTransport]:
    recorder = RecordingTransport(routes)
    adapter = GraphAdapter(
        access_token="token-123",
        base_url=BASE_URL,
        transport=httpx.MockTransport(recorder),
    )
    return adapter, recorder


def test_satisfies_protocol():
    assert isinstance(GraphAdapter(access_token="t"), WorkspaceGraph)


class TestListOperations:
    """Tests for collection reads."""

    async def test_list_meetings_sends_window_and_token(self):
        adapter, recorder = _adapter(
            {("GET", "/v1.0/me/calendarView"): httpx.Response(200, json={"value": [{"id": "m1"}]})}
        )

        async with adapter:
            meetings = await adapter.list_meetings(
                datetime(2026, 2, 1, tzinfo=UTC), datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
            )

        assert meetings == [{"id": "m1"}]
        request = recorder.requests[0]
        assert request.headers["Authorization"] == "Bearer token-123"
        assert request.url.params["startDateTime"] == "2026-02-01T00:00:00Z"
        assert request.url.params["endDateTime"] == "2026-03-02T09:00:00Z"

    async def test_list_messages_filters_by_received_time(self):
        adapter, recorder = _adapter(
            {("GET", "/v1.0/me/messages"): httpx.Response(200, json={"value": []})}
        )

        async with adapter:
            await adapter.list_messages(datetime(2026, 2, 1, tzinfo=UTC), 200)

        params = recorder.requests[0].url.params
        assert params["$top"] == "200"
        assert params["$filter"] == "receivedDateTime ge 2026-02-01T00:00:00Z"

    async def test_missing_value_returns_empty_list(self):
        adapter, _ = _adapter({("GET", "/v1.0/me/joinedTeams"): httpx.Response(200, json={})})

        async with adapter:
            assert await adapter.list_joined_teams() == []

    async def test_error_status_raises_graph_error(self):
        adapter, _ = _adapter(
            {
                ("GET", "/v1.0/me/insights/trending"): httpx.Response(
                    403, json={"error": {"message": "Access denied"}}
                )
            }
        )

        async with adapter:
            with pytest.raises(GraphAPIError) as exc_info:
                await adapter.list_trending_documents(50)

        assert exc_info.value.status_code == 403
        assert "Access denied" in str(exc_info.value)

    async def test_transport_error_raises_graph_error(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = GraphAdapter(
            access_token="t", base_url=BASE_URL, transport=httpx.MockTransport(fail)
        )

        async with adapter:
            with pytest.raises(GraphAPIError):
                await adapter.list_recent_files(10)


class TestSearchContent:
    async def test_flattens_hits(self):
        body = {
            "value": [
                {
                    "hitsContainers": [
                        {"hits": [{"resource": {"id": "f1"}}, {"resource": {"id": "f2"}}]},
                        {"hits": []},
                    ]
                }
            ]
        }
        adapter, recorder = _adapter({("POST", "/v1.0/search/query"): httpx.Response(200, json=body)})

        async with adapter:
            hits = await adapter.search_content("Q3 Planning budget", 25)

        assert [h["id"] for h in hits] == ["f1", "f2"]
        sent = json.loads(recorder.requests[0].content)
        assert sent["requests"][0]["query"]["queryString"] == "Q3 Planning budget"
        assert sent["requests"][0]["size"] == 25

    async def test_blank_query_skips_request(self):
        adapter, recorder = _adapter({})

        async with adapter:
            assert await adapter.search_content("  ", 25) == []

        assert recorder.requests == []


class TestSingleResourceReads:
    async def test_get_event_not_found_returns_none(self):
        adapter, _ = _adapter({})

        async with adapter:
            assert await adapter.get_event("missing") is None

    async def test_get_event_escapes_id(self):
        adapter, recorder = _adapter(
            {("GET", "/v1.0/me/events/a%2Fb"): httpx.Response(200, json={"id": "a/b"})}
        )

        async with adapter:
            event = await adapter.get_event("a/b")

        assert event == {"id": "a/b"}
        assert len(recorder.requests) == 1

    async def test_get_current_user_selects_identity_fields(self):
        adapter, recorder = _adapter(
            {
                ("GET", "/v1.0/me"): httpx.Response(
                    200, json={"id": "u1", "mail": "dana@example.com"}
                )
            }
        )

        async with adapter:
            profile = await adapter.get_current_user()

        assert profile["mail"] == "dana@example.com"
        assert "mail" in recorder.requests[0].url.params["$select"]

    async def test_server_error_is_not_mapped_to_none(self):
        adapter, _ = _adapter(
            {("GET", "/v1.0/me/messages/e1"): httpx.Response(500, json={})}
        )

        async with adapter:
            with pytest.raises(GraphAPIError):
                await adapter.get_message("e1")


class TestMeetingTranscript:
    async def test_downloads_latest_transcript(self):
        routes = {
            ("GET", "/v1.0/me/onlineMeetings"): httpx.Response(
                200, json={"value": [{"id": "om1"}]}
            ),
            ("GET", "/v1.0/me/onlineMeetings/om1/transcripts"): httpx.Response(
                200, json={"value": [{"id": "t1"}, {"id": "t2"}]}
            ),
            ("GET", "/v1.0/me/onlineMeetings/om1/transcripts/t2/content"): httpx.Response(
                200, text="WEBVTT\n\n00:00.000 --> 00:05.000\n<v Alice>Hello"
            ),
        }
        adapter, _ = _adapter(routes)

        async with adapter:
            transcript = await adapter.get_meeting_transcript("https://teams.example.com/join/m1")

        assert transcript.startswith("WEBVTT")

    async def test_no_online_meeting_returns_none(self):
        adapter, _ = _adapter(
            {("GET", "/v1.0/me/onlineMeetings"): httpx.Response(200, json={"value": []})}
        )

        async with adapter:
            assert await adapter.get_meeting_transcript("https://teams.example.com/x") is None


async def test_aclose_is_idempotent():
    adapter, _ = _adapter({("GET", "/v1.0/me/joinedTeams"): httpx.Response(200, json={})})
    await adapter.list_joined_teams()

    await adapter.aclose()
    await adapter.aclose()
