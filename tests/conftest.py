"""Pytest configuration and fixtures."""

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from meetprep.db.turso import TursoClient


class FakeGraph:
    """In-memory WorkspaceGraph.

    Every list is settable per test. ``failures`` maps a method name to the
    exception it raises; ``delays`` maps a method name to seconds slept.
    """

    def __init__(self):
        self.meetings: list[dict] = []
        self.messages: list[dict] = []
        self.teams: list[dict] = []
        self.channels: dict[str, list[dict]] = {}
        self.recent: list[dict] = []
        self.trending: list[dict] = []
        self.used: list[dict] = []
        self.shared: list[dict] = []
        self.search_hits: list[dict] = []
        self.events: dict[str, dict] = {}
        self.messages_by_id: dict[str, dict] = {}
        self.channel_messages: dict[tuple[str, str], list[dict]] = {}
        self.drive_items: dict[str, dict] = {}
        self.transcripts: dict[str, str] = {}
        self.current_user: dict | None = None
        self.failures: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[tuple] = []
        self.closed = False

    async def _call(self, name: str, *args):
        self.calls.append((name, *args))
        if name in self.delays:
            await asyncio.sleep(self.delays[name])
        if name in self.failures:
            raise self.failures[name]

    async def list_meetings(self, start, end):
        await self._call("list_meetings", start, end)
        return self.meetings

    async def list_messages(self, received_after, top):
        await self._call("list_messages", received_after, top)
        return self.messages

    async def list_joined_teams(self):
        await self._call("list_joined_teams")
        return self.teams

    async def list_team_channels(self, team_id):
        await self._call("list_team_channels", team_id)
        return self.channels.get(team_id, [])

    async def list_recent_files(self, limit):
        await self._call("list_recent_files", limit)
        return self.recent

    async def list_trending_documents(self, limit):
        await self._call("list_trending_documents", limit)
        return self.trending

    async def list_used_documents(self, limit):
        await self._call("list_used_documents", limit)
        return self.used

    async def list_shared_documents(self, limit):
        await self._call("list_shared_documents", limit)
        return self.shared

    async def search_content(self, query, limit):
        await self._call("search_content", query, limit)
        return self.search_hits

    async def get_event(self, event_id):
        await self._call("get_event", event_id)
        return self.events.get(event_id)

    async def get_message(self, message_id):
        await self._call("get_message", message_id)
        return self.messages_by_id.get(message_id)

    async def get_channel_messages(self, team_id, channel_id, top):
        await self._call("get_channel_messages", team_id, channel_id, top)
        return self.channel_messages.get((team_id, channel_id), [])

    async def get_drive_item(self, item_id):
        await self._call("get_drive_item", item_id)
        return self.drive_items.get(item_id)

    async def get_meeting_transcript(self, join_url):
        await self._call("get_meeting_transcript", join_url)
        return self.transcripts.get(join_url)

    async def get_current_user(self):
        await self._call("get_current_user")
        return self.current_user

    async def aclose(self):
        self.closed = True


class FrozenClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def fake_graph() -> FakeGraph:
    """Empty in-memory Workspace Graph."""
    return FakeGraph()


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at 2026-03-02 09:00 UTC."""
    return FrozenClock()


@pytest.fixture
async def db_client(tmp_path: Path):
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_meetprep.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


def graph_event(
    event_id: str,
    subject: str,
    start: str = "2026-02-20T10:00:00.0000000",
    online: bool = False,
    attendees: int = 2,
) -> dict:
    """Raw calendar event as returned by Graph."""
    event = {
        "id": event_id,
        "subject": subject,
        "start": {"dateTime": start, "timeZone": "UTC"},
        "end": {"dateTime": start.replace("T10", "T11"), "timeZone": "UTC"},
        "attendees": [
            {"emailAddress": {"name": f"Person {i}", "address": f"p{i}@example.com"}}
            for i in range(attendees)
        ],
        "isOnlineMeeting": online,
    }
    if online:
        event["onlineMeeting"] = {"joinUrl": f"https://teams.example.com/join/{event_id}"}
    return event


def graph_message(
    message_id: str,
    subject: str,
    received: str = "2026-02-25T08:00:00Z",
    conversation_id: str | None = None,
    sender: str = "Alice Chen",
    address: str = "alice@example.com",
) -> dict:
    """Raw mail message as returned by Graph."""
    return {
        "id": message_id,
        "subject": subject,
        "from": {"emailAddress": {"name": sender, "address": address}},
        "receivedDateTime": received,
        "hasAttachments": False,
        "conversationId": conversation_id,
    }


def drive_item(item_id: str, name: str, drive_id: str = "drive-1") -> dict:
    """Raw driveItem (recent files, search hits)."""
    return {
        "id": item_id,
        "name": name,
        "webUrl": f"https://files.example.com/{item_id}",
        "lastModifiedDateTime": "2026-02-27T12:00:00Z",
        "size": 2048,
        "parentReference": {"driveId": drive_id, "name": "Documents"},
        "file": {"mimeType": "application/pdf"},
        "lastModifiedBy": {"user": {"displayName": "Bob Ortiz"}},
    }


def insight(item_id: str, title: str, drive_id: str = "drive-1") -> dict:
    """Raw trending/used/shared insight resource."""
    return {
        "id": f"insight-{item_id}",
        "resourceVisualization": {
            "title": title,
            "mediaType": "application/pdf",
            "containerDisplayName": "Planning",
        },
        "resourceReference": {
            "webUrl": f"https://files.example.com/{item_id}",
            "id": f"drives/{drive_id}/items/{item_id}",
        },
        "lastModifiedDateTime": "2026-02-26T12:00:00Z",
    }


@pytest.fixture
def graph_payloads():
    """Builders for raw Graph payloads."""

    class Payloads:
        event = staticmethod(graph_event)
        message = staticmethod(graph_message)
        drive_item = staticmethod(drive_item)
        insight = staticmethod(insight)

    return Payloads
