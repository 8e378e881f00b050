"""Base types for Workspace Graph adapters.

Defines the WorkspaceGraph protocol consumed by the discovery and
preparation pipelines, and the transport error every adapter raises.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable


class GraphAPIError(Exception):
    """Raised when a Workspace Graph call fails at the transport level."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class WorkspaceGraph(Protocol):
    """Protocol for the mailbox/calendar/file-storage data source.

    Adapters implement this protocol for structural subtyping -
    they don't need to inherit, just implement the methods. List
    operations return raw provider dicts and raise GraphAPIError on
    failure; callers are responsible for degrading per source.
    """

    async def list_meetings(self, start: datetime, end: datetime) -> list[dict]:
        """Calendar events overlapping the window."""
        ...

    async def list_messages(self, received_after: datetime, top: int) -> list[dict]:
        """Mail messages received after a point in time, newest first."""
        ...

    async def list_joined_teams(self) -> list[dict]: ...

    async def list_team_channels(self, team_id: str) -> list[dict]: ...

    async def list_recent_files(self, limit: int) -> list[dict]: ...

    async def list_trending_documents(self, limit: int) -> list[dict]: ...

    async def list_used_documents(self, limit: int) -> list[dict]: ...

    async def list_shared_documents(self, limit: int) -> list[dict]: ...

    async def search_content(self, query: str, limit: int) -> list[dict]:
        """Free-text search over documents, returning hit resources."""
        ...

    async def get_event(self, event_id: str) -> dict | None:
        """Single calendar event, or None when it does not exist."""
        ...

    async def get_message(self, message_id: str) -> dict | None:
        """Single mail message including its body, or None."""
        ...

    async def get_channel_messages(
        self, team_id: str, channel_id: str, top: int
    ) -> list[dict]: ...

    async def get_drive_item(self, item_id: str) -> dict | None: ...

    async def get_meeting_transcript(self, join_url: str) -> str | None:
        """Plain-text transcript of an online meeting, if one exists."""
        ...

    async def get_current_user(self) -> dict | None:
        """Profile of the signed-in caller (mail, userPrincipalName)."""
        ...
