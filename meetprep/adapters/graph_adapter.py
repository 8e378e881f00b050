"""Microsoft Graph adapter implementing the WorkspaceGraph protocol.

Uses httpx.AsyncClient with a per-request delegated access token. One
adapter instance is created per incoming request and closed afterwards.
"""

from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from meetprep.adapters.base import GraphAPIError
from meetprep.config import settings

logger = structlog.get_logger()

EVENT_FIELDS = (
    "id,subject,start,end,organizer,attendees,isOnlineMeeting,"
    "onlineMeeting,bodyPreview"
)
MESSAGE_FIELDS = (
    "id,subject,from,toRecipients,receivedDateTime,bodyPreview,"
    "hasAttachments,conversationId"
)


def _graph_datetime(value: datetime) -> str:
    """Format a datetime the way Graph query parameters expect (UTC, Z suffix)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _segment(value: str) -> str:
    return quote(value, safe="")


class GraphAdapter:
    """Adapter for Workspace Graph reads over HTTP.

    Follows the established adapter pattern with lazy client
    initialization; pass ``transport`` to substitute the network in tests.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._access_token = access_token
        self._base_url = (base_url or settings.graph_base_url).rstrip("/")
        self._timeout = timeout or settings.graph_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Authorization": f"Bearer {self._access_token}",
                    "Accept": "application/json",
                    "Prefer": 'outlook.timezone="UTC"',
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GraphAdapter":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict | None = None,
    ) -> httpx.Response:
        """Send a request and translate transport and HTTP errors.

        Raises:
            GraphAPIError: On network failure or any non-2xx status
        """
        try:
            response = await self._get_client().request(
                method, path, params=params, json=json
            )
        except httpx.HTTPError as e:
            raise GraphAPIError(f"Graph request failed: {e}") from e

        if response.status_code >= 400:
            message = response.reason_phrase
            try:
                message = response.json().get("error", {}).get("message") or message
            except ValueError:
                pass
            raise GraphAPIError(
                f"Graph {method} {path} returned {response.status_code}: {message}",
                status_code=response.status_code,
            )
        return response

    async def _get_values(
        self, path: str, params: dict[str, Any] | None = None
    ) -> list[dict]:
        response = await self._request("GET", path, params=params)
        return response.json().get("value", [])

    async def _get_optional(self, path: str, params: dict[str, Any] | None = None):
        """GET a single resource, mapping 404 to None."""
        try:
            response = await self._request("GET", path, params=params)
        except GraphAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return response.json()

    async def list_meetings(self, start: datetime, end: datetime) -> list[dict]:
        return await self._get_values(
            "/me/calendarView",
            params={
                "startDateTime": _graph_datetime(start),
                "endDateTime": _graph_datetime(end),
                "$select": EVENT_FIELDS,
                "$orderby": "start/dateTime desc",
                "$top": 100,
            },
        )

    async def list_messages(self, received_after: datetime, top: int) -> list[dict]:
        return await self._get_values(
            "/me/messages",
            params={
                "$top": top,
                "$filter": f"receivedDateTime ge {_graph_datetime(received_after)}",
                "$orderby": "receivedDateTime desc",
                "$select": MESSAGE_FIELDS,
            },
        )

    async def list_joined_teams(self) -> list[dict]:
        return await self._get_values(
            "/me/joinedTeams",
            params={"$select": "id,displayName,description,webUrl"},
        )

    async def list_team_channels(self, team_id: str) -> list[dict]:
        return await self._get_values(
            f"/teams/{_segment(team_id)}/channels",
            params={"$select": "id,displayName,description,webUrl,membershipType"},
        )

    async def list_recent_files(self, limit: int) -> list[dict]:
        return await self._get_values("/me/drive/recent", params={"$top": limit})

    async def list_trending_documents(self, limit: int) -> list[dict]:
        return await self._get_values("/me/insights/trending", params={"$top": limit})

    async def list_used_documents(self, limit: int) -> list[dict]:
        return await self._get_values("/me/insights/used", params={"$top": limit})

    async def list_shared_documents(self, limit: int) -> list[dict]:
        return await self._get_values("/me/insights/shared", params={"$top": limit})

    async def search_content(self, query: str, limit: int) -> list[dict]:
        """Search driveItems and return the hit resources."""
        if not query.strip():
            return []

        response = await self._request(
            "POST",
            "/search/query",
            json={
                "requests": [
                    {
                        "entityTypes": ["driveItem"],
                        "query": {"queryString": query},
                        "size": limit,
                    }
                ]
            },
        )

        resources = []
        for result in response.json().get("value", []):
            for container in result.get("hitsContainers", []):
                for hit in container.get("hits", []) or []:
                    resource = hit.get("resource")
                    if resource:
                        resources.append(resource)
        return resources

    async def get_event(self, event_id: str) -> dict | None:
        return await self._get_optional(
            f"/me/events/{_segment(event_id)}",
            params={"$select": EVENT_FIELDS + ",body"},
        )

    async def get_message(self, message_id: str) -> dict | None:
        return await self._get_optional(
            f"/me/messages/{_segment(message_id)}",
            params={"$select": MESSAGE_FIELDS + ",body"},
        )

    async def get_channel_messages(
        self, team_id: str, channel_id: str, top: int
    ) -> list[dict]:
        return await self._get_values(
            f"/teams/{_segment(team_id)}/channels/{_segment(channel_id)}/messages",
            params={"$top": top},
        )

    async def get_drive_item(self, item_id: str) -> dict | None:
        return await self._get_optional(f"/me/drive/items/{_segment(item_id)}")

    async def get_meeting_transcript(self, join_url: str) -> str | None:
        """Resolve an online meeting by join URL and download its latest transcript."""
        escaped = join_url.replace("'", "''")
        meetings = await self._get_values(
            "/me/onlineMeetings",
            params={"$filter": f"JoinWebUrl eq '{escaped}'"},
        )
        if not meetings:
            return None

        meeting_id = _segment(meetings[0]["id"])
        transcripts = await self._get_values(
            f"/me/onlineMeetings/{meeting_id}/transcripts"
        )
        if not transcripts:
            return None

        transcript_id = _segment(transcripts[-1]["id"])
        response = await self._request(
            "GET",
            f"/me/onlineMeetings/{meeting_id}/transcripts/{transcript_id}/content",
            params={"$format": "text/vtt"},
        )

        logger.debug(
            "downloaded meeting transcript",
            meeting_id=meetings[0]["id"],
            length=len(response.text),
        )
        return response.text or None

    async def get_current_user(self) -> dict | None:
        return await self._get_optional(
            "/me",
            params={"$select": "id,displayName,mail,userPrincipalName"},
        )
