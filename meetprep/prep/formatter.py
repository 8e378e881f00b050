"""Formatting of fetched content into the brief-generation context.

The context is rendered from a Jinja2 plain text template and passed to
the summarizer as the input of the preparation brief.
"""

import re
from pathlib import Path
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader

from meetprep.discovery.normalizer import parse_graph_datetime

if TYPE_CHECKING:
    from meetprep.prep.content_fetcher import ChannelMessages, FetchedMeeting
    from meetprep.prep.schemas import (
        EmailSummaryEntry,
        FileReference,
        MeetingSummaryEntry,
    )

TEMPLATE_DIR = Path(__file__).parent / "templates"

MAX_CHANNEL_MESSAGES = 100
MAX_CHANNEL_CONTEXT_CHARS = 8000

# Elements whose text is never message content
_NON_CONTENT_TAGS = ["head", "style", "script", "title", "meta"]
_BLOCK_TAGS = ["p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6"]
_WHITESPACE = re.compile(r"\s+")

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
)


def strip_html(text: str) -> str:
    """Reduce an HTML message body to plain text.

    Head, style and script elements are dropped with their contents.
    Line breaks and block elements end a line; blank lines are removed.
    """
    if not text:
        return ""

    soup = BeautifulSoup(text, "html.parser")
    for name in _NON_CONTENT_TAGS:
        for element in soup.find_all(name):
            element.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.append("\n")

    lines = (_WHITESPACE.sub(" ", line).strip() for line in soup.get_text().split("\n"))
    return "\n".join(line for line in lines if line)


def _sender(message: dict) -> str:
    sender = message.get("from") or {}
    user = sender.get("user") or sender.get("application") or {}
    return user.get("displayName") or "Unknown"


def format_channel_context(
    channels: list["ChannelMessages"],
    max_messages: int = MAX_CHANNEL_MESSAGES,
    max_chars: int = MAX_CHANNEL_CONTEXT_CHARS,
) -> tuple[str, int]:
    """Flatten channel messages into one context block.

    System messages and empty bodies are skipped. Messages are ordered
    newest first and capped by count and total length.

    Returns:
        Tuple of (context text, number of messages included)
    """
    entries = []
    for channel in channels:
        for message in channel.messages:
            if message.get("messageType", "message") != "message":
                continue
            body = message.get("body") or {}
            text = body.get("content") or ""
            if (body.get("contentType") or "html").lower() == "html":
                text = strip_html(text)
            text = text.strip()
            if not text:
                continue
            entries.append(
                (parse_graph_datetime(message.get("createdDateTime")), _sender(message), text)
            )

    entries.sort(key=lambda e: e[0].timestamp() if e[0] else 0.0, reverse=True)

    lines: list[str] = []
    total = 0
    for created, sender, text in entries[:max_messages]:
        stamp = created.strftime("%Y-%m-%d %H:%M") if created else "unknown time"
        line = f"[{stamp}] {sender}: {text}"
        if total + len(line) > max_chars:
            break
        lines.append(line)
        total += len(line) + 1

    return "\n".join(lines), len(lines)


def render_brief_context(
    target_subject: str,
    target_start: str,
    attendees: list[str],
    meetings: list["MeetingSummaryEntry"],
    emails: list["EmailSummaryEntry"],
    channel_context: str = "",
    files: list["FileReference"] | None = None,
    unsummarized_meetings: list["FetchedMeeting"] | None = None,
) -> str:
    """Render the plain text context for brief generation."""
    template = _env.get_template("brief_context.txt.j2")
    return template.render(
        target_subject=target_subject,
        target_start=target_start,
        attendees=attendees,
        meetings=meetings,
        emails=emails,
        channel_context=channel_context,
        files=files or [],
        unsummarized_meetings=unsummarized_meetings or [],
    )
