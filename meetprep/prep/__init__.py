"""Meeting preparation module.

Fetches the full content of user-confirmed candidates, reuses or
generates per-item summaries, and writes the preparation brief.
"""

from meetprep.prep.content_fetcher import (
    ChannelMessages,
    ContentFetcher,
    FetchedContent,
    FetchedEmail,
    FetchedMeeting,
)
from meetprep.prep.formatter import (
    format_channel_context,
    render_brief_context,
    strip_html,
)
from meetprep.prep.preparation_pipeline import PreparationPipeline
from meetprep.prep.schemas import (
    PrepSelections,
    PreparationRequest,
    PreparationResult,
    PrepStats,
    TeamChannelRef,
)

__all__ = [
    "ChannelMessages",
    "ContentFetcher",
    "FetchedContent",
    "FetchedEmail",
    "FetchedMeeting",
    "PrepSelections",
    "PrepStats",
    "PreparationPipeline",
    "PreparationRequest",
    "PreparationResult",
    "TeamChannelRef",
    "format_channel_context",
    "render_brief_context",
    "strip_html",
]
