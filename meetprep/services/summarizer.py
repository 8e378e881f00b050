"""Per-item summaries and the final preparation brief."""

from typing import Literal

import structlog
from pydantic import BaseModel, Field

from meetprep.services.llm_client import LLMClient
from meetprep.services.prompts import (
    EMAIL_SUMMARY_PROMPT,
    MEETING_SUMMARY_PROMPT,
    PREP_BRIEF_PROMPT,
)

logger = structlog.get_logger()

# Transcripts beyond this are truncated before summarization
MAX_CONTENT_CHARS = 60_000


class ActionItem(BaseModel):
    owner: str | None = Field(default=None, description="Person responsible, if stated")
    task: str
    deadline: str | None = Field(default=None, description="Deadline as stated, if any")


class MeetingSummary(BaseModel):
    """Structured summary of one related meeting."""

    key_decisions: list[str] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    metrics: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    full_summary: str = ""


class EmailSummary(BaseModel):
    """Structured summary of one related email."""

    subject: str = ""
    sender: str = ""
    date: str = ""
    key_points: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    sentiment: Literal["positive", "neutral", "negative", "urgent"] = "neutral"
    summary: str = ""


def _truncate(content: str) -> str:
    if len(content) <= MAX_CONTENT_CHARS:
        return content
    return content[:MAX_CONTENT_CHARS] + "\n[truncated]"


class Summarizer:
    """Generates meeting/email summaries and the preparation brief."""

    def __init__(self, llm_client: LLMClient):
        self._llm = llm_client

    @property
    def model(self) -> str:
        return self._llm.model

    async def summarize_meeting(
        self,
        subject: str,
        date: str,
        content: str,
        is_transcript: bool = True,
    ) -> MeetingSummary:
        """Summarize a meeting from its transcript or event body.

        Raises:
            LLMClientError: If generation fails
        """
        prompt = MEETING_SUMMARY_PROMPT.format(
            subject=subject,
            date=date,
            content_label="TRANSCRIPT" if is_transcript else "MEETING NOTES",
            content=_truncate(content),
        )
        summary = await self._llm.extract(prompt, MeetingSummary)
        logger.debug("summarized meeting", subject=subject, chars=len(content))
        return summary

    async def summarize_email(
        self,
        subject: str,
        sender: str,
        date: str,
        content: str,
    ) -> EmailSummary:
        """Summarize an email body.

        Raises:
            LLMClientError: If generation fails
        """
        prompt = EMAIL_SUMMARY_PROMPT.format(
            subject=subject,
            sender=sender,
            date=date,
            content=_truncate(content),
        )
        summary = await self._llm.extract(prompt, EmailSummary)
        logger.debug("summarized email", subject=subject, chars=len(content))
        return summary

    async def create_brief(self, context: str) -> str:
        """Write the markdown preparation brief from rendered context."""
        return await self._llm.complete(PREP_BRIEF_PROMPT.format(context=context))
