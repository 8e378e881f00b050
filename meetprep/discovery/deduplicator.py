"""Deduplication of discovered items within and across sources."""

from datetime import UTC, datetime

from meetprep.discovery.schemas import (
    DOCUMENT_PRECEDENCE,
    EmailItem,
    FileItem,
    MeetingItem,
)

_PRECEDENCE_RANK = {source: rank for rank, source in enumerate(DOCUMENT_PRECEDENCE)}
_EPOCH = datetime.min.replace(tzinfo=UTC)


def deduplicate_documents(documents: list[FileItem]) -> list[FileItem]:
    """Unify documents surfaced by several sources by content identity.

    When a content key repeats, the occurrence from the most trusted
    source wins (trending > shared > search > used > recent); within a
    source the first occurrence wins. Output is ordered by source
    precedence, then by original position.

    Args:
        documents: Normalized documents from all sources, any order

    Returns:
        Documents with unique content keys
    """
    ordered = sorted(
        enumerate(documents),
        key=lambda pair: (_PRECEDENCE_RANK[pair[1].document_source], pair[0]),
    )

    seen: set[str] = set()
    unique: list[FileItem] = []
    for _, document in ordered:
        if document.content_key in seen:
            continue
        seen.add(document.content_key)
        unique.append(document)
    return unique


def collapse_conversations(emails: list[EmailItem]) -> list[EmailItem]:
    """Keep only the most recent message of each conversation.

    Messages without a conversation id are their own thread. Ties on
    received time keep the first occurrence. The survivor records how
    many messages its thread had. Survivors keep their input order.
    """
    latest: dict[str, tuple[int, EmailItem]] = {}
    counts: dict[str, int] = {}

    for position, email in enumerate(emails):
        thread = email.conversation_id or f"message:{email.id}:{position}"
        counts[thread] = counts.get(thread, 0) + 1

        current = latest.get(thread)
        received = email.received_time or _EPOCH
        if current is None or received > (current[1].received_time or _EPOCH):
            latest[thread] = (position, email)

    survivors = sorted(latest.items(), key=lambda entry: entry[1][0])
    return [
        email.model_copy(update={"chain_email_count": counts[thread]})
        for thread, (_, email) in survivors
    ]


def exclude_target(meetings: list[MeetingItem], target_id: str) -> list[MeetingItem]:
    """Drop the target meeting itself from the candidate meetings."""
    return [meeting for meeting in meetings if meeting.id != target_id]
