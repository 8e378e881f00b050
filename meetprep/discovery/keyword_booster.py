"""Deterministic keyword boost applied after relevance scoring.

Pure functions of (scored candidates, keyword list): no I/O, no oracle.
"""

import unicodedata

from meetprep.discovery.schemas import ScoredCandidate, clamp_score

DEFAULT_BOOST = 30
MAX_KEYWORDS_LENGTH = 500
MAX_KEYWORD_TOKENS = 20


class InvalidKeywordsError(ValueError):
    """Raised when a keyword string is rejected at the request boundary."""


def parse_keywords(raw: str | None) -> list[str]:
    """Split a comma-separated keyword string into lower-case tokens.

    Tokens are trimmed and empty tokens dropped; order is preserved.
    """
    if not raw:
        return []
    return [token for token in (part.strip().lower() for part in raw.split(",")) if token]


def normalize_keywords(keywords: list[str]) -> str:
    """Canonical form of a keyword list, used in cache keys."""
    return ",".join(sorted(set(keywords)))


def validate_keywords(raw: str | None) -> list[str]:
    """Validate a user keyword string and return its parsed tokens.

    Raises:
        InvalidKeywordsError: If the string is too long, contains control
            characters, or has too many tokens
    """
    if raw is None:
        return []
    if len(raw) > MAX_KEYWORDS_LENGTH:
        raise InvalidKeywordsError(
            f"keywords must be at most {MAX_KEYWORDS_LENGTH} characters"
        )
    if any(unicodedata.category(ch) == "Cc" for ch in raw):
        raise InvalidKeywordsError("keywords must not contain control characters")

    tokens = parse_keywords(raw)
    if len(tokens) > MAX_KEYWORD_TOKENS:
        raise InvalidKeywordsError(
            f"at most {MAX_KEYWORD_TOKENS} comma-separated keywords are allowed"
        )
    return tokens


def boost_note(boost: int) -> str:
    return f"[+{boost} keyword match boost]"


def matches_keywords(title: str, keywords: list[str]) -> bool:
    title_lower = title.lower()
    return any(keyword.lower() in title_lower for keyword in keywords)


def apply_keyword_boost(
    candidates: list[ScoredCandidate],
    keywords: list[str],
    boost: int = DEFAULT_BOOST,
) -> list[ScoredCandidate]:
    """Boost candidates whose title contains any keyword.

    Matching candidates get ``boost`` added (clamped to 100) and a note
    appended to their reasoning. Others are returned unchanged, and an
    empty keyword list returns the input as-is.
    """
    if not keywords:
        return list(candidates)

    boosted: list[ScoredCandidate] = []
    for candidate in candidates:
        if not matches_keywords(candidate.title, keywords):
            boosted.append(candidate)
            continue

        note = boost_note(boost)
        reasoning = f"{candidate.reasoning} {note}" if candidate.reasoning else note
        boosted.append(
            ScoredCandidate(
                item=candidate.item,
                score=clamp_score(candidate.score + boost),
                reasoning=reasoning,
            )
        )
    return boosted
