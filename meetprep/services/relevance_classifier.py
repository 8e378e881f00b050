"""Anthropic-backed relevance oracle.

Classifies candidate items against a target meeting title in batches,
mapping each returned score back to the item it describes.
"""

import structlog

from meetprep.config import settings
from meetprep.discovery.schemas import ClassificationItem, RelevanceScore, RelevanceScores
from meetprep.services.llm_client import LLMClient
from meetprep.services.prompts import RELEVANCE_KEYWORDS_INSTRUCTION, RELEVANCE_PROMPT

logger = structlog.get_logger()


def format_candidate_list(items: list[ClassificationItem]) -> str:
    """Numbered candidate lines, 1-based, with metadata in parentheses."""
    lines = []
    for position, item in enumerate(items, start=1):
        line = f'{position}. "{item.title}"'
        if item.metadata:
            line += f" ({item.metadata})"
        lines.append(line)
    return "\n".join(lines)


def build_relevance_prompt(
    target_title: str,
    items: list[ClassificationItem],
    category: str,
    keywords: str | None = None,
) -> str:
    return RELEVANCE_PROMPT.format(
        target_title=target_title,
        keywords_line=f"\nFILTER KEYWORDS: {keywords}" if keywords else "",
        category=category,
        category_upper=category.upper(),
        count=len(items),
        candidate_list=format_candidate_list(items),
        keywords_instruction=(
            RELEVANCE_KEYWORDS_INSTRUCTION.format(keywords=keywords) if keywords else ""
        ),
    )


def match_scores(
    batch: list[ClassificationItem],
    scores: list[RelevanceScore],
) -> list[RelevanceScore]:
    """Map oracle output back to batch items.

    A returned id may be the item id or its 1-based position in the batch.
    Items with no returned score are omitted; the caller defaults them.
    """
    by_key: dict[str, RelevanceScore] = {}
    for score in scores:
        by_key.setdefault(str(score.id).strip(), score)

    matched = []
    for position, item in enumerate(batch, start=1):
        score = by_key.get(item.id) or by_key.get(str(position))
        if score is None:
            continue
        matched.append(
            RelevanceScore(id=item.id, score=score.score, reasoning=score.reasoning)
        )
    return matched


class RelevanceClassifier:
    """Implements the relevance oracle on top of LLMClient.extract.

    Batches within a category run sequentially; a failed batch fails the
    whole call and the scorer scores the category 0.
    """

    def __init__(self, llm_client: LLMClient, batch_size: int | None = None):
        self._llm = llm_client
        self._batch_size = batch_size or settings.classification_batch_size

    async def classify(
        self,
        target_title: str,
        items: list[ClassificationItem],
        category: str,
        keywords: str | None = None,
    ) -> list[RelevanceScore]:
        """Score items 0-100 for relevance to the target meeting.

        Args:
            target_title: Title of the meeting being prepared for
            items: Candidates of one category
            category: Category name used in the prompt ("meetings", ...)
            keywords: Optional comma-separated user keywords

        Returns:
            One RelevanceScore per item the model scored, keyed by item id

        Raises:
            LLMClientError: If any batch fails
        """
        if not items:
            return []

        results: list[RelevanceScore] = []
        for start in range(0, len(items), self._batch_size):
            batch = items[start : start + self._batch_size]
            prompt = build_relevance_prompt(target_title, batch, category, keywords)
            response = await self._llm.extract(prompt, RelevanceScores)
            results.extend(match_scores(batch, response.scores))

        logger.info(
            "classified relevance",
            category=category,
            items=len(items),
            scored=len(results),
        )
        return results
