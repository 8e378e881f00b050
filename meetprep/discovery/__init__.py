"""Meeting context discovery: fetch, dedupe, score, boost, assemble."""

from meetprep.discovery.candidate_assembler import CandidateAssembler
from meetprep.discovery.discovery_service import (
    DiscoveryOutcome,
    DiscoveryService,
    TargetMeetingNotFoundError,
)
from meetprep.discovery.keyword_booster import InvalidKeywordsError, apply_keyword_boost
from meetprep.discovery.relevance_scorer import RelevanceOracle, RelevanceScorer
from meetprep.discovery.schemas import (
    AUTO_SELECT_THRESHOLD,
    DiscoveryResult,
    DocumentSource,
    ScoredCandidate,
    SourceKind,
)
from meetprep.discovery.source_fetcher import FetchedSources, SourceFetcher

__all__ = [
    "AUTO_SELECT_THRESHOLD",
    "CandidateAssembler",
    "DiscoveryOutcome",
    "DiscoveryResult",
    "DiscoveryService",
    "DocumentSource",
    "FetchedSources",
    "InvalidKeywordsError",
    "RelevanceOracle",
    "RelevanceScorer",
    "ScoredCandidate",
    "SourceFetcher",
    "SourceKind",
    "TargetMeetingNotFoundError",
    "apply_keyword_boost",
]
