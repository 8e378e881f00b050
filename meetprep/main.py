"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from meetprep.adapters.graph_adapter import GraphAdapter
from meetprep.api.router import api_router
from meetprep.config import settings
from meetprep.db.turso import TursoClient
from meetprep.discovery.candidate_assembler import CandidateAssembler
from meetprep.discovery.discovery_service import DiscoveryService
from meetprep.discovery.relevance_scorer import RelevanceScorer
from meetprep.discovery.source_fetcher import SourceFetcher
from meetprep.prep.content_fetcher import ContentFetcher
from meetprep.prep.preparation_pipeline import PreparationPipeline
from meetprep.repositories.artifact_repo import ArtifactRepository
from meetprep.repositories.discovery_cache_repo import DiscoveryCacheRepository
from meetprep.services.llm_client import LLMClient
from meetprep.services.relevance_classifier import RelevanceClassifier
from meetprep.services.summarizer import Summarizer

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def graph_factory(access_token: str) -> GraphAdapter:
    """Workspace Graph adapter bound to one caller's credential."""
    return GraphAdapter(access_token=access_token)


def _initialize_services(
    app: FastAPI,
    discovery_cache_repo: DiscoveryCacheRepository,
    artifact_repo: ArtifactRepository,
) -> None:
    """Build the discovery and preparation pipelines and register them in app state."""
    llm_client = LLMClient()

    app.state.discovery_service = DiscoveryService(
        graph_factory=graph_factory,
        cache=discovery_cache_repo,
        fetcher=SourceFetcher(),
        scorer=RelevanceScorer(RelevanceClassifier(llm_client)),
        assembler=CandidateAssembler(),
    )
    logger.info("DiscoveryService initialized")

    app.state.preparation_pipeline = PreparationPipeline(
        graph_factory=graph_factory,
        artifacts=artifact_repo,
        summarizer=Summarizer(llm_client),
        content_fetcher=ContentFetcher(),
    )
    logger.info("PreparationPipeline initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Create cache and artifact tables
    - Build discovery and preparation services

    Shutdown:
    - Close database connection
    """
    logger.info("Starting Meeting Prep Discovery...")

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info(f"Database connected: {db.url}")

    discovery_cache_repo = DiscoveryCacheRepository(db)
    await discovery_cache_repo.initialize()
    app.state.discovery_cache_repo = discovery_cache_repo

    artifact_repo = ArtifactRepository(db)
    await artifact_repo.initialize()
    app.state.artifact_repo = artifact_repo
    logger.info("Cache repositories initialized")

    _initialize_services(app, discovery_cache_repo, artifact_repo)

    yield

    logger.info("Shutting down Meeting Prep Discovery...")
    await db.close()
    logger.info("Database connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Meeting context discovery and preparation briefs",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "meetprep.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
