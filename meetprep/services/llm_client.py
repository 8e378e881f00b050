"""LLM client wrapper for Anthropic structured outputs."""

from typing import TypeVar

from anthropic import APIError, AsyncAnthropic
from pydantic import BaseModel

from meetprep.config import settings

T = TypeVar("T", bound=BaseModel)


class LLMClientError(Exception):
    """Raised when an LLM call fails."""

    pass


class LLMClient:
    """Async Anthropic client wrapper with structured output support.

    Uses client.beta.messages.parse with Pydantic models for
    guaranteed schema-valid extraction output. The async client lets
    per-category classification calls run concurrently.
    """

    def __init__(self, client: AsyncAnthropic | None = None, model: str | None = None):
        """Initialize LLM client.

        Args:
            client: Optional AsyncAnthropic client for dependency injection.
                   If not provided, creates one from settings.
            model: Model name (defaults to settings.anthropic_model)
        """
        self.model = model or settings.anthropic_model
        if client is not None:
            self._client = client
        elif settings.anthropic_api_key:
            self._client = AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.llm_timeout_seconds,
            )
        else:
            # Allow initialization without API key for testing
            self._client = None

    def _require_client(self) -> AsyncAnthropic:
        if self._client is None:
            raise LLMClientError(
                "Anthropic client not initialized. "
                "Set ANTHROPIC_API_KEY environment variable."
            )
        return self._client

    async def extract(
        self,
        prompt: str,
        response_model: type[T],
        max_tokens: int = 4096,
    ) -> T:
        """Extract structured data from text using LLM.

        Args:
            prompt: The user prompt containing text to extract from
            response_model: Pydantic model defining the output schema
            max_tokens: Completion token limit

        Returns:
            Parsed response matching the response_model type

        Raises:
            LLMClientError: If extraction fails
        """
        client = self._require_client()

        try:
            response = await client.beta.messages.parse(
                model=self.model,
                max_tokens=max_tokens,
                betas=["structured-outputs-2025-11-13"],
                messages=[{"role": "user", "content": prompt}],
                output_format=response_model,
            )
        except APIError as e:
            raise LLMClientError(f"Anthropic API error: {e}") from e
        except Exception as e:
            raise LLMClientError(f"Extraction failed: {e}") from e

        if response.parsed_output is None:
            raise LLMClientError("Extraction returned no parsed output")
        return response.parsed_output

    async def complete(self, prompt: str, max_tokens: int = 4096) -> str:
        """Generate free text (markdown) for a prompt.

        Raises:
            LLMClientError: If the call fails or returns no text
        """
        client = self._require_client()

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            raise LLMClientError(f"Anthropic API error: {e}") from e
        except Exception as e:
            raise LLMClientError(f"Completion failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise LLMClientError("Completion returned no text")
        return text
