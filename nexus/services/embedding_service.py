"""
Embedding service for generating semantic embeddings using Google Gemini API.

This service provides functionality to:
- Generate 768-dimensional embeddings for profile and job text
- Retry transient failures with exponential backoff
- Fail fast through a circuit breaker while the provider is down
- Expose an async interface for the matching engine
"""

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Protocol, runtime_checkable

import google.generativeai as genai
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from nexus.utils.circuit_breaker import CircuitBreaker, CircuitBreakerError

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Raised when the provider returns an unusable embedding."""
    pass


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that can turn text into an embedding vector."""

    async def embed(self, text: str) -> List[float]:
        ...


class EmbeddingService:
    """
    Embedding provider backed by Google Gemini.

    Generation is synchronous (the Gemini SDK blocks); `embed` runs it on a
    thread pool owned by the service so the matching engine can await many
    calls concurrently. Each API call carries a client-side timeout, and a
    stalled call never holds up the event loop that awaited it.
    """

    # Gemini API configuration
    MODEL_NAME = "models/text-embedding-004"
    EMBEDDING_DIMENSION = 768
    TASK_TYPE = "SEMANTIC_SIMILARITY"

    # Retry configuration
    MAX_RETRIES = 3
    RETRY_MIN_WAIT = 0.5  # seconds
    RETRY_MAX_WAIT = 4  # seconds

    REQUEST_TIMEOUT = 10  # seconds, per API call
    MAX_WORKERS = 8

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        dimension: Optional[int] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize EmbeddingService with Google Gemini API.

        Args:
            api_key: Google API key. If not provided, reads from GOOGLE_API_KEY env var.
            model_name: Embedding model, defaults to MODEL_NAME
            dimension: Expected vector length, defaults to EMBEDDING_DIMENSION
            circuit_breaker: Breaker guarding provider calls; one is created if omitted
            timeout: Client-side timeout for each API call, defaults to REQUEST_TIMEOUT
            max_workers: Size of the thread pool used by `embed`, defaults to MAX_WORKERS

        Raises:
            ValueError: If API key is not provided or found in environment
        """
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY")

        if not self.api_key:
            raise ValueError(
                "Google API key is required. Provide via constructor or GOOGLE_API_KEY environment variable."
            )

        self.model_name = model_name or self.MODEL_NAME
        self.dimension = dimension or self.EMBEDDING_DIMENSION
        self.timeout = timeout or self.REQUEST_TIMEOUT
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            name="gemini_embeddings",
            fail_max=5,
            reset_timeout=60,
            exclude=[ValueError],
        )

        # Lives as long as the service; asyncio.run only joins the loop's default executor
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or self.MAX_WORKERS,
            thread_name_prefix="gemini-embed",
        )

        genai.configure(api_key=self.api_key)

        logger.info(f"EmbeddingService initialized with model: {self.model_name}")

    async def embed(self, text: str) -> List[float]:
        """Async wrapper around generate_embedding."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.generate_embedding, text)

    def close(self) -> None:
        """Stop accepting work; calls already running finish in the background."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def generate_embedding(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Input text to embed

        Returns:
            Embedding vector of length `dimension`

        Raises:
            ValueError: If text is empty or None
            EmbeddingError: If the provider returns a malformed vector
            CircuitBreakerError: If the provider circuit is open
            Exception: If the API call fails after retries
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty or None")

        return self.circuit_breaker.call(self._generate_with_retry, text.strip())

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(min=RETRY_MIN_WAIT, max=RETRY_MAX_WAIT),
        retry=retry_if_not_exception_type((ValueError, EmbeddingError, CircuitBreakerError)),
        reraise=True,
    )
    def _generate_with_retry(self, text: str) -> List[float]:
        try:
            logger.debug(f"Generating embedding for text (length: {len(text)})")

            result = genai.embed_content(
                model=self.model_name,
                content=text,
                task_type=self.TASK_TYPE,
                request_options={"timeout": self.timeout},
            )
            embedding = list(result["embedding"])
        except (KeyError, TypeError) as e:
            raise EmbeddingError(f"Malformed embedding response: {e}") from e
        except Exception as e:
            logger.warning(f"Error generating embedding: {str(e)}")
            raise

        if len(embedding) != self.dimension:
            raise EmbeddingError(
                f"Unexpected embedding dimension: {len(embedding)} (expected {self.dimension})"
            )
        if not any(embedding):
            raise EmbeddingError("Provider returned an all-zero embedding")

        return embedding
