"""Embedding service for generating text embeddings via OpenAI-compatible APIs."""

import asyncio

from openai import AsyncOpenAI

from src.utils.logging import get_logger

from .config import VideoQAConfig
from .errors import EmbeddingFailure

logger = get_logger(__name__)


class EmbeddingService:
    """Service for generating text embeddings.

    This service supports multiple embedding providers (OpenAI, Ollama, OpenRouter)
    through OpenAI-compatible APIs. Client-side retries are disabled; a failed
    call surfaces immediately as ``EmbeddingFailure``.
    """

    def __init__(self, config: VideoQAConfig):
        """Initialize embedding service with configuration.

        Args:
            config: Configuration object with embedding provider settings.
        """
        self.config = config
        self.client = self._get_client()
        logger.info(
            "embedding_service_initialized",
            provider=config.embedding_provider,
            model=config.embedding_model,
            base_url=config.embedding_base_url,
        )

    def _get_client(self) -> AsyncOpenAI:
        """Initialize OpenAI-compatible client based on provider.

        Returns:
            Configured AsyncOpenAI client instance.
        """
        if self.config.embedding_provider == "ollama":
            # Ollama doesn't require a real API key
            api_key = "ollama"
        else:
            api_key = self.config.embedding_api_key

        return AsyncOpenAI(
            base_url=self.config.embedding_base_url,
            api_key=api_key,
            max_retries=0,
        )

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Args:
            text: Text content to embed.

        Returns:
            Embedding vector as a list of floats.

        Raises:
            EmbeddingFailure: If the provider call fails or returns no vector.
        """
        try:
            response = await self.client.embeddings.create(
                input=text,
                model=self.config.embedding_model,
            )
            embedding = response.data[0].embedding
        except Exception as e:
            logger.exception(
                "embedding_failed",
                text_length=len(text),
                error_type=type(e).__name__,
            )
            raise EmbeddingFailure(
                "Failed to generate embeddings.", details=f"{type(e).__name__}: {e}"
            ) from e

        logger.debug(
            "embedding_generated",
            text_length=len(text),
            embedding_dim=len(embedding),
        )
        return embedding

    async def embed_batch(
        self, texts: list[str], batch_size: int | None = None
    ) -> list[list[float]]:
        """Generate embeddings for multiple texts with batching.

        Texts within one batch are embedded concurrently; batches run one
        after another. A failure does not cancel the other calls already
        running in its batch, but later batches are never started.

        Args:
            texts: List of text strings to embed.
            batch_size: Texts per batch (default: configured batch size).

        Returns:
            List of embedding vectors in the same order as input texts.

        Raises:
            EmbeddingFailure: If any text in any batch fails.
        """
        batch_size = batch_size or self.config.embedding_batch_size
        logger.info(
            "batch_embedding_started",
            count=len(texts),
            batch_size=batch_size,
        )

        embeddings: list[list[float]] = []

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            batch_embeddings = await asyncio.gather(
                *[self.embed_text(text) for text in batch]
            )
            embeddings.extend(batch_embeddings)

            logger.debug(
                "batch_completed",
                batch_num=i // batch_size + 1,
                count=len(batch),
            )

        logger.info(
            "batch_embedding_completed",
            total_embeddings=len(embeddings),
        )
        return embeddings
