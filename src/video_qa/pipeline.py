"""Request orchestrator for transcript question answering."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from src.utils.logging import get_logger

from .answer_service import AnswerService
from .chunking_service import ChunkingService
from .collection_registry import CollectionRegistry
from .config import VideoQAConfig, get_config
from .context_assembler import assemble_context
from .embedding_service import EmbeddingService
from .errors import CollectionNotFound, ValidationError, VideoQAError
from .schemas import AnswerResponse, CollectionKey
from .vector_index import VectorIndexService
from .youtube_service import YouTubeService

logger = get_logger(__name__)


class KeyedLocks:
    """One asyncio.Lock per key, dropped again once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class VideoQAPipeline:
    """Orchestrates one question about one video.

    Resolves the collection for the request, builds it from the transcript
    when this is a new session, then retrieves context and generates the
    answer. Services are built from the configuration unless passed in.
    """

    def __init__(
        self,
        config: VideoQAConfig | None = None,
        *,
        youtube_service: YouTubeService | None = None,
        chunking_service: ChunkingService | None = None,
        embedding_service: EmbeddingService | None = None,
        vector_index: VectorIndexService | None = None,
        answer_service: AnswerService | None = None,
    ):
        """Initialize pipeline with all required services.

        Args:
            config: Configuration object. If None, loads from environment.
        """
        self.config = config or get_config()
        self.youtube_service = youtube_service or YouTubeService(self.config)
        self.chunking_service = chunking_service or ChunkingService(self.config)
        self.embedding_service = embedding_service or EmbeddingService(self.config)
        self.vector_index = vector_index or VectorIndexService(
            self.config, self.embedding_service
        )
        self.answer_service = answer_service or AnswerService(self.config)
        self.registry = CollectionRegistry(self.vector_index)
        self.locks = KeyedLocks()

        logger.info(
            "pipeline_initialized",
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
            retrieval_k=self.config.retrieval_k,
        )

    async def answer_question(
        self,
        video_url: str | None,
        question: str | None,
        session_id: str | None = None,
    ) -> AnswerResponse:
        """Answer a question about a video.

        Args:
            video_url: URL of the YouTube video.
            question: The user's question.
            session_id: Session from a previous answer; omit to start a new one.

        Returns:
            AnswerResponse with the answer and the session id to reuse.

        Raises:
            VideoQAError: Any classified failure; unexpected errors are wrapped.
        """
        if not video_url or not video_url.strip():
            raise ValidationError("videoUrl is required")
        if not question or not question.strip():
            raise ValidationError("question is required")

        key: CollectionKey | None = None

        try:
            key = self.registry.resolve(video_url, session_id)

            logger.info(
                "question_received",
                video_id=key.video_id,
                collection=key.name,
                new_session=key.is_new_session,
            )

            async with self.locks.hold(key.name):
                await self._ensure_collection(key)

            result = await self.vector_index.retrieve(
                key.name, question, self.config.retrieval_k
            )
            context = assemble_context(result)
            answer = await self.answer_service.answer(question, context)

        except VideoQAError:
            raise
        except Exception as e:
            logger.exception(
                "question_failed",
                collection=key.name if key else None,
                error_type=type(e).__name__,
            )
            raise VideoQAError(
                "An unexpected error occurred.", details=f"{type(e).__name__}: {e}"
            ) from e

        logger.info(
            "question_answered",
            collection=key.name,
            retrieved=len(result.items),
            answer_length=len(answer),
        )
        return AnswerResponse(
            answer=answer,
            session_id=key.session_id,
            is_new_session=key.is_new_session,
        )

    async def _ensure_collection(self, key: CollectionKey) -> None:
        """Build the collection for a new session; reuse it when it exists.

        Raises:
            CollectionNotFound: If a supplied session has no collection.
            TranscriptUnavailable: If the video has no captions.
            EmptyTranscript: If the captions produce no chunks.
        """
        if await self.registry.exists(key):
            logger.info("collection_reused", collection=key.name)
            return

        if not key.is_new_session:
            logger.warning("collection_missing_for_session", collection=key.name)
            raise CollectionNotFound(
                "No previous context found for this session. "
                "Start a new session by sending the question without a sessionId."
            )

        transcript = await self.youtube_service.get_transcript(key.video_id)
        chunks = self.chunking_service.chunk_transcript(transcript, key)
        await self.vector_index.store(key.name, chunks)
