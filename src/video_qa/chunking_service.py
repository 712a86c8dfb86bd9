"""Chunking service for fixed-size character windows over transcript text."""

from langchain_text_splitters import RecursiveCharacterTextSplitter

from src.utils.logging import get_logger

from .config import VideoQAConfig
from .errors import EmptyTranscript
from .schemas import Chunk, CollectionKey, Transcript

logger = get_logger(__name__)


class ChunkingService:
    """Service for splitting transcripts into overlapping character windows.

    The splitter is configured with a single empty separator and no whitespace
    stripping, so every chunk is exactly ``chunk_size`` characters (the last
    one may be shorter) and starts ``chunk_size - chunk_overlap`` characters
    after the previous one. Dropping the first ``chunk_overlap`` characters of
    every chunk but the first and concatenating gives back the input text.
    """

    def __init__(self, config: VideoQAConfig):
        """Initialize chunking service with configuration.

        Args:
            config: Configuration object with chunk size and overlap.
        """
        self.config = config
        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
            length_function=len,
            separators=[""],
            keep_separator=False,
            strip_whitespace=False,
        )
        logger.info(
            "chunking_service_initialized",
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
        )

    def chunk_text(self, text: str, video_id: str, session_id: str) -> list[Chunk]:
        """Split text into ordered, overlapping chunks.

        Args:
            text: Full transcript text.
            video_id: Source video identifier stored on every chunk.
            session_id: Session identifier stored on every chunk.

        Returns:
            Non-empty list of chunks with ordinals 0..n-1.

        Raises:
            EmptyTranscript: If the text is empty or whitespace only.
        """
        if not text or not text.strip():
            raise EmptyTranscript("Transcript is empty; nothing to index.")

        pieces = self.splitter.split_text(text)
        if not pieces:
            raise EmptyTranscript("Transcript is empty; nothing to index.")

        step = self.config.chunk_size - self.config.chunk_overlap
        chunks = [
            Chunk(
                content=piece,
                ordinal=ordinal,
                video_id=video_id,
                session_id=session_id,
                metadata={"start_char": ordinal * step, "length": len(piece)},
            )
            for ordinal, piece in enumerate(pieces)
        ]

        logger.info(
            "chunking_completed",
            video_id=video_id,
            text_length=len(text),
            chunks_created=len(chunks),
        )
        return chunks

    def chunk_transcript(self, transcript: Transcript, key: CollectionKey) -> list[Chunk]:
        """Chunk a fetched transcript for the given collection key."""
        logger.info(
            "chunking_started",
            video_id=key.video_id,
            segments=len(transcript.segments),
        )
        chunks = self.chunk_text(transcript.full_text, key.video_id, key.session_id)
        for chunk in chunks:
            chunk.metadata["lang"] = transcript.lang
        return chunks
