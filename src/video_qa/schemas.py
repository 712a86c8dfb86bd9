"""Pydantic schemas for the transcript RAG pipeline."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TranscriptSegment(BaseModel):
    """Single caption line with its timing."""

    text: str
    offset_ms: int  # Start time in milliseconds
    duration_ms: int  # Duration in milliseconds
    lang: str = "en"

    @property
    def start_seconds(self) -> float:
        return self.offset_ms / 1000


class Transcript(BaseModel):
    """Full video transcript with all segments.

    Contains the complete transcript as a list of timed segments plus the
    language the provider actually returned.
    """

    video_id: str
    segments: list[TranscriptSegment]
    lang: str
    available_langs: list[str] = Field(default_factory=list)

    @property
    def full_text(self) -> str:
        """Caption text joined with single spaces, in segment order."""
        parts = (" ".join(seg.text.split()) for seg in self.segments)
        return " ".join(part for part in parts if part)


class Chunk(BaseModel):
    """Fixed-size character window of a transcript.

    Ordinals start at 0 and increase by one; consecutive chunks share the
    configured overlap.
    """

    content: str
    ordinal: int
    video_id: str
    session_id: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class CollectionKey(BaseModel):
    """Identity of one knowledge base in the vector index."""

    video_id: str
    session_id: str
    is_new_session: bool = False

    @property
    def name(self) -> str:
        return f"yt_{self.video_id}_{self.session_id}"


class CollectionInfo(BaseModel):
    """Summary row describing a stored collection."""

    name: str
    video_id: str
    session_id: str
    chunk_count: int = 0
    chunk_size: int | None = None
    chunk_overlap: int | None = None
    embedding_model: str | None = None
    created_at: str | None = None


class RetrievedChunk(BaseModel):
    """A stored chunk returned by similarity search."""

    chunk: Chunk
    similarity: float


class RetrievalResult(BaseModel):
    """Top-k search hits, most similar first."""

    collection_name: str
    items: list[RetrievedChunk] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)


class AnswerResponse(BaseModel):
    """Final answer returned to the caller."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    answer: str
    session_id: str
    is_new_session: bool
