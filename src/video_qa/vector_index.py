"""Vector index adapter storing transcript collections in Supabase (pgvector)."""

from datetime import UTC, datetime
from typing import Any

from supabase import Client, create_client

from src.utils.logging import get_logger

from .config import VideoQAConfig
from .embedding_service import EmbeddingService
from .errors import CollectionNotFound, IndexReadFailure, IndexWriteFailure
from .schemas import Chunk, CollectionInfo, RetrievalResult, RetrievedChunk

logger = get_logger(__name__)


class VectorIndexService:
    """Service for storing and searching chunk collections in Supabase.

    A collection is one row in the collections table plus its rows in the
    chunks table. The collection row is written only after every chunk row
    landed, so ``collection_exists`` never reports a half-written collection.
    """

    def __init__(
        self,
        config: VideoQAConfig,
        embedding_service: EmbeddingService,
        client: Client | None = None,
    ):
        """Initialize the index with configuration.

        Args:
            config: Configuration object with Supabase credentials and table names.
            embedding_service: Service used to embed chunks and queries.
            client: Optional pre-built Supabase client.
        """
        self.config = config
        self.embedding_service = embedding_service
        self.client: Client = client or create_client(
            config.supabase_url,
            config.supabase_key,
        )
        logger.info(
            "vector_index_initialized",
            supabase_url=config.supabase_url,
            collections_table=config.collections_table,
            chunks_table=config.chunks_table,
        )

    async def collection_exists(self, collection_name: str) -> bool:
        """Check whether a collection has been fully written.

        Args:
            collection_name: Collection name to look up.

        Returns:
            True if the collection row exists.

        Raises:
            IndexReadFailure: If the lookup fails.
        """
        try:
            response = (
                self.client.table(self.config.collections_table)
                .select("name")
                .eq("name", collection_name)
                .execute()
            )
        except Exception as e:
            logger.exception(
                "collection_lookup_failed",
                collection=collection_name,
                error_type=type(e).__name__,
            )
            raise IndexReadFailure(
                "Failed to query the vector index.", details=f"{type(e).__name__}: {e}"
            ) from e

        exists = bool(response.data)
        logger.debug("collection_lookup_completed", collection=collection_name, exists=exists)
        return exists

    async def list_collections(self, session_id: str | None = None) -> list[CollectionInfo]:
        """List stored collections, optionally restricted to one session.

        Raises:
            IndexReadFailure: If the listing fails.
        """
        try:
            query = self.client.table(self.config.collections_table).select("*")
            if session_id:
                query = query.eq("session_id", session_id)
            response = query.order("created_at").execute()
        except Exception as e:
            logger.exception("collection_listing_failed", error_type=type(e).__name__)
            raise IndexReadFailure(
                "Failed to list collections.", details=f"{type(e).__name__}: {e}"
            ) from e

        return [CollectionInfo(**row) for row in response.data or []]

    async def store(self, collection_name: str, chunks: list[Chunk]) -> int:
        """Embed chunks and write them into a new collection.

        Embeddings are generated before anything is written. If a write fails
        the chunk rows already inserted for this collection are deleted.

        Args:
            collection_name: Name of the collection to create.
            chunks: Chunks of one video and session, in ordinal order.

        Returns:
            Number of chunks stored.

        Raises:
            EmbeddingFailure: If embedding any chunk fails.
            IndexWriteFailure: If writing chunks or the collection row fails.
        """
        if not chunks:
            raise IndexWriteFailure("Refusing to create an empty collection.")

        logger.info("collection_store_started", collection=collection_name, chunks=len(chunks))

        embeddings = await self.embedding_service.embed_batch(
            [chunk.content for chunk in chunks]
        )

        rows = [
            {
                "collection_name": collection_name,
                "chunk_index": chunk.ordinal,
                "content": chunk.content,
                "video_id": chunk.video_id,
                "session_id": chunk.session_id,
                "embedding": embedding,
                "metadata": chunk.metadata,
            }
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]

        collection_row = {
            "name": collection_name,
            "video_id": chunks[0].video_id,
            "session_id": chunks[0].session_id,
            "chunk_count": len(chunks),
            "chunk_size": self.config.chunk_size,
            "chunk_overlap": self.config.chunk_overlap,
            "embedding_model": self.config.embedding_model,
            "created_at": datetime.now(UTC).isoformat(),
        }

        try:
            self.client.table(self.config.chunks_table).insert(rows).execute()
            self.client.table(self.config.collections_table).insert(collection_row).execute()
        except Exception as e:
            logger.exception(
                "collection_store_failed",
                collection=collection_name,
                error_type=type(e).__name__,
            )
            self._discard_chunks(collection_name)
            raise IndexWriteFailure(
                "Failed to write transcript chunks to the vector index.",
                details=f"{type(e).__name__}: {e}",
            ) from e

        logger.info("collection_created", collection=collection_name, chunks=len(chunks))
        return len(chunks)

    async def retrieve(self, collection_name: str, query: str, k: int) -> RetrievalResult:
        """Return the k chunks most similar to the query.

        Args:
            collection_name: Collection to search.
            query: Question text.
            k: Maximum number of chunks to return.

        Returns:
            RetrievalResult ordered by descending similarity.

        Raises:
            CollectionNotFound: If the collection does not exist.
            EmbeddingFailure: If embedding the query fails.
            IndexReadFailure: If the similarity search fails.
        """
        if not await self.collection_exists(collection_name):
            logger.warning("collection_not_found", collection=collection_name)
            raise CollectionNotFound(
                "No previous context found for this session. "
                "Start a new session by sending the question without a sessionId."
            )

        if k <= 0:
            return RetrievalResult(collection_name=collection_name)

        query_embedding = await self.embedding_service.embed_text(query)

        try:
            response = self.client.rpc(
                self.config.match_function,
                {
                    "query_embedding": query_embedding,
                    "match_count": k,
                    "collection": collection_name,
                },
            ).execute()
        except Exception as e:
            logger.exception(
                "vector_search_failed",
                collection=collection_name,
                error_type=type(e).__name__,
            )
            raise IndexReadFailure(
                "Failed to search the vector index.", details=f"{type(e).__name__}: {e}"
            ) from e

        rows: list[dict[str, Any]] = response.data or []
        items = [
            RetrievedChunk(
                chunk=Chunk(
                    content=row["content"],
                    ordinal=row["chunk_index"],
                    video_id=row.get("video_id", ""),
                    session_id=row.get("session_id", ""),
                    metadata=row.get("metadata") or {},
                ),
                similarity=float(row.get("similarity", 0.0)),
            )
            for row in rows
        ]
        items.sort(key=lambda item: item.similarity, reverse=True)

        logger.info(
            "vector_search_completed",
            collection=collection_name,
            results=len(items[:k]),
            match_count=k,
        )
        return RetrievalResult(collection_name=collection_name, items=items[:k])

    async def delete_collection(self, collection_name: str) -> None:
        """Delete a collection and all of its chunks.

        Raises:
            IndexWriteFailure: If either delete fails.
        """
        try:
            self.client.table(self.config.collections_table).delete().eq(
                "name", collection_name
            ).execute()
            self.client.table(self.config.chunks_table).delete().eq(
                "collection_name", collection_name
            ).execute()
        except Exception as e:
            logger.exception(
                "collection_delete_failed",
                collection=collection_name,
                error_type=type(e).__name__,
            )
            raise IndexWriteFailure(
                "Failed to delete collection.", details=f"{type(e).__name__}: {e}"
            ) from e

        logger.info("collection_deleted", collection=collection_name)

    def _discard_chunks(self, collection_name: str) -> None:
        """Remove chunk rows left behind by a failed store."""
        try:
            self.client.table(self.config.chunks_table).delete().eq(
                "collection_name", collection_name
            ).execute()
            logger.info("partial_collection_discarded", collection=collection_name)
        except Exception as e:
            # Caller still sees the write error
            logger.exception(
                "partial_collection_cleanup_failed",
                collection=collection_name,
                error_type=type(e).__name__,
            )
