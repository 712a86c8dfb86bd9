"""Context assembly for retrieved transcript chunks."""

from .schemas import RetrievalResult

CHUNK_SEPARATOR = "\n\n"


def assemble_context(result: RetrievalResult) -> str:
    """Join retrieved chunk texts in ranked order, separated by a blank line.

    No deduplication and no truncation; ``k`` already bounds the size.
    An empty result gives an empty string.

    Examples:
        >>> assemble_context(RetrievalResult(collection_name="yt_x_1"))
        ''
    """
    return CHUNK_SEPARATOR.join(item.chunk.content for item in result.items)
