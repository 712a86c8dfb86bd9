"""Collection registry mapping (video, session) pairs to index collections."""

import hashlib
import re
import uuid
from urllib.parse import parse_qs, urlparse

from src.utils.logging import get_logger

from .errors import InvalidSessionId
from .schemas import CollectionKey
from .vector_index import VectorIndexService

logger = get_logger(__name__)

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

# Tried in order against the raw URL when there is no usable ?v= parameter
VIDEO_PATH_PATTERNS = (
    re.compile(r"youtu\.be/([A-Za-z0-9_-]+)"),
    re.compile(r"/embed/([A-Za-z0-9_-]+)"),
    re.compile(r"/shorts/([A-Za-z0-9_-]+)"),
    re.compile(r"/live/([A-Za-z0-9_-]+)"),
    re.compile(r"/v/([A-Za-z0-9_-]+)"),
    re.compile(r"[?&]v=([A-Za-z0-9_-]+)"),
)

URL_HASH_LENGTH = 12


def extract_video_id(video_url: str) -> str:
    """Extract a YouTube video ID from a URL.

    Tries the ``v`` query parameter, then the known path shapes
    (``youtu.be/<id>``, ``/embed/<id>``, ``/shorts/<id>``, ``/live/<id>``,
    ``/v/<id>``). Anything else maps to ``url_`` plus a truncated SHA-1 of
    the raw URL, so every URL yields some identifier.

    Args:
        video_url: Raw URL as sent by the caller.

    Returns:
        Non-empty identifier made of letters, digits, ``-`` and ``_``.

    Examples:
        >>> extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s")
        'dQw4w9WgXcQ'
        >>> extract_video_id("https://youtu.be/rWKwQ1I4xzc?si=rtEdEbwiEPxOBFm4")
        'rWKwQ1I4xzc'
    """
    url = video_url.strip()

    try:
        values = parse_qs(urlparse(url).query).get("v", [])
    except ValueError:
        values = []
    for value in values:
        if VIDEO_ID_PATTERN.match(value):
            return value

    for pattern in VIDEO_PATH_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)

    # surrogatepass: lone surrogates from JSON escapes still hash
    digest = hashlib.sha1(url.encode("utf-8", "surrogatepass")).hexdigest()[:URL_HASH_LENGTH]
    logger.warning("video_id_fallback_hash", url_length=len(url), video_id=f"url_{digest}")
    return f"url_{digest}"


def new_session_id() -> str:
    """Mint a fresh random session identifier."""
    return str(uuid.uuid4())


class CollectionRegistry:
    """Resolves requests to collection keys and checks whether they exist.

    Existence is asked of the vector index on every call; nothing is cached
    because collections may be deleted out-of-band.
    """

    def __init__(self, vector_index: VectorIndexService):
        self.vector_index = vector_index

    def resolve(self, video_url: str, session_id: str | None = None) -> CollectionKey:
        """Build the collection key for a request.

        Args:
            video_url: Video URL from the request.
            session_id: Session id from the request, if any.

        Returns:
            CollectionKey; ``is_new_session`` is True when a session id was minted.

        Raises:
            InvalidSessionId: If the supplied session id has disallowed characters.
        """
        video_id = extract_video_id(video_url)

        if session_id is None or session_id == "":
            return CollectionKey(
                video_id=video_id, session_id=new_session_id(), is_new_session=True
            )

        if not SESSION_ID_PATTERN.match(session_id):
            raise InvalidSessionId(
                "sessionId may only contain letters, digits, '-' and '_' "
                "(at most 128 characters)."
            )

        return CollectionKey(video_id=video_id, session_id=session_id, is_new_session=False)

    async def exists(self, key: CollectionKey) -> bool:
        return await self.vector_index.collection_exists(key.name)
