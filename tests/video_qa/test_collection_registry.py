"""Unit tests for video id extraction and collection key resolution."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.video_qa.collection_registry import CollectionRegistry, extract_video_id
from src.video_qa.errors import InvalidSessionId

# ==============================================================================
# Video ID Extraction
# ==============================================================================


@pytest.mark.unit
class TestExtractVideoId:
    """Test extract_video_id helper function."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s&list=PL123", "dQw4w9WgXcQ"),
            ("https://m.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://youtu.be/rWKwQ1I4xzc?si=rtEdEbwiEPxOBFm4", "rWKwQ1I4xzc"),
            ("https://www.youtube.com/embed/rWKwQ1I4xzc?autoplay=1", "rWKwQ1I4xzc"),
            ("https://www.youtube.com/shorts/abc_DEF-123", "abc_DEF-123"),
            ("https://www.youtube.com/live/abc_DEF-123?feature=shared", "abc_DEF-123"),
            ("  https://youtu.be/rWKwQ1I4xzc  ", "rWKwQ1I4xzc"),
        ],
    )
    def test_known_url_shapes(self, url: str, expected: str) -> None:
        """Test query-parameter and path-pattern extraction."""
        assert extract_video_id(url) == expected

    def test_fallback_hash_is_stable(self) -> None:
        """Test unrecognized URLs map to the same pseudo-id every time."""
        url = "https://vimeo.com/123456"

        first = extract_video_id(url)
        second = extract_video_id(url)

        assert first == second
        assert first.startswith("url_")
        assert len(first) == len("url_") + 12

    def test_fallback_hash_differs_per_url(self) -> None:
        """Test distinct unrecognized URLs map to distinct pseudo-ids."""
        assert extract_video_id("not a url") != extract_video_id("still not a url")

    def test_query_value_with_bad_characters_falls_through(self) -> None:
        """Test a ``v`` value outside the id alphabet is not used as-is."""
        video_id = extract_video_id("https://example.com/watch?v=a/b")

        assert video_id == "a"


# ==============================================================================
# Collection Registry
# ==============================================================================


@pytest.mark.unit
class TestCollectionRegistry:
    """Test suite for CollectionRegistry class."""

    @pytest.fixture
    def mock_index(self) -> MagicMock:
        index = MagicMock()
        index.collection_exists = AsyncMock(return_value=True)
        return index

    @pytest.fixture
    def registry(self, mock_index: MagicMock) -> CollectionRegistry:
        return CollectionRegistry(mock_index)

    def test_resolve_is_deterministic(self, registry: CollectionRegistry) -> None:
        """Test same URL and session always give the same key."""
        url = "https://youtu.be/rWKwQ1I4xzc"

        first = registry.resolve(url, "session-1")
        second = registry.resolve(url, "session-1")

        assert first == second
        assert first.name == "yt_rWKwQ1I4xzc_session-1"
        assert first.is_new_session is False

    def test_different_sessions_give_different_keys(self, registry: CollectionRegistry) -> None:
        """Test two sessions over the same video never share a collection."""
        url = "https://youtu.be/rWKwQ1I4xzc"

        assert registry.resolve(url, "session_a").name != registry.resolve(url, "session_b").name

    @pytest.mark.parametrize("session_id", [None, ""])
    def test_missing_session_mints_new_one(
        self, registry: CollectionRegistry, session_id: str | None
    ) -> None:
        """Test absent session ids produce a fresh UUID marked as new."""
        key = registry.resolve("https://youtu.be/rWKwQ1I4xzc", session_id)

        assert key.is_new_session is True
        assert str(uuid.UUID(key.session_id)) == key.session_id
        assert key.video_id == "rWKwQ1I4xzc"

    def test_minted_sessions_are_unique(self, registry: CollectionRegistry) -> None:
        """Test two new requests for the same video get separate sessions."""
        url = "https://youtu.be/rWKwQ1I4xzc"

        assert registry.resolve(url).session_id != registry.resolve(url).session_id

    @pytest.mark.parametrize(
        "session_id",
        ["bad session", "../../etc", "id;drop", "é", "x" * 129],
    )
    def test_invalid_session_rejected(
        self, registry: CollectionRegistry, session_id: str
    ) -> None:
        """Test session ids outside the allow-list raise InvalidSessionId."""
        with pytest.raises(InvalidSessionId) as exc_info:
            registry.resolve("https://youtu.be/rWKwQ1I4xzc", session_id)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_exists_asks_vector_index(
        self, registry: CollectionRegistry, mock_index: MagicMock
    ) -> None:
        """Test existence is checked against the index on every call."""
        key = registry.resolve("https://youtu.be/rWKwQ1I4xzc", "s1")

        assert await registry.exists(key) is True
        assert await registry.exists(key) is True

        assert mock_index.collection_exists.await_count == 2
        mock_index.collection_exists.assert_awaited_with("yt_rWKwQ1I4xzc_s1")


@pytest.mark.unit
class TestUnencodableUrls:
    """Test URLs carrying lone surrogates from JSON escapes."""

    def test_lone_surrogate_still_gets_an_id(self) -> None:
        """Test the hash fallback accepts text that is not valid UTF-8."""
        url = "https://example.com/\ud800"

        video_id = extract_video_id(url)

        assert video_id.startswith("url_")
        assert video_id == extract_video_id(url)
        assert video_id != extract_video_id("https://example.com/\ud801")

    def test_resolve_accepts_surrogate_url(self) -> None:
        registry = CollectionRegistry(MagicMock())

        key = registry.resolve("https://example.com/\ud800", "s1")

        assert key.name.startswith("yt_url_")
        assert key.name.endswith("_s1")
