"""YouTube service for fetching transcripts via Supadata API."""

from types import SimpleNamespace

from supadata import Supadata

from src.utils.logging import get_logger

from .config import VideoQAConfig
from .errors import TranscriptUnavailable
from .schemas import Transcript, TranscriptSegment

logger = get_logger(__name__)


class YouTubeService:
    """Service for fetching YouTube captions via Supadata API.

    Captions are requested language by language. The first attempt that comes
    back non-empty wins; a final attempt without any language constraint runs
    only after every listed language failed.
    """

    def __init__(self, config: VideoQAConfig):
        """Initialize YouTube service with configuration.

        Args:
            config: Configuration object with Supadata API key and languages.
        """
        self.config = config
        self.client = Supadata(api_key=config.supadata_api_key)
        logger.info(
            "youtube_service_initialized",
            api_key_present=bool(config.supadata_api_key),
            languages=config.transcript_languages,
        )

    def language_attempts(self, preferred_lang: str | None = None) -> list[str | None]:
        """Return the ordered language codes to try, ending with ``None``.

        Args:
            preferred_lang: Optional language tried before the configured list.

        Returns:
            De-duplicated language codes followed by ``None`` (no constraint).
        """
        attempts: list[str | None] = []
        for lang in [preferred_lang, *self.config.transcript_languages]:
            if lang and lang not in attempts:
                attempts.append(lang)
        attempts.append(None)
        return attempts

    async def get_transcript(
        self, video_id: str, preferred_lang: str | None = None
    ) -> Transcript:
        """Fetch a transcript, falling back through the configured languages.

        Args:
            video_id: YouTube video ID.
            preferred_lang: Optional language to try first.

        Returns:
            Transcript with at least one segment.

        Raises:
            TranscriptUnavailable: If no attempt returned any captions.
        """
        attempts = self.language_attempts(preferred_lang)

        for lang in attempts:
            transcript = self._fetch_once(video_id, lang)
            if transcript is not None and transcript.segments:
                logger.info(
                    "transcript_fetched",
                    video_id=video_id,
                    requested_lang=lang,
                    lang=transcript.lang,
                    segments=len(transcript.segments),
                )
                return transcript

        logger.warning("transcript_unavailable", video_id=video_id, attempts=len(attempts))
        raise TranscriptUnavailable(
            "Transcript unavailable. Check if the video has captions."
        )

    def _fetch_once(self, video_id: str, lang: str | None) -> Transcript | None:
        """Run one transcript request; failures are logged and return None."""
        logger.debug("fetching_transcript", video_id=video_id, lang=lang)

        kwargs: dict[str, object] = {"video_id": video_id, "text": False}
        if lang:
            kwargs["lang"] = lang

        try:
            response = self.client.youtube.transcript(**kwargs)
        except Exception as e:
            logger.warning(
                "transcript_attempt_failed",
                video_id=video_id,
                lang=lang,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        content = response.content or []
        if isinstance(content, str):
            # Plain-text responses carry one string instead of timed segments
            content = [SimpleNamespace(text=content)]

        segments = [
            TranscriptSegment(
                text=seg.text,
                offset_ms=int(getattr(seg, "offset", 0) or 0),
                duration_ms=int(getattr(seg, "duration", 0) or 0),
                lang=getattr(seg, "lang", None) or lang or "en",
            )
            for seg in content
            if seg.text and seg.text.strip()
        ]

        return Transcript(
            video_id=video_id,
            segments=segments,
            lang=getattr(response, "lang", None) or lang or "",
            available_langs=list(getattr(response, "available_langs", None) or []),
        )

