"""Error taxonomy for the video question answering service.

Every failure that can leave the pipeline is one of these classes. Each carries
the HTTP status the API layer answers with, so swapping a provider SDK cannot
change the error shapes callers see.
"""

from typing import Any


class VideoQAError(Exception):
    """Base class for all service errors."""

    status_code = 500
    error = "Internal Error"

    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        """Build the JSON error body for this error.

        Client errors (4xx) only carry ``error``. Server errors carry ``error``
        and ``message``, plus ``details`` when diagnostics are enabled.
        """
        if self.status_code < 500:
            return {"error": self.message}

        body: dict[str, Any] = {"error": self.error, "message": self.message}
        if include_details and self.details:
            body["details"] = self.details
        return body


class ConfigurationError(VideoQAError):
    """Required settings are missing or invalid."""

    error = "Configuration Error"


class ValidationError(VideoQAError):
    """A request field is missing or malformed."""

    status_code = 400


class InvalidSessionId(ValidationError):
    """The supplied sessionId contains characters outside the allow-list."""


class TranscriptUnavailable(VideoQAError):
    """No captions were found in any attempted language."""

    status_code = 400


class EmptyTranscript(VideoQAError):
    """A transcript was fetched but produced no chunks."""

    status_code = 422


class CollectionNotFound(VideoQAError):
    """A follow-up referenced a collection that does not exist."""

    status_code = 404


class ProviderError(VideoQAError):
    """An external provider failed; not correctable by the caller."""


class EmbeddingFailure(ProviderError):
    error = "Embedding Failure"


class IndexWriteFailure(ProviderError):
    error = "Index Write Failure"


class IndexReadFailure(ProviderError):
    error = "Index Read Failure"


class GenerationFailure(ProviderError):
    error = "Generation Failure"
