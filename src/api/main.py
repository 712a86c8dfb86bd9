"""FastAPI application for the YouTube transcript chatbot.

Exposes the question endpoint and a health check, and maps the service's
error taxonomy onto JSON error responses.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from src.utils.logging import get_logger
from src.video_qa.config import VideoQAConfig, get_config
from src.video_qa.errors import VideoQAError
from src.video_qa.pipeline import VideoQAPipeline

logger = get_logger(__name__)

# Global state initialized in lifespan
config: VideoQAConfig | None = None
pipeline: VideoQAPipeline | None = None


# ==============================================================================
# Lifespan Management
# ==============================================================================


async def lifespan(app: FastAPI):  # type: ignore[misc]
    """Lifecycle manager for the FastAPI application.

    Validates configuration before accepting traffic; missing secrets stop
    startup with the list of absent variables.
    """
    global config, pipeline

    logger.info("application_startup_started")

    try:
        config = get_config()
        config.require_secrets()
        pipeline = VideoQAPipeline(config)
        logger.info("application_startup_completed", environment=config.environment)

    except Exception:
        logger.exception("application_startup_failed")
        raise

    yield  # Application runs here

    logger.info("application_shutdown_completed")


# ==============================================================================
# FastAPI Application Setup
# ==============================================================================

app = FastAPI(
    title="YouTube Transcript Chatbot API",
    description="Answers questions about YouTube videos from their transcripts",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==============================================================================
# Request Models
# ==============================================================================


class ChatbotRequest(BaseModel):
    """Request body for the chatbot endpoint.

    Fields are optional here so that missing values produce the service's own
    400 message naming the field.
    """

    model_config = ConfigDict(populate_by_name=True)

    video_url: str | None = Field(default=None, alias="videoUrl")
    question: str | None = None
    session_id: str | None = Field(default=None, alias="sessionId")


# ==============================================================================
# Error Handlers
# ==============================================================================


def _include_details() -> bool:
    return config is not None and not config.is_production


@app.exception_handler(VideoQAError)
async def video_qa_error_handler(request: Request, exc: VideoQAError) -> JSONResponse:
    """Turn a classified service error into its JSON response."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        message=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=_include_details()),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer errors outside the taxonomy with the generic 500 body."""
    logger.exception(
        "request_crashed",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    error = VideoQAError("An unexpected error occurred.", details=f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(include_details=_include_details()),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies as 400 instead of FastAPI's default 422."""
    errors = exc.errors()
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{field or 'body'}: {errors[0].get('msg', 'invalid value')}"
    else:
        message = "Invalid request body"

    logger.warning("request_rejected", path=request.url.path, reason=message)
    return JSONResponse(status_code=400, content={"error": message})


# ==============================================================================
# API Endpoints
# ==============================================================================


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/ytchatbot")
async def ytchatbot(request: ChatbotRequest) -> dict[str, Any]:
    """Answer a question about a video, building its knowledge base on first use.

    Args:
        request: Video URL, question, and optional session id.

    Returns:
        JSON with ``answer``, ``sessionId`` and ``isNewSession``.
    """
    if pipeline is None:
        raise VideoQAError("Service is not initialized.")

    response = await pipeline.answer_question(
        video_url=request.video_url,
        question=request.question,
        session_id=request.session_id,
    )
    return response.model_dump(by_alias=True)
