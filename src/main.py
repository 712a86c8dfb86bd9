"""Main FastAPI application entry point for the YouTube transcript chatbot.

All application logic is in src.api.main; this module only starts uvicorn.
"""

from src.api.main import app
from src.video_qa.config import get_config

__all__ = ["app"]

if __name__ == "__main__":
    import uvicorn

    settings = get_config()
    uvicorn.run("src.main:app", host=settings.host, port=settings.port)
