"""Configuration module for the video question answering service."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from .errors import ConfigurationError

# Check if we're in production
is_production = os.getenv("ENVIRONMENT") == "production"

if not is_production:
    # Development: prioritize .env file
    project_root = Path(__file__).resolve().parent.parent.parent
    load_dotenv(project_root / ".env", override=True)
else:
    # Production: use cloud platform env vars only
    load_dotenv()


def _split_languages(value: str) -> list[str]:
    return [lang.strip() for lang in value.split(",") if lang.strip()]


class VideoQAConfig(BaseModel):
    """Configuration for the transcript RAG service.

    Covers transcript fetching, chunking, embedding, vector storage, answer
    generation and the HTTP listener. All settings can be overridden via
    environment variables.
    """

    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )

    # Supadata API settings
    supadata_api_key: str = Field(
        default_factory=lambda: os.getenv("SUPADATA_API_KEY", "")
    )
    transcript_languages: list[str] = Field(
        default_factory=lambda: _split_languages(
            os.getenv("TRANSCRIPT_LANGUAGES", "en,en-US,en-GB")
        )
    )

    # Chunking settings (character-based)
    chunk_size: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_SIZE", "1200"))
    )
    chunk_overlap: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "200"))
    )
    retrieval_k: int = Field(
        default_factory=lambda: int(os.getenv("RETRIEVAL_K", "4"))
    )

    # Embedding settings
    embedding_provider: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "openai")
    )
    embedding_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_BASE_URL", "https://api.openai.com/v1"
        )
    )
    embedding_api_key: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_API_KEY", "")
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL_CHOICE", "text-embedding-3-small"
        )
    )
    embedding_batch_size: int = Field(
        default_factory=lambda: int(os.getenv("EMBEDDING_BATCH_SIZE", "10"))
    )

    # Vector index settings (Supabase + pgvector)
    supabase_url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_KEY", "")
    )
    collections_table: str = Field(
        default_factory=lambda: os.getenv("COLLECTIONS_TABLE", "video_collections")
    )
    chunks_table: str = Field(
        default_factory=lambda: os.getenv("CHUNKS_TABLE", "collection_chunks")
    )
    match_function: str = Field(
        default_factory=lambda: os.getenv("MATCH_FUNCTION", "match_collection_chunks")
    )

    # Chat model settings
    llm_choice: str = Field(default_factory=lambda: os.getenv("LLM_CHOICE", "gpt-4o-mini"))
    llm_base_url: str = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
    )
    llm_api_key: str = Field(default_factory=lambda: os.getenv("LLM_API_KEY", ""))
    llm_temperature: float = Field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.2"))
    )
    llm_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
    )

    # HTTP listener
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "3005")))

    @model_validator(mode="after")
    def _check_ranges(self) -> "VideoQAConfig":
        if self.chunk_overlap < 0:
            raise ValueError("chunk_overlap must be >= 0")
        if self.chunk_size <= self.chunk_overlap:
            raise ValueError("chunk_size must be greater than chunk_overlap")
        if self.retrieval_k < 0:
            raise ValueError("retrieval_k must be >= 0")
        if not 0.0 <= self.llm_temperature <= 1.0:
            raise ValueError("llm_temperature must be between 0 and 1")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def missing_secrets(self) -> list[str]:
        """Return the environment variable names of required secrets that are unset."""
        required = {
            "SUPADATA_API_KEY": self.supadata_api_key,
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_SERVICE_KEY": self.supabase_key,
            "LLM_API_KEY": self.llm_api_key,
        }
        if self.embedding_provider != "ollama":
            required["EMBEDDING_API_KEY"] = self.embedding_api_key

        return [name for name, value in required.items() if not value]

    def require_secrets(self) -> None:
        """Fail fast when any required secret is missing.

        Raises:
            ConfigurationError: Naming every missing environment variable.
        """
        missing = self.missing_secrets()
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing)
            )


def get_config() -> VideoQAConfig:
    """Get validated configuration instance.

    Returns:
        VideoQAConfig: Validated configuration object with all settings.

    Raises:
        pydantic.ValidationError: If numeric settings are invalid or inconsistent.
    """
    return VideoQAConfig()
