"""Answer generation over retrieved transcript context.

Defines the Pydantic AI agent, its system prompt, and the prompt layout for a
single grounded question.
"""

from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from src.utils.logging import get_logger

from .config import VideoQAConfig
from .errors import GenerationFailure

logger = get_logger(__name__)

# ==============================================================================
# Prompts
# ==============================================================================

ANSWER_SYSTEM_PROMPT = """You are a helpful assistant that answers questions about a YouTube video.

Answer ONLY from the provided transcript context.
Do not use outside knowledge and do not guess.
If the context is missing or insufficient, just say you don't know based on the video's transcript."""

NO_CONTEXT_NOTICE = (
    "(No transcript context was retrieved for this question. "
    "Reply that you don't know based on the video's transcript.)"
)


def build_user_prompt(question: str, context: str) -> str:
    """Lay out the user turn: the question followed by the transcript context."""
    return f"Question: {question}\n\nContext:\n{context or NO_CONTEXT_NOTICE}"


def get_model(config: VideoQAConfig) -> OpenAIChatModel:
    """Get the configured chat model.

    Uses LLM_CHOICE, LLM_BASE_URL and LLM_API_KEY from the configuration. The
    underlying OpenAI client does not retry.
    """
    client = AsyncOpenAI(
        base_url=config.llm_base_url,
        api_key=config.llm_api_key,
        max_retries=0,
    )
    return OpenAIChatModel(config.llm_choice, provider=OpenAIProvider(openai_client=client))


# ==============================================================================
# Service
# ==============================================================================


class AnswerService:
    """Service that asks the chat model for a context-grounded answer."""

    def __init__(self, config: VideoQAConfig, model: Model | None = None):
        """Initialize the answer agent.

        Args:
            config: Configuration with chat model, temperature and timeout.
            model: Optional model override (tests use a FunctionModel).
        """
        self.config = config
        self.agent = Agent(
            model or get_model(config),
            system_prompt=ANSWER_SYSTEM_PROMPT,
            model_settings=ModelSettings(
                temperature=config.llm_temperature,
                timeout=config.llm_timeout_seconds,
            ),
        )
        logger.info(
            "answer_service_initialized",
            model=config.llm_choice,
            temperature=config.llm_temperature,
        )

    async def answer(self, question: str, context: str) -> str:
        """Generate an answer from the question and assembled context.

        Args:
            question: The user's question.
            context: Assembled transcript context, possibly empty.

        Returns:
            The model's text, unmodified.

        Raises:
            GenerationFailure: If the model call fails or times out.
        """
        logger.info(
            "answer_generation_started",
            question_length=len(question),
            context_length=len(context),
        )

        try:
            result = await self.agent.run(build_user_prompt(question, context))
        except Exception as e:
            logger.exception("answer_generation_failed", error_type=type(e).__name__)
            raise GenerationFailure(
                "Failed to generate an answer.", details=f"{type(e).__name__}: {e}"
            ) from e

        answer = result.output
        logger.info("answer_generation_completed", answer_length=len(answer))
        return answer
