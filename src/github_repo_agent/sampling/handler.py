import os

from fastmcp.experimental.sampling.handlers.base import BaseLLMSamplingHandler
from fastmcp.experimental.sampling.handlers.openai import OpenAISamplingHandler
from fastmcp.utilities.logging import get_logger

from github_repo_agent.sampling.generator import SamplingHandlerGenerator
from github_repo_agent.sampling.google_genai import GoogleGenaiSamplingHandler
from github_repo_agent.servers.shared.errors import SamplingHandlerRequiredError

logger = get_logger(__name__)


def get_sampling_handler() -> GoogleGenaiSamplingHandler | OpenAISamplingHandler | None:
    if os.getenv("GOOGLE_API_KEY"):
        return GoogleGenaiSamplingHandler(default_model=os.getenv("GOOGLE_MODEL") or "gemini-2.5-flash")

    if os.getenv("OPENAI_API_KEY"):
        return OpenAISamplingHandler(default_model=os.getenv("OPENAI_MODEL") or "gpt-4o")  # pyright: ignore[reportArgumentType]

    logger.warning(
        msg=(
            "No sampling handler found, the chat agent and the email campaign cannot generate text. "
            "Set OPENAI_API_KEY or GOOGLE_API_KEY to use a sampling handler. "
        )
    )

    return None


def get_text_generator(sampling_handler: BaseLLMSamplingHandler | None = None, timeout: float | None = None) -> SamplingHandlerGenerator:
    sampling_handler = sampling_handler or get_sampling_handler()

    if sampling_handler is None:
        raise SamplingHandlerRequiredError

    return SamplingHandlerGenerator(sampling_handler=sampling_handler, timeout=timeout)
