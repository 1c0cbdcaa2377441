"""The text generation capability used by the chat agent and the campaign pipeline."""

import asyncio
import os
from collections.abc import Sequence
from logging import Logger
from typing import Literal, Protocol

from fastmcp.experimental.sampling.handlers.base import BaseLLMSamplingHandler
from fastmcp.utilities.logging import get_logger
from mcp.types import CreateMessageRequestParams, CreateMessageResult, SamplingMessage, TextContent

DEFAULT_GENERATION_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_TOKENS = 2000

Prompt = str | Sequence[SamplingMessage]


class GenerationError(Exception):
    """A generation call failed and should not be retried."""

    retryable: bool = False


class GenerationTimeoutError(GenerationError):
    """A generation call did not finish in time. Retrying may succeed."""

    retryable: bool = True

    def __init__(self, timeout: float):
        self.timeout: float = timeout
        super().__init__(f"The generation call did not complete within {timeout} seconds.")


class TextGenerator(Protocol):
    async def generate(
        self,
        prompt: Prompt,
        *,
        system_prompt: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = 0.0,
    ) -> str: ...


def get_generation_timeout() -> float:
    return float(os.getenv("GENERATION_TIMEOUT_SECONDS", str(DEFAULT_GENERATION_TIMEOUT_SECONDS)))


def new_sampling_message(role: Literal["user", "assistant"], content: str | list[str]) -> SamplingMessage:
    if isinstance(content, list):
        content = "\n".join(content)

    return SamplingMessage(role=role, content=TextContent(type="text", text=content))


def to_sampling_messages(prompt: Prompt) -> list[SamplingMessage]:
    if isinstance(prompt, str):
        return [new_sampling_message("user", prompt)]

    return list(prompt)


def estimate_prompt_tokens(system_prompt: str | None, messages: Sequence[SamplingMessage]) -> int:
    """Roughly estimate the size of a prompt, four characters per token."""

    return (len(system_prompt or "") + sum(len(message.model_dump_json()) for message in messages)) // 4


class SamplingHandlerGenerator:
    """Generates text by calling an LLM sampling handler directly, outside of an MCP request."""

    def __init__(self, sampling_handler: BaseLLMSamplingHandler, timeout: float | None = None, logger: Logger | None = None):
        self.sampling_handler: BaseLLMSamplingHandler = sampling_handler
        self.timeout: float = timeout if timeout is not None else get_generation_timeout()
        self.logger: Logger = logger or get_logger(name=__name__)

    async def generate(
        self,
        prompt: Prompt,
        *,
        system_prompt: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = 0.0,
    ) -> str:
        messages: list[SamplingMessage] = to_sampling_messages(prompt)

        params = CreateMessageRequestParams(
            messages=messages,
            systemPrompt=system_prompt,
            maxTokens=max_tokens,
            temperature=temperature,
        )

        self.logger.info(f"Sampling with prompt that is {estimate_prompt_tokens(system_prompt, messages)} tokens.")

        try:
            async with asyncio.timeout(self.timeout):
                # The handlers only read the request context inside an MCP session.
                result: str | CreateMessageResult = await self.sampling_handler(messages, params, None)  # pyright: ignore[reportArgumentType]
        except TimeoutError as e:
            self.logger.warning(f"Sampling timed out after {self.timeout} seconds.")
            raise GenerationTimeoutError(timeout=self.timeout) from e
        except Exception as e:
            raise GenerationError(f"The sampling call failed: {e}") from e

        if isinstance(result, str):
            return result

        if not isinstance(result.content, TextContent):
            msg = "The sampling call failed to generate a valid text response."
            raise GenerationError(msg)

        self.logger.info(f"Sampling response was {len(result.content.text) // 4} tokens.")

        return result.content.text
