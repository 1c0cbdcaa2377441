import asyncio
from typing import Any

import pytest
from mcp.types import CreateMessageRequestParams, CreateMessageResult, ImageContent, SamplingMessage, TextContent

from github_repo_agent.sampling.generator import (
    GenerationError,
    GenerationTimeoutError,
    SamplingHandlerGenerator,
    estimate_prompt_tokens,
    get_generation_timeout,
    new_sampling_message,
    to_sampling_messages,
)


class FakeSamplingHandler:
    def __init__(self, response: Any = "Hello.", delay: float = 0.0):  # pyright: ignore[reportAny]
        self.response: Any = response  # pyright: ignore[reportAny]
        self.delay: float = delay
        self.params: list[CreateMessageRequestParams] = []

    async def __call__(self, messages: list[SamplingMessage], params: CreateMessageRequestParams, context: Any) -> Any:  # pyright: ignore[reportAny]
        self.params.append(params)

        if self.delay:
            await asyncio.sleep(self.delay)

        if isinstance(self.response, Exception):
            raise self.response

        return self.response  # pyright: ignore[reportAny]


def new_generator(handler: FakeSamplingHandler, timeout: float = 5.0) -> SamplingHandlerGenerator:
    return SamplingHandlerGenerator(sampling_handler=handler, timeout=timeout)  # pyright: ignore[reportArgumentType]


def test_to_sampling_messages():
    assert to_sampling_messages("Hi") == [SamplingMessage(role="user", content=TextContent(type="text", text="Hi"))]

    messages = [new_sampling_message("assistant", ["line one", "line two"])]
    assert to_sampling_messages(messages) == messages
    assert messages[0].content.text == "line one\nline two"  # pyright: ignore[reportAttributeAccessIssue]


def test_estimate_prompt_tokens():
    assert estimate_prompt_tokens("x" * 400, []) == 100


def test_generation_timeout_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "12.5")
    assert get_generation_timeout() == 12.5

    monkeypatch.delenv("GENERATION_TIMEOUT_SECONDS")
    assert get_generation_timeout() == 60.0


async def test_generate_passes_request_parameters():
    handler = FakeSamplingHandler()

    assert await new_generator(handler).generate("Hi", system_prompt="Be brief.", max_tokens=100, temperature=0.7) == "Hello."

    assert handler.params[0].systemPrompt == "Be brief."
    assert handler.params[0].maxTokens == 100
    assert handler.params[0].temperature == 0.7


async def test_generate_unwraps_create_message_result():
    handler = FakeSamplingHandler(
        response=CreateMessageResult(role="assistant", content=TextContent(type="text", text="From result."), model="test")
    )

    assert await new_generator(handler).generate("Hi") == "From result."


async def test_generate_rejects_non_text_result():
    handler = FakeSamplingHandler(
        response=CreateMessageResult(role="assistant", content=ImageContent(type="image", data="", mimeType="image/png"), model="test")
    )

    with pytest.raises(GenerationError) as exc_info:
        _ = await new_generator(handler).generate("Hi")

    assert exc_info.value.retryable is False


async def test_generate_timeout_is_retryable():
    with pytest.raises(GenerationTimeoutError) as exc_info:
        _ = await new_generator(FakeSamplingHandler(delay=1.0), timeout=0.01).generate("Hi")

    assert exc_info.value.retryable is True
    assert exc_info.value.timeout == 0.01


async def test_generate_wraps_provider_errors():
    with pytest.raises(GenerationError, match="quota exceeded") as exc_info:
        _ = await new_generator(FakeSamplingHandler(response=RuntimeError("quota exceeded"))).generate("Hi")

    assert exc_info.value.retryable is False
