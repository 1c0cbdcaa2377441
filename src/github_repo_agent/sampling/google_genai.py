from collections.abc import Sequence
from typing import override

from fastmcp.experimental.sampling.handlers.base import BaseLLMSamplingHandler
from google.genai import Client as GoogleGenaiClient
from google.genai.types import (
    Content,
    GenerateContentConfig,
    GenerateContentResponse,
    ModelContent,
    Part,
    ThinkingConfig,
    UserContent,
)
from mcp import ClientSession, ServerSession
from mcp.shared.context import LifespanContextT, RequestContext
from mcp.types import CreateMessageResult, ModelPreferences, SamplingMessage, TextContent
from mcp.types import CreateMessageRequestParams as SamplingParams

DEFAULT_THINKING_BUDGET = 200


class GoogleGenaiSamplingHandler(BaseLLMSamplingHandler):
    """Answers sampling requests with the Gemini models of the Google GenAI SDK."""

    def __init__(self, default_model: str, client: GoogleGenaiClient | None = None, thinking_budget: int = DEFAULT_THINKING_BUDGET):
        self.client: GoogleGenaiClient = client or GoogleGenaiClient()
        self.default_model: str = default_model
        self.thinking_budget: int = thinking_budget

    @override
    async def __call__(
        self,
        messages: list[SamplingMessage],
        params: SamplingParams,
        context: RequestContext[ServerSession, LifespanContextT] | RequestContext[ClientSession, LifespanContextT],
    ) -> CreateMessageResult:
        model: str = self.select_model(model_preferences=params.modelPreferences)

        response: GenerateContentResponse = await self.client.aio.models.generate_content(
            model=model,
            contents=to_google_genai_contents(messages),  # pyright: ignore[reportArgumentType]
            config=GenerateContentConfig(
                system_instruction=params.systemPrompt,
                temperature=params.temperature,
                max_output_tokens=params.maxTokens,
                stop_sequences=params.stopSequences,
                thinking_config=ThinkingConfig(thinking_budget=self.thinking_budget),
            ),
        )

        if not (text := response.text):
            finish_reason = response.candidates[0].finish_reason if response.candidates else None
            msg = f"Gemini returned no text for the sampling request (finish reason: {finish_reason})."
            raise ValueError(msg)

        return CreateMessageResult(content=TextContent(type="text", text=text), role="assistant", model=model)

    def select_model(self, model_preferences: ModelPreferences | None) -> str:
        if model_preferences and model_preferences.hints and model_preferences.hints[0].name:
            return model_preferences.hints[0].name

        return self.default_model


def to_google_genai_contents(messages: Sequence[SamplingMessage]) -> list[Content]:
    """Convert text sampling messages into Gemini user/model contents."""

    contents: list[Content] = []

    for message in messages:
        if not isinstance(message.content, TextContent):
            msg = f"Only text content can be sent to Gemini, got {type(message.content).__name__}."
            raise TypeError(msg)

        part = Part(text=message.content.text)

        contents.append(UserContent(parts=[part]) if message.role == "user" else ModelContent(parts=[part]))

    return contents
