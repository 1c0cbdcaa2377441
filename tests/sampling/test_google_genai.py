from types import SimpleNamespace
from typing import Any

import pytest
from google.genai.types import Candidate, Content, GenerateContentResponse, Part
from mcp.types import CreateMessageRequestParams, ImageContent, ModelHint, ModelPreferences, SamplingMessage, TextContent

from github_repo_agent.sampling.google_genai import GoogleGenaiSamplingHandler, to_google_genai_contents
from github_repo_agent.sampling.generator import new_sampling_message


class FakeModels:
    def __init__(self, response: GenerateContentResponse):
        self.response: GenerateContentResponse = response
        self.requests: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> GenerateContentResponse:  # pyright: ignore[reportAny]
        self.requests.append(kwargs)
        return self.response


def new_response(text: str | None) -> GenerateContentResponse:
    parts = [Part(text=text)] if text is not None else []
    return GenerateContentResponse(candidates=[Candidate(content=Content(role="model", parts=parts))])


def new_handler(models: FakeModels) -> GoogleGenaiSamplingHandler:
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return GoogleGenaiSamplingHandler(default_model="gemini-2.5-flash", client=client)  # pyright: ignore[reportArgumentType]


def test_to_google_genai_contents():
    contents = to_google_genai_contents([new_sampling_message("user", "Question"), new_sampling_message("assistant", "Answer")])

    assert [(content.role, content.parts[0].text) for content in contents] == [("user", "Question"), ("model", "Answer")]  # pyright: ignore[reportOptionalSubscript]


def test_to_google_genai_contents_rejects_images():
    with pytest.raises(TypeError):
        _ = to_google_genai_contents([SamplingMessage(role="user", content=ImageContent(type="image", data="", mimeType="image/png"))])


async def test_sampling_request():
    models = FakeModels(response=new_response("Hello from Gemini"))
    messages = [new_sampling_message("user", "Hi")]

    result = await new_handler(models)(
        messages, CreateMessageRequestParams(messages=messages, systemPrompt="Be brief.", maxTokens=50, temperature=0.2), None  # pyright: ignore[reportArgumentType]
    )

    assert result.content == TextContent(type="text", text="Hello from Gemini")
    assert result.model == "gemini-2.5-flash"
    assert models.requests[0]["model"] == "gemini-2.5-flash"
    assert models.requests[0]["config"].system_instruction == "Be brief."
    assert models.requests[0]["config"].max_output_tokens == 50


async def test_sampling_request_with_model_hint():
    models = FakeModels(response=new_response("Hi"))
    messages = [new_sampling_message("user", "Hi")]
    params = CreateMessageRequestParams(
        messages=messages, maxTokens=50, modelPreferences=ModelPreferences(hints=[ModelHint(name="gemini-2.5-pro")])
    )

    result = await new_handler(models)(messages, params, None)  # pyright: ignore[reportArgumentType]

    assert result.model == "gemini-2.5-pro"


async def test_sampling_request_without_text():
    models = FakeModels(response=new_response(None))
    messages = [new_sampling_message("user", "Hi")]

    with pytest.raises(ValueError, match="no text"):
        _ = await new_handler(models)(messages, CreateMessageRequestParams(messages=messages, maxTokens=50), None)  # pyright: ignore[reportArgumentType]
