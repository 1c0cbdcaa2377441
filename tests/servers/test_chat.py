from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from fastmcp import FastMCP

from github_repo_agent.agents.chat import RepositoryChatAgent
from github_repo_agent.servers.chat import CHAT_PATH, ChatServer
from github_repo_agent.servers.shared.errors import SamplingHandlerRequiredError
from github_repo_agent.streaming.codec import decode_chunks
from github_repo_agent.streaming.frames import StreamEnd, TextDelta
from tests.conftest import FakeGenerator, FakeToolCaller

CHAT_REQUEST = {"messages": [{"role": "user", "content": "Hi"}], "owner": "acme", "repo": "widget"}


def new_agent() -> RepositoryChatAgent:
    return RepositoryChatAgent(generator=FakeGenerator(responses=["Hello there."]), tool_caller=FakeToolCaller())


def failing_agent_factory() -> RepositoryChatAgent:
    raise SamplingHandlerRequiredError


async def new_http_client(chat_server: ChatServer) -> AsyncGenerator[httpx.AsyncClient, Any]:
    app = chat_server.register_routes(fastmcp=FastMCP[Any](name="test")).http_app()

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, Any]:
    async for http_client in new_http_client(ChatServer(agent_factory=new_agent)):
        yield http_client


async def test_chat_streams_frames(http_client: httpx.AsyncClient):
    response = await http_client.post(CHAT_PATH, json=CHAT_REQUEST)

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/plain; charset=utf-8"
    assert response.headers["x-vercel-ai-data-stream"] == "v1"

    frames = decode_chunks([response.content])

    assert frames[1:] == [
        TextDelta(text="Hello "),
        TextDelta(text="there."),
        StreamEnd(final=False, finish_reason="stop"),
        StreamEnd(final=True, finish_reason="stop"),
    ]


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"messages": [], "owner": "acme", "repo": "widget"},
        {"messages": [{"role": "user", "content": "Hi"}], "owner": "acme"},
        {"messages": [{"role": "system", "content": "Hi"}], "owner": "acme", "repo": "widget"},
    ],
)
async def test_chat_rejects_invalid_body(http_client: httpx.AsyncClient, body: dict[str, Any]):
    response = await http_client.post(CHAT_PATH, json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


async def test_chat_rejects_non_json_body(http_client: httpx.AsyncClient):
    response = await http_client.post(CHAT_PATH, content=b"not json")

    assert response.status_code == 400


async def test_chat_internal_error():
    async for http_client in new_http_client(ChatServer(agent_factory=failing_agent_factory)):
        response = await http_client.post(CHAT_PATH, json=CHAT_REQUEST)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}

