from collections.abc import AsyncIterator, Callable
from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from github_repo_agent.agents.chat import RepositoryChatAgent
from github_repo_agent.conversation.messages import ChatRequest
from github_repo_agent.streaming.codec import encode_frame

CHAT_PATH = "/api/chat"

STREAM_HEADERS = {"X-Vercel-AI-Data-Stream": "v1"}
STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"

AgentFactory = Callable[[], RepositoryChatAgent]


class ChatServer:
    """Serves `POST /api/chat`, streaming the frames of one agent turn per request."""

    def __init__(self, agent_factory: AgentFactory, logger: Logger | None = None):
        self.agent_factory: AgentFactory = agent_factory
        self.logger: Logger = logger or get_logger(name=__name__)

    def register_routes(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.custom_route(path=CHAT_PATH, methods=["POST"])(self.chat)

        return fastmcp

    async def chat(self, request: Request) -> Response:
        try:
            chat_request: ChatRequest = ChatRequest.model_validate_json(await request.body())
        except ValidationError as e:
            self.logger.warning(f"Rejecting invalid chat request: {e}")
            return JSONResponse(content={"error": "Invalid request body"}, status_code=400)

        try:
            agent: RepositoryChatAgent = self.agent_factory()
        except Exception:
            self.logger.exception("Failed to create the chat agent.")
            return JSONResponse(content={"error": "Internal Server Error"}, status_code=500)

        self.logger.info(f"Chat request for {chat_request.owner}/{chat_request.repo} with {len(chat_request.messages)} messages.")

        return StreamingResponse(
            content=self._encoded_stream(agent=agent, chat_request=chat_request),
            media_type=STREAM_MEDIA_TYPE,
            headers=STREAM_HEADERS,
        )

    async def _encoded_stream(self, agent: RepositoryChatAgent, chat_request: ChatRequest) -> AsyncIterator[str]:
        async for frame in agent.stream(messages=chat_request.messages, owner=chat_request.owner, repo=chat_request.repo):
            yield encode_frame(frame)
