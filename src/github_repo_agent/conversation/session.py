"""Client side of the chat: posts messages and folds the streamed reply into the transcript."""

import asyncio
from logging import Logger

import httpx
from fastmcp.utilities.logging import get_logger

from github_repo_agent.conversation.messages import ChatMessage, ChatRequest, Message
from github_repo_agent.conversation.reducer import ConversationReducer, close_open_message
from github_repo_agent.streaming.codec import FrameDecoder, aiter_frames
from github_repo_agent.streaming.frames import StreamEnd

DEFAULT_CHAT_ENDPOINT = "/api/chat"

REPLY_FAILED_MESSAGE = "The assistant could not finish its reply."


class ChatTransportError(Exception):
    """The chat endpoint answered with an error status."""

    def __init__(self, status_code: int, detail: str | None = None):
        self.status_code: int = status_code
        super().__init__(f"Chat request failed with status {status_code}" + (f": {detail}" if detail else "."))


class ChatSession:
    """The chat transcript for one repository.

    Sending a new message while a reply is still streaming aborts the in-flight request. An aborted request is not an
    error: it leaves no error message in the transcript.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        http_client: httpx.AsyncClient,
        endpoint: str = DEFAULT_CHAT_ENDPOINT,
        logger: Logger | None = None,
    ):
        self.owner: str = owner
        self.repo: str = repo
        self.http_client: httpx.AsyncClient = http_client
        self.endpoint: str = endpoint
        self.logger: Logger = logger or get_logger(name=__name__)

        self.messages: list[Message] = []
        self.error: str | None = None

        self._task: asyncio.Task[None] | None = None

    @property
    def is_loading(self) -> bool:
        return self._task is not None and not self._task.done()

    async def send_message(self, content: str) -> None:
        """Send a message and wait until its reply has been streamed, or until a newer message aborts it."""

        if not content.strip():
            return

        await self.abort()

        self.messages = [*self.messages, Message.user(content=content)]
        self.error = None

        task = asyncio.create_task(self._stream_reply(content=content))
        self._task = task

        try:
            await task
        except asyncio.CancelledError:
            current_task = asyncio.current_task()
            if current_task is not None and current_task.cancelling():
                raise
            self.logger.debug(f"Request for {content[:50]!r} was aborted by a newer message.")

    async def abort(self) -> None:
        """Abort the in-flight request, if any, and wait for it to stop."""

        if self._task is None or self._task.done():
            return

        self._task.cancel()
        _ = await asyncio.wait([self._task])

    def clear_messages(self) -> None:
        self.messages = []
        self.error = None

    async def _stream_reply(self, content: str) -> None:
        chat_request = ChatRequest(messages=[ChatMessage(role="user", content=content)], owner=self.owner, repo=self.repo)

        reducer = ConversationReducer(logger=self.logger)
        decoder = FrameDecoder(logger=self.logger)

        try:
            async with self.http_client.stream("POST", self.endpoint, json=chat_request.model_dump(mode="json")) as response:
                if response.is_error:
                    _ = await response.aread()
                    raise ChatTransportError(status_code=response.status_code, detail=error_detail(response))

                async for frame in aiter_frames(response.aiter_bytes(), decoder=decoder):
                    self.messages = reducer.apply(self.messages, frame)

                    if isinstance(frame, StreamEnd) and frame.failed:
                        self.logger.warning(f"Chat reply for {self.owner}/{self.repo} ended with an error.")
                        self._record_failure(REPLY_FAILED_MESSAGE)
        except asyncio.CancelledError:
            self.messages = close_open_message(self.messages)
            raise
        except (httpx.HTTPError, ChatTransportError) as e:
            self.logger.warning(f"Chat request for {self.owner}/{self.repo} failed: {e}")
            self._record_failure(str(e) or type(e).__name__)

    def _record_failure(self, message: str) -> None:
        self.error = message
        self.messages = [*close_open_message(self.messages), Message.failure(message=message)]


def error_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()  # pyright: ignore[reportAny]
    except ValueError:
        return response.text or None

    if isinstance(body, dict) and isinstance(error := body.get("error"), str):  # pyright: ignore[reportUnknownMemberType]
        return error

    return None
