"""Line codec for the chat stream.

Every frame travels as one newline-terminated line of the form `{prefix}:{json}`:

    f  message boundary   {"messageId": "..."}
    0  text delta         "fragment"
    9  tool call start    {"toolCallId": "...", "toolName": "...", "args": {...}}
    a  tool call result   {"toolCallId": "...", "result": ...}
    e  end of step        {"finishReason": "...", "isContinued": false}
    d  end of stream      {"finishReason": "..."}

Unknown prefixes are skipped. A malformed line is logged and skipped without
affecting the lines around it.
"""

import codecs
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from enum import StrEnum
from logging import Logger
from typing import Any

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from github_repo_agent.streaming.frames import Frame, MessageBoundary, StreamEnd, TextDelta, ToolCallResult, ToolCallStart

logger = get_logger(__name__)


class WirePrefix(StrEnum):
    MESSAGE_BOUNDARY = "f"
    TEXT_DELTA = "0"
    TOOL_CALL_START = "9"
    TOOL_CALL_RESULT = "a"
    STEP_END = "e"
    STREAM_END = "d"


class FrameDecodeError(Exception):
    """A line of the chat stream could not be decoded."""

    def __init__(self, line: str, reason: str):
        self.line: str = line
        self.reason: str = reason
        super().__init__(f"Could not decode frame line {line[:200]!r}: {reason}")


class WirePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MessageBoundaryPayload(WirePayload):
    message_id: str = Field(alias="messageId")


class ToolCallStartPayload(WirePayload):
    tool_call_id: str | None = Field(default=None, alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    args: dict[str, Any] = Field(default_factory=dict)


class ToolCallResultPayload(WirePayload):
    tool_call_id: str | None = Field(default=None, alias="toolCallId")
    result: Any = None


class FinishPayload(WirePayload):
    finish_reason: str | None = Field(default=None, alias="finishReason")
    is_continued: bool | None = Field(default=None, alias="isContinued")


TEXT_ADAPTER: TypeAdapter[str] = TypeAdapter[str](str)
MESSAGE_ID_ADAPTER: TypeAdapter[str | MessageBoundaryPayload] = TypeAdapter[str | MessageBoundaryPayload](str | MessageBoundaryPayload)


def encode_frame(frame: Frame) -> str:
    """Encode a frame as one line of the wire format, including the trailing newline."""

    prefix: str
    payload: str

    match frame:
        case TextDelta():
            prefix, payload = WirePrefix.TEXT_DELTA, TEXT_ADAPTER.dump_json(frame.text).decode()
        case ToolCallStart():
            prefix = WirePrefix.TOOL_CALL_START
            start = ToolCallStartPayload(tool_call_id=frame.tool_call_id, tool_name=frame.tool_name, args=frame.args)
            payload = start.model_dump_json(by_alias=True)
        case ToolCallResult():
            prefix = WirePrefix.TOOL_CALL_RESULT
            payload = ToolCallResultPayload(tool_call_id=frame.tool_call_id, result=frame.result).model_dump_json(by_alias=True)
        case MessageBoundary():
            prefix, payload = WirePrefix.MESSAGE_BOUNDARY, MessageBoundaryPayload(message_id=frame.message_id).model_dump_json(by_alias=True)
        case StreamEnd(final=True):
            prefix, payload = WirePrefix.STREAM_END, FinishPayload(finish_reason=frame.finish_reason).model_dump_json(
                by_alias=True, exclude_none=True
            )
        case StreamEnd():
            prefix, payload = WirePrefix.STEP_END, FinishPayload(finish_reason=frame.finish_reason, is_continued=False).model_dump_json(
                by_alias=True, exclude_none=True
            )
        case _:
            msg = f"Cannot encode frame of type {type(frame).__name__}"
            raise TypeError(msg)

    return f"{prefix}:{payload}\n"


def encode_frames(frames: Iterable[Frame]) -> str:
    return "".join(encode_frame(frame) for frame in frames)


def decode_line(line: str) -> Frame | None:
    """Decode a single line (without its newline). Returns None for blank lines and unknown prefixes.

    Raises:
        FrameDecodeError: If the line has no prefix or its payload is malformed.
    """

    line = line.rstrip("\r")

    if not line.strip():
        return None

    prefix, separator, payload = line.partition(":")

    if not separator:
        raise FrameDecodeError(line=line, reason="missing prefix separator")

    try:
        match prefix:
            case WirePrefix.TEXT_DELTA:
                return TextDelta(text=TEXT_ADAPTER.validate_json(payload))
            case WirePrefix.TOOL_CALL_START:
                start = ToolCallStartPayload.model_validate_json(payload)
                return ToolCallStart(tool_call_id=start.tool_call_id, tool_name=start.tool_name, args=start.args)
            case WirePrefix.TOOL_CALL_RESULT:
                result = ToolCallResultPayload.model_validate_json(payload)
                return ToolCallResult(tool_call_id=result.tool_call_id, result=result.result)
            case WirePrefix.MESSAGE_BOUNDARY:
                message_id = MESSAGE_ID_ADAPTER.validate_json(payload)
                if isinstance(message_id, MessageBoundaryPayload):
                    message_id = message_id.message_id
                return MessageBoundary(message_id=message_id)
            case WirePrefix.STEP_END | WirePrefix.STREAM_END:
                return StreamEnd(final=prefix == WirePrefix.STREAM_END, finish_reason=_finish_reason(payload))
            case _:
                logger.debug(f"Skipping frame with unknown prefix {prefix!r}.")
                return None
    except ValidationError as e:
        raise FrameDecodeError(line=line, reason=str(e)) from e


def _finish_reason(payload: str) -> str | None:
    # The payload of end markers is informational only.
    try:
        return FinishPayload.model_validate_json(payload).finish_reason
    except ValidationError:
        return None


class FrameDecoder:
    """Incrementally decodes chunks of the chat stream into frames.

    Chunks may split lines (and multi-byte characters) anywhere; incomplete trailing lines are buffered until the
    next chunk or until `close()`. Frames are produced lazily, one line at a time, in the order they were received.
    """

    def __init__(self, logger: Logger | None = None):
        self.logger: Logger = logger or get_logger(__name__)
        self.decode_errors: int = 0
        self.finished: bool = False

        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer: str = ""
        self._lines: deque[str] = deque()
        self._closed: bool = False

    def feed(self, chunk: bytes | str) -> Iterator[Frame]:
        """Buffer a chunk and return an iterator over the frames of its complete lines."""

        text: str = chunk if isinstance(chunk, str) else self._utf8.decode(chunk)

        *lines, self._buffer = (self._buffer + text).split("\n")
        self._lines.extend(lines)

        return self._drain()

    def close(self) -> Iterator[Frame]:
        """Flush the final partial line and signal the end of the stream exactly once."""

        if not self._closed:
            self._closed = True
            tail: str = self._buffer + self._utf8.decode(b"", final=True)
            self._buffer = ""
            if tail:
                self._lines.append(tail)

        return self._drain_and_finish()

    def _drain_and_finish(self) -> Iterator[Frame]:
        yield from self._drain()

        if not self.finished:
            self.finished = True
            yield StreamEnd(final=True)

    def _drain(self) -> Iterator[Frame]:
        while self._lines:
            line: str = self._lines.popleft()

            if self.finished:
                self.logger.debug(f"Ignoring line received after the end of the stream: {line[:200]!r}")
                continue

            try:
                frame: Frame | None = decode_line(line)
            except FrameDecodeError as e:
                self.decode_errors += 1
                self.logger.warning(f"Skipping malformed frame: {e}")
                continue

            if frame is None:
                continue

            if isinstance(frame, StreamEnd) and frame.final:
                self.finished = True

            yield frame


async def aiter_frames(chunks: AsyncIterable[bytes | str], decoder: FrameDecoder | None = None) -> AsyncIterator[Frame]:
    """Decode an async stream of chunks, ending with exactly one final StreamEnd."""

    decoder = decoder or FrameDecoder()

    async for chunk in chunks:
        for frame in decoder.feed(chunk):
            yield frame

    for frame in decoder.close():
        yield frame


def decode_chunks(chunks: Iterable[bytes | str], decoder: FrameDecoder | None = None) -> list[Frame]:
    decoder = decoder or FrameDecoder()

    frames: list[Frame] = []

    for chunk in chunks:
        frames.extend(decoder.feed(chunk))

    frames.extend(decoder.close())

    return frames
