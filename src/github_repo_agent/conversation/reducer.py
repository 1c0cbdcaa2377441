"""Folds decoded stream frames into the ordered chat transcript."""

from collections.abc import Iterable
from logging import Logger

from fastmcp.utilities.logging import get_logger

from github_repo_agent.conversation.messages import Message
from github_repo_agent.streaming.frames import Frame, MessageBoundary, StreamEnd, TextDelta, ToolCallResult, ToolCallStart


class ConversationFinalizedError(Exception):
    """A frame was applied after the stream had ended."""

    def __init__(self, frame: Frame):
        super().__init__(f"The conversation stream has ended, cannot apply {frame.kind} frame.")


class ConversationReducer:
    """Applies frames of one chat stream to a transcript.

    A reducer belongs to a single stream: it holds at most one pending tool call, which a later tool call start
    replaces. The transcript itself is never mutated, `apply` returns a new list.
    """

    pending: ToolCallStart | None
    finalized: bool
    discarded_results: int

    def __init__(self, logger: Logger | None = None):
        self.logger = logger or get_logger(name=__name__)
        self.pending = None
        self.finalized = False
        self.discarded_results = 0

    def apply(self, state: list[Message], frame: Frame) -> list[Message]:
        if self.finalized:
            raise ConversationFinalizedError(frame=frame)

        match frame:
            case TextDelta():
                return self._append_text(state, frame.text)
            case MessageBoundary():
                return close_open_message(state)
            case ToolCallStart():
                if self.pending is not None:
                    self.logger.debug(f"Tool call {self.pending.tool_name} replaced by {frame.tool_name} before its result arrived.")
                self.pending = frame
                return close_open_message(state)
            case ToolCallResult():
                return self._resolve_pending(state, frame)
            case StreamEnd():
                if frame.final:
                    self.finalized = True
                return close_open_message(state)

    def apply_all(self, state: list[Message], frames: Iterable[Frame]) -> list[Message]:
        for frame in frames:
            state = self.apply(state, frame)

        return state

    def _append_text(self, state: list[Message], text: str) -> list[Message]:
        if state and state[-1].is_open_assistant:
            return [*state[:-1], state[-1].append(text)]

        return [*state, Message.assistant(content=text, open=True)]

    def _resolve_pending(self, state: list[Message], frame: ToolCallResult) -> list[Message]:
        if self.pending is None:
            self.discarded_results += 1
            self.logger.warning(f"Discarding tool result without a pending tool call (id: {frame.tool_call_id}).")
            return state

        start, self.pending = self.pending, None

        tool_message = Message.tool(tool_name=start.tool_name, tool_input=start.args, tool_output=frame.result)

        return [*close_open_message(state), tool_message]


def close_open_message(state: list[Message]) -> list[Message]:
    if state and state[-1].open:
        return [*state[:-1], state[-1].close()]

    return state


def reduce_frames(frames: Iterable[Frame], state: list[Message] | None = None) -> list[Message]:
    return ConversationReducer().apply_all(state or [], frames)
