from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FINISH_REASON_STOP = "stop"
FINISH_REASON_TOOL_CALLS = "tool-calls"
FINISH_REASON_ERROR = "error"


class BaseFrame(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TextDelta(BaseFrame):
    """A fragment of assistant text."""

    kind: Literal["text_delta"] = "text_delta"
    text: str = Field(description="The text fragment to append to the open assistant message.")


class ToolCallStart(BaseFrame):
    """The agent started a tool call."""

    kind: Literal["tool_call_start"] = "tool_call_start"
    tool_call_id: str | None = Field(default=None, description="The id of the tool call, if the agent assigned one.")
    tool_name: str = Field(description="The name of the tool being called.")
    args: dict[str, Any] = Field(default_factory=dict, description="The arguments passed to the tool.")


class ToolCallResult(BaseFrame):
    """The result of the pending tool call."""

    kind: Literal["tool_call_result"] = "tool_call_result"
    tool_call_id: str | None = Field(default=None, description="The id of the tool call this result belongs to.")
    result: Any = Field(default=None, description="The result returned by the tool.")


class MessageBoundary(BaseFrame):
    """Marks the start of a new assistant message."""

    kind: Literal["message_boundary"] = "message_boundary"
    message_id: str = Field(description="The id of the message that starts here.")


class StreamEnd(BaseFrame):
    """End of an agent step (`final=False`) or of the whole stream (`final=True`)."""

    kind: Literal["stream_end"] = "stream_end"
    final: bool = Field(default=True, description="Whether this marks the end of the whole stream.")
    finish_reason: str | None = Field(default=None, description="Why the step or stream finished.")

    @property
    def failed(self) -> bool:
        return self.final and self.finish_reason == FINISH_REASON_ERROR


Frame = Annotated[TextDelta | ToolCallStart | ToolCallResult | MessageBoundary | StreamEnd, Field(discriminator="kind")]
