from enum import StrEnum
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class Message(BaseModel):
    """A renderable message of the chat transcript."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Who produced the message.")
    content: str = Field(default="", description="The text of the message.")
    tool_name: str | None = Field(default=None, description="The tool that was called, for tool messages.")
    tool_input: dict[str, Any] | None = Field(default=None, description="The arguments the tool was called with, for tool messages.")
    tool_output: Any = Field(default=None, description="The result the tool returned, for tool messages.")
    error: bool = Field(default=False, description="Whether the message reports a failed request.")
    open: bool = Field(default=False, description="Whether streamed text may still be appended to the message.")

    @classmethod
    def user(cls, content: str) -> Self:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, open: bool = False) -> Self:  # noqa: A002
        return cls(role=Role.ASSISTANT, content=content, open=open)

    @classmethod
    def tool(cls, tool_name: str, tool_input: dict[str, Any], tool_output: Any) -> Self:
        return cls(
            role=Role.TOOL,
            content=f"Using tool: {tool_name}",
            tool_name=tool_name,
            tool_input=tool_input,
            tool_output=tool_output,
        )

    @classmethod
    def failure(cls, message: str) -> Self:
        return cls(role=Role.ASSISTANT, content=f"Error: {message}", error=True)

    @property
    def is_open_assistant(self) -> bool:
        return self.role == Role.ASSISTANT and self.open and not self.error

    def append(self, text: str) -> Self:
        return self.model_copy(update={"content": self.content + text})

    def close(self) -> Self:
        return self.model_copy(update={"open": False}) if self.open else self


class ChatMessage(BaseModel):
    """A message sent to the chat endpoint."""

    role: Literal["user", "assistant"] = Field(description="Who wrote the message.")
    content: str = Field(description="The text of the message.")


class ChatRequest(BaseModel):
    """The body of `POST /api/chat`."""

    messages: list[ChatMessage] = Field(min_length=1, description="The conversation so far.")
    owner: str = Field(min_length=1, description="The owner of the repository being discussed.")
    repo: str = Field(min_length=1, description="The name of the repository being discussed.")
