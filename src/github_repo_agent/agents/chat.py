"""The repository chat agent.

Each turn is a loop of steps. In every step the model decides to either call one tool or answer. Tool calls and
answers are streamed as frames so the client can render them while the turn is still running.
"""

import os
import re
from collections.abc import AsyncIterator, Sequence
from logging import Logger
from typing import Any, Self
from uuid import uuid4

from fastmcp.utilities.logging import get_logger
from mcp.types import SamplingMessage, Tool
from pydantic import BaseModel, Field, ValidationError, model_validator

from github_repo_agent.agents.prompts import FINAL_ANSWER_INSTRUCTIONS, build_system_prompt
from github_repo_agent.agents.tools import ToolCaller
from github_repo_agent.conversation.messages import ChatMessage
from github_repo_agent.sampling.extract import extract_single_object_from_text, object_in_text_instructions
from github_repo_agent.sampling.generator import TextGenerator, new_sampling_message
from github_repo_agent.sampling.prompts import dump_yaml
from github_repo_agent.streaming.frames import (
    FINISH_REASON_ERROR,
    FINISH_REASON_STOP,
    FINISH_REASON_TOOL_CALLS,
    Frame,
    MessageBoundary,
    StreamEnd,
    TextDelta,
    ToolCallResult,
    ToolCallStart,
)

DEFAULT_MAX_STEPS = 10
DEFAULT_DECISION_RETRIES = 3

TEXT_FRAGMENT_PATTERN = re.compile(r"\s*\S+\s*")


def get_max_steps() -> int:
    return int(os.getenv("CHAT_MAX_STEPS", str(DEFAULT_MAX_STEPS)))


class AgentToolCall(BaseModel):
    tool_name: str = Field(description="The name of the tool to call.")
    arguments: dict[str, Any] = Field(default_factory=dict, description="The arguments to call the tool with.")


class AgentStep(BaseModel):
    """The decision for one step of the turn: call exactly one tool, or answer the user."""

    tool_call: AgentToolCall | None = Field(default=None, description="The tool to call next, if more information is needed.")
    answer: str | None = Field(default=None, description="The markdown answer to the user, once no more tools are needed.")

    @model_validator(mode="after")
    def validate_one_of(self) -> Self:
        if (self.tool_call is None) == (self.answer is None):
            msg = "Provide either a tool_call or an answer, not both."
            raise ValueError(msg)
        return self


def format_tool_schemas(tools: list[Tool]) -> str:
    return "\n".join([tool.model_dump_json(indent=1, exclude={"outputSchema", "meta", "annotations", "title"}) for tool in tools])


def split_text(text: str) -> list[str]:
    """Split an answer into word-sized fragments that concatenate back to the answer."""

    return TEXT_FRAGMENT_PATTERN.findall(text)


def tool_result_message(tool_call_id: str, tool_call: AgentToolCall, result: Any) -> SamplingMessage:  # pyright: ignore[reportAny]
    return new_sampling_message(
        "user",
        f"""# Tool Call `{tool_call.tool_name}`: id:{tool_call_id}
## Results
``````yaml
{dump_yaml(result)}
``````
""",
    )


class RepositoryChatAgent:
    """Answers questions about one repository, calling tools one at a time."""

    def __init__(
        self,
        generator: TextGenerator,
        tool_caller: ToolCaller,
        max_steps: int | None = None,
        decision_retries: int = DEFAULT_DECISION_RETRIES,
        logger: Logger | None = None,
    ):
        self.generator: TextGenerator = generator
        self.tool_caller: ToolCaller = tool_caller
        self.max_steps: int = max_steps if max_steps is not None else get_max_steps()
        self.decision_retries: int = decision_retries
        self.logger: Logger = logger or get_logger(name=__name__)

    async def stream(self, messages: Sequence[ChatMessage], owner: str, repo: str) -> AsyncIterator[Frame]:
        """Run one turn, yielding frames in the order they happen. The last frame is always a final StreamEnd."""

        yield MessageBoundary(message_id=f"msg-{uuid4().hex}")

        finish_reason: str = FINISH_REASON_STOP

        try:
            async for frame in self._run_steps(messages=messages, owner=owner, repo=repo):
                yield frame
        except Exception:
            self.logger.exception(f"Chat turn for {owner}/{repo} failed.")
            finish_reason = FINISH_REASON_ERROR

        yield StreamEnd(final=True, finish_reason=finish_reason)

    async def _run_steps(self, messages: Sequence[ChatMessage], owner: str, repo: str) -> AsyncIterator[Frame]:
        system_prompt: str = build_system_prompt(owner=owner, repo=repo)

        tools: list[Tool] = await self.tool_caller.list_tools()

        history: list[SamplingMessage] = [new_sampling_message(message.role, message.content) for message in messages]

        for step in range(self.max_steps):
            decision: AgentStep = await self._decide(system_prompt=system_prompt, history=history, tools=tools)

            if decision.answer is not None:
                for frame in self._answer_frames(decision.answer):
                    yield frame
                return

            tool_call: AgentToolCall = decision.tool_call  # pyright: ignore[reportAssignmentType]
            tool_call_id: str = f"call-{uuid4().hex[:12]}"

            self.logger.info(f"Step {step + 1} of {self.max_steps}: calling tool {tool_call.tool_name}.")

            yield ToolCallStart(tool_call_id=tool_call_id, tool_name=tool_call.tool_name, args=tool_call.arguments)

            result = await self.tool_caller.call_tool(name=tool_call.tool_name, arguments=tool_call.arguments)  # pyright: ignore[reportAny]

            yield ToolCallResult(tool_call_id=tool_call_id, result=result)
            yield StreamEnd(final=False, finish_reason=FINISH_REASON_TOOL_CALLS)

            history.append(new_sampling_message("assistant", AgentStep(tool_call=tool_call).model_dump_json(exclude_none=True)))
            history.append(tool_result_message(tool_call_id=tool_call_id, tool_call=tool_call, result=result))

        self.logger.info(f"Used all {self.max_steps} steps, asking for a final answer.")

        answer: str = await self.generator.generate(
            [*history, new_sampling_message("user", FINAL_ANSWER_INSTRUCTIONS)],
            system_prompt=system_prompt,
        )

        for frame in self._answer_frames(answer):
            yield frame

    async def _decide(self, system_prompt: str, history: list[SamplingMessage], tools: list[Tool]) -> AgentStep:
        instructions: str = f"""
The following tools are available to call:
``````json
{format_tool_schemas(tools)}
``````

Decide whether to call one tool or to answer the user.
{object_in_text_instructions(AgentStep)}
"""

        prompt: list[SamplingMessage] = [*history, new_sampling_message("user", instructions)]

        for attempt in range(self.decision_retries):
            text: str = await self.generator.generate(prompt, system_prompt=system_prompt)

            try:
                return extract_single_object_from_text(text=text, object_type=AgentStep)
            except ValidationError as e:
                self.logger.warning(f"Attempt {attempt + 1} returned an invalid decision: {e}")
                prompt = [*prompt, new_sampling_message("assistant", text), new_sampling_message("user", f"That response was invalid: {e}")]
            except ValueError:
                # Text without exactly one JSON object block is the answer, code blocks included.
                return AgentStep(answer=text)

        msg = f"The model did not return a valid decision after {self.decision_retries} attempts."
        raise ValueError(msg)

    def _answer_frames(self, answer: str) -> list[Frame]:
        return [*(TextDelta(text=fragment) for fragment in split_text(answer)), StreamEnd(final=False, finish_reason=FINISH_REASON_STOP)]
