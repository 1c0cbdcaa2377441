import asyncio
import os
from logging import Logger
from typing import Any, Protocol

from fastmcp.client import Client
from fastmcp.client.client import CallToolResult
from fastmcp.utilities.logging import get_logger
from mcp.types import TextContent, Tool

DEFAULT_TOOL_TIMEOUT_SECONDS = 30.0


def get_tool_timeout() -> float:
    return float(os.getenv("TOOL_TIMEOUT_SECONDS", str(DEFAULT_TOOL_TIMEOUT_SECONDS)))


class ToolCaller(Protocol):
    async def list_tools(self) -> list[Tool]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any: ...  # pyright: ignore[reportAny]


def result_from_call_tool_result(call_tool_result: CallToolResult) -> Any:  # pyright: ignore[reportAny]
    """Reduce a tool call result to the JSON value the agent and the chat stream work with."""

    if call_tool_result.is_error:
        text = "\n".join(block.text for block in call_tool_result.content if isinstance(block, TextContent))
        return {"ok": False, "message": text or "The tool call failed."}

    if (structured_content := call_tool_result.structured_content) is not None:
        # Non-object return values are wrapped by fastmcp under a `result` key.
        if set(structured_content) == {"result"}:
            return structured_content["result"]  # pyright: ignore[reportAny]

        return structured_content

    return {"result": [content_block.model_dump(mode="json") for content_block in call_tool_result.content]}


class FastMCPToolCaller:
    """Calls the tools of a FastMCP server through a client, bounding every call with a timeout."""

    def __init__(self, client: Client[Any], timeout: float | None = None, logger: Logger | None = None):
        self.client: Client[Any] = client
        self.timeout: float = timeout if timeout is not None else get_tool_timeout()
        self.logger: Logger = logger or get_logger(name=__name__)

    async def list_tools(self) -> list[Tool]:
        async with self.client as connected_client:
            return await connected_client.list_tools()

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:  # pyright: ignore[reportAny]
        self.logger.info(f"Calling tool {name} with arguments {arguments}.")

        try:
            async with self.client as connected_client, asyncio.timeout(self.timeout):
                call_tool_result: CallToolResult = await connected_client.call_tool(name=name, arguments=arguments, raise_on_error=False)
        except TimeoutError:
            self.logger.warning(f"Tool {name} did not complete within {self.timeout} seconds.")
            return {"ok": False, "message": f"The tool {name} did not complete within {self.timeout} seconds."}

        return result_from_call_tool_result(call_tool_result)
