from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger

from github_repo_agent.persistence.store import MemoryStore, acknowledgement, get_memory_store
from github_repo_agent.servers.models import Memory, ToolFailure
from github_repo_agent.servers.shared.annotations import MEMORY_DATA, MEMORY_KEY


class MemoryServer:
    """Tools to memorize and remember JSON facts by key."""

    def __init__(self, store: MemoryStore | None = None, logger: Logger | None = None):
        self.logger: Logger = logger or get_logger(name=__name__)
        self.store: MemoryStore = store or get_memory_store()

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.memorize))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.remember))

        return fastmcp

    async def memorize(self, key: MEMORY_KEY, data: MEMORY_DATA) -> dict[str, Any]:
        """Memorize a JSON object under a key so it can be remembered in later conversations."""

        try:
            return await self.store.memorize(key=key, data=data)
        except Exception as e:
            self.logger.warning(f"Error memorizing {key}: {e}")
            return acknowledgement(key, success=False)

    async def remember(self, key: MEMORY_KEY) -> Memory | ToolFailure:
        """Remember the JSON object that was memorized under a key."""

        try:
            data = await self.store.remember(key=key)
        except Exception as e:
            self.logger.warning(f"Error remembering {key}: {e}")
            return ToolFailure(message=str(e) or "Unknown error occurred")

        if data is None:
            return ToolFailure(message=f"Nothing has been memorized under {key}.")

        return Memory(key=key, data=data)
