from typing import Any

import pytest
from fastmcp import FastMCP
from fastmcp.client import Client

from github_repo_agent.agents.tools import FastMCPToolCaller
from github_repo_agent.persistence.store import InMemoryStore
from github_repo_agent.servers.memory import MemoryServer
from github_repo_agent.servers.models import Memory, ToolFailure
from tests.conftest import FailingStore


@pytest.fixture
def memory_server() -> MemoryServer:
    return MemoryServer(store=InMemoryStore())


async def test_memorize_and_remember(memory_server: MemoryServer):
    assert await memory_server.memorize(key="favorite", data={"repo": "acme/widget"}) == {"success": True, "campaignId": "favorite"}
    assert await memory_server.remember(key="favorite") == Memory(key="favorite", data={"repo": "acme/widget"})


async def test_remember_missing_key(memory_server: MemoryServer):
    result = await memory_server.remember(key="missing")

    assert isinstance(result, ToolFailure)
    assert result.message == "Nothing has been memorized under missing."


async def test_memorize_store_failure():
    memory_server = MemoryServer(store=FailingStore(error=ConnectionError("store is down")))

    assert await memory_server.memorize(key="k", data={}) == {"success": False, "campaignId": "k"}


async def test_memory_tools_through_client(memory_server: MemoryServer):
    tool_caller = FastMCPToolCaller(client=Client(memory_server.register_tools(fastmcp=FastMCP[Any](name="test"))))

    assert await tool_caller.call_tool(name="memorize", arguments={"key": "k", "data": {"a": [1, 2]}}) == {"success": True, "campaignId": "k"}
    assert await tool_caller.call_tool(name="remember", arguments={"key": "k"}) == {"ok": True, "key": "k", "data": {"a": [1, 2]}}
