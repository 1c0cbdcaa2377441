from logging import Logger
from typing import Literal

import click
from fastmcp import Client, FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import get_logger

from github_repo_agent.agents.chat import RepositoryChatAgent
from github_repo_agent.agents.tools import FastMCPToolCaller
from github_repo_agent.analysis.metrics import RepoMetricsAggregator
from github_repo_agent.clients.github import GitHubRepoClient
from github_repo_agent.persistence.analysis import AnalysisPersistence
from github_repo_agent.persistence.store import MemoryStore, get_memory_store
from github_repo_agent.sampling.handler import get_sampling_handler, get_text_generator
from github_repo_agent.servers.analysis import AnalysisServer
from github_repo_agent.servers.chat import ChatServer
from github_repo_agent.servers.memory import MemoryServer
from github_repo_agent.servers.repository import RepositoryServer
from github_repo_agent.workflows.analysis import RepositoryAnalysisWorkflow
from github_repo_agent.workflows.campaign import EmailCampaignPipeline

logger: Logger = get_logger(name=__name__)


def new_mcp_server(github_client: GitHubRepoClient | None = None, store: MemoryStore | None = None) -> FastMCP[None]:
    """Build the server: the GitHub and memory tools, the analysis tool and the `/api/chat` route."""

    sampling_handler = get_sampling_handler()

    mcp: FastMCP[None] = FastMCP[None](name="GitHub Repo Agent", sampling_handler=sampling_handler)

    mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

    repository_server: RepositoryServer = RepositoryServer(github_client=github_client, logger=logger)
    memory_server: MemoryServer = MemoryServer(store=store or get_memory_store(), logger=logger)

    _ = repository_server.register_tools(fastmcp=mcp)
    _ = memory_server.register_tools(fastmcp=mcp)

    # The chat agent only sees the lookup and memory tools.
    agent_tools: FastMCP[None] = FastMCP[None](name="GitHub Repo Agent Tools")
    _ = repository_server.register_tools(fastmcp=agent_tools)
    _ = memory_server.register_tools(fastmcp=agent_tools)

    def new_chat_agent() -> RepositoryChatAgent:
        return RepositoryChatAgent(
            generator=get_text_generator(sampling_handler=sampling_handler),
            tool_caller=FastMCPToolCaller(client=Client(agent_tools), logger=logger),
            logger=logger,
        )

    def new_analysis_workflow() -> RepositoryAnalysisWorkflow:
        return RepositoryAnalysisWorkflow(
            repository_server=repository_server,
            pipeline=EmailCampaignPipeline(generator=get_text_generator(sampling_handler=sampling_handler), logger=logger),
            persistence=AnalysisPersistence(store=memory_server.store, logger=logger),
            aggregator=RepoMetricsAggregator(),
            logger=logger,
        )

    _ = AnalysisServer(workflow_factory=new_analysis_workflow, logger=logger).register_tools(fastmcp=mcp)
    _ = ChatServer(agent_factory=new_chat_agent, logger=logger).register_routes(fastmcp=mcp)

    return mcp


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"]):
    mcp = new_mcp_server()
    mcp.run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()
