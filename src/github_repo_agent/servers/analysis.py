from collections.abc import Callable
from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger

from github_repo_agent.servers.models import ToolFailure
from github_repo_agent.servers.shared.annotations import OWNER, REPO
from github_repo_agent.workflows.analysis import RepositoryAnalysisWorkflow
from github_repo_agent.workflows.models import AnalysisReport

WorkflowFactory = Callable[[], RepositoryAnalysisWorkflow]


class AnalysisServer:
    """Exposes the repository analysis workflow as a tool."""

    def __init__(self, workflow_factory: WorkflowFactory, logger: Logger | None = None):
        self.workflow_factory: WorkflowFactory = workflow_factory
        self.logger: Logger = logger or get_logger(name=__name__)

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.analyze_repository))

        return fastmcp

    async def analyze_repository(self, owner: OWNER, repo: REPO) -> AnalysisReport | ToolFailure:
        """Analyze the health of a repository, draft outreach emails for its recent commit authors and store the results."""

        try:
            return await self.workflow_factory().run(owner=owner, repo=repo)
        except Exception as e:
            self.logger.exception(f"Analysis of {owner}/{repo} failed.")
            return ToolFailure(message=str(e) or "Unknown error occurred")
