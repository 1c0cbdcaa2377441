from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger

from github_repo_agent.clients.github import DEFAULT_COMMITS_LIMIT, DEFAULT_CONTRIBUTORS_LIMIT, GitHubRepoClient
from github_repo_agent.servers.models import GitHubUserInfo, RepositoryCommits, RepositoryInfo, ToolFailure
from github_repo_agent.servers.shared.annotations import OWNER, PER_PAGE, REPO, USERNAME

DEFAULT_COMMITS_PER_PAGE = 30


class RepositoryServer:
    """GitHub lookup tools. Failures are returned as `ok: false` results instead of being raised."""

    github_client: GitHubRepoClient
    logger: Logger

    def __init__(self, github_client: GitHubRepoClient | None = None, logger: Logger | None = None):
        self.logger = logger or get_logger(name=__name__)
        self.github_client = github_client or GitHubRepoClient()

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_repository_info))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_repository_commits))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_github_user))

        return fastmcp

    async def get_repository_info(self, owner: OWNER, repo: REPO) -> RepositoryInfo | ToolFailure:
        """Get comprehensive repository information including commits and contributors."""

        try:
            repository, commits, contributors = await self.github_client.get_repository_snapshot(
                owner=owner, repo=repo, commits_limit=DEFAULT_COMMITS_LIMIT, contributors_limit=DEFAULT_CONTRIBUTORS_LIMIT
            )
        except Exception as e:
            self.logger.warning(f"Error fetching repository information for {owner}/{repo}: {e}")
            return ToolFailure(message=str(e) or "Unknown error occurred")

        return RepositoryInfo(repository=repository, commits=commits, contributors=contributors)

    async def get_repository_commits(
        self, owner: OWNER, repo: REPO, per_page: PER_PAGE = DEFAULT_COMMITS_PER_PAGE
    ) -> RepositoryCommits | ToolFailure:
        """Get the most recent commits of a repository, including their authors and whether they are verified."""

        try:
            commits = await self.github_client.get_commits(owner=owner, repo=repo, per_page=per_page)
        except Exception as e:
            self.logger.warning(f"Error fetching commits for {owner}/{repo}: {e}")
            return ToolFailure(message=str(e) or "Unknown error occurred")

        return RepositoryCommits(commits=commits)

    async def get_github_user(self, username: USERNAME) -> GitHubUserInfo | ToolFailure:
        """Get the public profile of a GitHub user."""

        try:
            user = await self.github_client.get_user(username=username)
        except Exception as e:
            self.logger.warning(f"Error fetching GitHub user {username}: {e}")
            return ToolFailure(message=str(e) or "Unknown error occurred")

        return GitHubUserInfo(user=user)
