from typing import Any, Literal

from pydantic import BaseModel, Field

from github_repo_agent.clients.models.github import Commit, Contributor, GitHubUser, Repository


class ToolFailure(BaseModel):
    """The tool could not complete the request."""

    ok: Literal[False] = False
    message: str = Field(description="Why the request failed.")


class RepositoryInfo(BaseModel):
    ok: Literal[True] = True
    repository: Repository = Field(description="The repository metadata.")
    commits: list[Commit] = Field(description="The most recent commits, newest first.")
    contributors: list[Contributor] = Field(description="The top contributors.")


class RepositoryCommits(BaseModel):
    ok: Literal[True] = True
    commits: list[Commit] = Field(description="The most recent commits, newest first.")


class GitHubUserInfo(BaseModel):
    ok: Literal[True] = True
    user: GitHubUser = Field(description="The public profile of the user.")


class Memory(BaseModel):
    ok: Literal[True] = True
    key: str = Field(description="The key the memory is stored under.")
    data: dict[str, Any] = Field(description="The memorized JSON object.")
