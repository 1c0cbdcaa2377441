import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from mcp.types import Tool

from github_repo_agent.clients.errors.github import ResourceNotFoundError
from github_repo_agent.clients.models.github import Commit, CommitAuthor, Contributor, GitHubUser, Repository, RepositoryLicense
from github_repo_agent.persistence.store import InMemoryStore
from github_repo_agent.sampling.generator import Prompt

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


def new_repository(**overrides: Any) -> Repository:  # pyright: ignore[reportAny]
    fields: dict[str, Any] = {
        "name": "widget",
        "full_name": "acme/widget",
        "description": "Widgets for everyone",
        "url": "https://github.com/acme/widget",
        "stars": 0,
        "forks": 0,
        "watchers": 0,
        "topics": ["widgets", "acme"],
        "license": RepositoryLicense(key="mit", name="MIT License"),
    }
    fields.update(overrides)
    return Repository(**fields)  # pyright: ignore[reportAny]


def new_author(name: str, email: str | None = None, username: str | None = None) -> CommitAuthor:
    return CommitAuthor(name=name, email=email or f"{name.lower()}@example.com", username=username)


def new_commit(sha: str, author: CommitAuthor, hours_ago: float | None = 1.0, verified: bool = False) -> Commit:
    return Commit(
        sha=sha,
        message=f"Commit {sha}",
        date=NOW - timedelta(hours=hours_ago) if hours_ago is not None else None,
        author=author,
        verified=verified,
    )


def new_contributor(username: str, contributions: int = 1) -> Contributor:
    return Contributor(username=username, contributions=contributions)


@pytest.fixture
def alice() -> CommitAuthor:
    return new_author(name="Alice", username="alice")


@pytest.fixture
def bob() -> CommitAuthor:
    return new_author(name="Bob", email="bob@widgets.dev", username="bob")


@pytest.fixture
def carol() -> CommitAuthor:
    return new_author(name="Carol", email="carol@acme.io")


@pytest.fixture
def acme_widget_commits(alice: CommitAuthor, bob: CommitAuthor) -> list[Commit]:
    return [
        new_commit(sha="c1", author=alice, hours_ago=2, verified=True),
        new_commit(sha="c2", author=bob, hours_ago=72, verified=True),
        new_commit(sha="c3", author=alice, hours_ago=400),
    ]


class FakeGenerator:
    """Replays scripted responses, or calls a responder with the rendered prompt."""

    def __init__(self, responses: list[str | Exception] | None = None, responder: Callable[[str], str] | None = None):
        self.responses: list[str | Exception] = list(responses or [])
        self.responder: Callable[[str], str] | None = responder
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        prompt: Prompt,
        *,
        system_prompt: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.0,
    ) -> str:
        text: str = prompt if isinstance(prompt, str) else "\n".join(str(message.content.text) for message in prompt)  # pyright: ignore[reportAttributeAccessIssue]

        self.calls.append({"prompt": text, "system_prompt": system_prompt, "temperature": temperature})

        if self.responder is not None:
            return self.responder(text)

        response: str | Exception = self.responses.pop(0)

        if isinstance(response, Exception):
            raise response

        return response


class FakeGitHubClient:
    def __init__(
        self,
        repository: Repository | None = None,
        commits: list[Commit] | None = None,
        contributors: list[Contributor] | None = None,
        users: dict[str, GitHubUser] | None = None,
    ):
        self.repository: Repository | None = repository
        self.commits: list[Commit] = commits or []
        self.contributors: list[Contributor] = contributors or []
        self.users: dict[str, GitHubUser] = users or {}

    async def get_repository_snapshot(
        self, owner: str, repo: str, commits_limit: int = 100, contributors_limit: int = 20
    ) -> tuple[Repository, list[Commit], list[Contributor]]:
        if self.repository is None:
            raise ResourceNotFoundError(action=f"Get repository {owner}/{repo}", resource=f"{owner}/{repo}")

        return self.repository, self.commits[:commits_limit], self.contributors[:contributors_limit]

    async def get_commits(self, owner: str, repo: str, per_page: int = 100) -> list[Commit]:
        if self.repository is None:
            raise ResourceNotFoundError(action=f"List commits of {owner}/{repo}", resource=f"{owner}/{repo}")

        return self.commits[:per_page]

    async def get_user(self, username: str) -> GitHubUser:
        if username not in self.users:
            raise ResourceNotFoundError(action=f"Get user {username}", resource=username)

        return self.users[username]


class FailingStore(InMemoryStore):
    def __init__(self, acknowledgement: Any = None, error: Exception | None = None):  # pyright: ignore[reportAny]
        super().__init__()
        self.acknowledgement: Any = acknowledgement  # pyright: ignore[reportAny]
        self.error: Exception | None = error

    async def memorize(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        if self.error is not None:
            raise self.error

        return self.acknowledgement  # pyright: ignore[reportAny]


class FakeToolCaller:
    def __init__(self, results: dict[str, Any] | None = None, tools: list[Tool] | None = None):
        self.results: dict[str, Any] = results or {}
        self.tools: list[Tool] = tools or [
            Tool(
                name="get_repository_info",
                description="Get comprehensive repository information including commits and contributors.",
                inputSchema={"type": "object", "properties": {"owner": {"type": "string"}, "repo": {"type": "string"}}},
            )
        ]
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def list_tools(self) -> list[Tool]:
        return self.tools

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:  # pyright: ignore[reportAny]
        self.calls.append((name, arguments))
        return self.results.get(name, {"ok": False, "message": f"Unknown tool {name}"})


def tool_call_response(tool_name: str, arguments: dict[str, Any]) -> str:
    return f"""```json
{json.dumps({"tool_call": {"tool_name": tool_name, "arguments": arguments}})}
```"""
