import asyncio
import os
from collections.abc import Awaitable, Callable, Sequence
from logging import Logger, getLogger
from typing import Any, Literal, overload

from githubkit import GitHub as GitHubKit
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse
from githubkit.retry import RetryChainDecision, RetryRateLimit, RetryServerError
from pydantic import BaseModel

from github_repo_agent.clients.errors.github import RequestError, ResourceNotFoundError
from github_repo_agent.clients.models.github import Commit, Contributor, GitHubUser, Repository

NOT_FOUND_ERROR = 404

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]

DEFAULT_COMMITS_LIMIT = 100
DEFAULT_CONTRIBUTORS_LIMIT = 20


def extract_response[T: GITHUBKIT_RESPONSE_TYPE](response: GitHubKitResponse[T], /) -> T:
    """Extract the response from a response."""

    return response.parsed_data


def get_github_token() -> str:
    env_vars: set[str] = {"GITHUB_TOKEN", "GITHUB_PERSONAL_ACCESS_TOKEN"}
    for env_var in env_vars:
        if env_var in os.environ:
            return os.environ[env_var]
    msg = "GITHUB_TOKEN or GITHUB_PERSONAL_ACCESS_TOKEN must be set"
    raise ValueError(msg)


def get_githubkit_client() -> GitHubKit[Any]:
    # Retry server errors up to 3 times
    retry_server_error = RetryServerError()

    # Retry rate limit errors up to 3 times
    retry_rate_limit = RetryRateLimit(max_retry=3)

    retry_chain = RetryChainDecision(
        retry_server_error,
        retry_rate_limit,
    )

    return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=get_github_token()), auto_retry=retry_chain)


class GitHubRepoClient:
    """Fetches repository metadata, commits, contributors and users from the GitHub REST API."""

    githubkit_client: GitHubKit[Any]
    logger: Logger

    log_requests: bool
    log_responses: bool
    log_on_error: bool

    def __init__(
        self,
        githubkit_client: GitHubKit[Any] | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
        log_on_error: bool = True,
    ):
        self.githubkit_client = githubkit_client or get_githubkit_client()
        self.logger = logger or getLogger(__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_on_error = log_on_error

    def _get_loggers(
        self, log_request: bool | None = None, log_response: bool | None = None, log_on_error: bool | None = None
    ) -> tuple[Callable[[str], Any], Callable[[str], Any], Callable[[BaseException | str], Any]]:
        request_logger = self.logger.info if log_request or self.log_requests else self.logger.debug
        response_logger = self.logger.info if log_response or self.log_responses else self.logger.debug
        error_logger = self.logger.exception if log_on_error or self.log_on_error else self.logger.debug
        return request_logger, response_logger, error_logger

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[False] = False,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None: ...

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[True] = True,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T: ...

    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: bool | None = None,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None:
        """Perform a request and extract the response.

        Args:
            action: The action being performed.
            log_request: Whether to log the request.
            log_response: Whether to log the response.
            log_on_error: Whether to log on error.
            error_on_not_found: Whether to raise an error if the resource is not found.

        Raises:
            ResourceNotFoundError: If the resource is not found and error_on_not_found is True.
            RequestError: If the request fails.
        """

        request_logger, response_logger, error_logger = self._get_loggers(
            log_request=log_request, log_response=log_response, log_on_error=log_on_error
        )

        request_logger(f"Performing {action} using {method.__name__} with kwargs {request_args}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                if error_on_not_found:
                    raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

                return None

            error_logger(f"RequestFailed error performing {action} using {method.__name__} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e
        except GitHubKitGitHubException as e:
            error_logger(f"Error performing {action} using {method.__name__} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e

        extracted_response = extract_response(response)

        response_logger(f"Extracted response for {action} using {method.__name__} with kwargs {request_args}: {extracted_response}")

        return extracted_response

    @overload
    async def get_repository(self, owner: str, repo: str, error_on_not_found: Literal[True] = True) -> Repository: ...

    @overload
    async def get_repository(self, owner: str, repo: str, error_on_not_found: Literal[False] = False) -> Repository | None: ...

    async def get_repository(self, owner: str, repo: str, error_on_not_found: bool = False) -> Repository | None:
        """Get a repository."""

        if githubkit_repository := await self._perform_rest_request(
            action="Get repository",
            error_on_not_found=error_on_not_found,
            method=self.githubkit_client.rest.repos.async_get,
            owner=owner,
            repo=repo,
        ):
            return Repository.from_full_repository(full_repository=githubkit_repository)

        return None

    async def get_commits(self, owner: str, repo: str, per_page: int = DEFAULT_COMMITS_LIMIT) -> list[Commit]:
        """Get the most recent commits on the default branch of a repository."""

        githubkit_commits = await self._perform_rest_request(
            action="Get commits",
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_list_commits,
            owner=owner,
            repo=repo,
            per_page=per_page,
        )

        return [Commit.from_commit(commit=commit) for commit in githubkit_commits]

    async def get_contributors(self, owner: str, repo: str, per_page: int = DEFAULT_CONTRIBUTORS_LIMIT) -> list[Contributor]:
        """Get the top contributors of a repository."""

        githubkit_contributors = await self._perform_rest_request(
            action="Get contributors",
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_list_contributors,
            owner=owner,
            repo=repo,
            per_page=per_page,
        )

        return [Contributor.from_contributor(contributor=contributor) for contributor in githubkit_contributors]

    async def get_user(self, username: str) -> GitHubUser:
        """Get the public profile of a GitHub user."""

        githubkit_user = await self._perform_rest_request(
            action="Get user",
            error_on_not_found=True,
            method=self.githubkit_client.rest.users.async_get_by_username,
            username=username,
        )

        return GitHubUser.from_user(user=githubkit_user)

    async def get_repository_snapshot(
        self,
        owner: str,
        repo: str,
        commits_limit: int = DEFAULT_COMMITS_LIMIT,
        contributors_limit: int = DEFAULT_CONTRIBUTORS_LIMIT,
    ) -> tuple[Repository, list[Commit], list[Contributor]]:
        """Get the repository, its recent commits and its top contributors concurrently."""

        repository, commits, contributors = await asyncio.gather(
            self.get_repository(owner=owner, repo=repo, error_on_not_found=True),
            self.get_commits(owner=owner, repo=repo, per_page=commits_limit),
            self.get_contributors(owner=owner, repo=repo, per_page=contributors_limit),
        )

        return repository, commits, contributors
