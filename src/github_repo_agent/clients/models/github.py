from datetime import datetime
from typing import Self

from githubkit.versions.v2022_11_28.models import Commit as GitHubKitCommit
from githubkit.versions.v2022_11_28.models import Contributor as GitHubKitContributor
from githubkit.versions.v2022_11_28.models import FullRepository as GitHubKitFullRepository
from githubkit.versions.v2022_11_28.models import LicenseSimple as GitHubKitLicenseSimple
from githubkit.versions.v2022_11_28.models import PrivateUser as GitHubKitPrivateUser
from githubkit.versions.v2022_11_28.models import PublicUser as GitHubKitPublicUser
from githubkit.versions.v2022_11_28.models import SimpleUser as GitHubKitSimpleUser
from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_AUTHOR_NAME = "Unknown"
UNKNOWN_AUTHOR_EMAIL = "unknown"


class RepositoryLicense(BaseModel):
    """A repository license."""

    key: str = Field(description="The SPDX-like key of the license.")
    name: str = Field(description="The name of the license.")
    url: str | None = Field(default=None, description="The URL of the license.")

    @classmethod
    def from_license_simple(cls, license_simple: GitHubKitLicenseSimple) -> Self:
        return cls(key=license_simple.key, name=license_simple.name, url=license_simple.url)


class Repository(BaseModel):
    """A repository."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="The name of the repository.")
    full_name: str = Field(description="The owner/name of the repository.")
    description: str | None = Field(default=None, description="The description of the repository.")
    url: str = Field(description="The URL of the repository.")
    stars: int = Field(default=0, description="The number of stars the repository has.")
    forks: int = Field(default=0, description="The number of forks of the repository.")
    watchers: int = Field(default=0, description="The number of watchers of the repository.")
    open_issues: int = Field(default=0, description="The number of open issues of the repository.")
    language: str | None = Field(default=None, description="The language of the repository.")
    topics: list[str] = Field(default_factory=list, description="The topics of the repository.")
    size: int = Field(default=0, description="The size of the repository in kilobytes.")
    default_branch: str = Field(default="main", description="The default branch of the repository.")
    visibility: str = Field(default="public", description="The visibility of the repository.")
    archived: bool = Field(default=False, description="Whether the repository is archived.")
    disabled: bool = Field(default=False, description="Whether the repository is disabled.")
    license: RepositoryLicense | None = Field(default=None, description="The license information of the repository.")
    created_at: datetime | None = Field(default=None, description="The date and time the repository was created.")
    updated_at: datetime | None = Field(default=None, description="The date and time the repository was updated.")
    pushed_at: datetime | None = Field(default=None, description="The date and time the repository was pushed to.")

    @classmethod
    def from_full_repository(cls, full_repository: GitHubKitFullRepository) -> Self:
        repository_license = (
            RepositoryLicense.from_license_simple(license_simple=full_repository.license_) if full_repository.license_ else None
        )
        return cls(
            name=full_repository.name,
            full_name=full_repository.full_name,
            description=full_repository.description,
            url=full_repository.html_url,
            stars=full_repository.stargazers_count,
            forks=full_repository.forks_count,
            watchers=full_repository.watchers_count,
            open_issues=full_repository.open_issues_count,
            language=full_repository.language,
            topics=full_repository.topics or [],
            size=full_repository.size,
            default_branch=full_repository.default_branch,
            visibility=full_repository.visibility or "public",
            archived=full_repository.archived,
            disabled=full_repository.disabled,
            license=repository_license,
            created_at=full_repository.created_at,
            updated_at=full_repository.updated_at,
            pushed_at=full_repository.pushed_at,
        )


class CommitAuthor(BaseModel):
    """The author of a commit, as recorded in git and, if linked, on GitHub."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The name of the author.")
    email: str = Field(description="The email of the author.")
    username: str | None = Field(default=None, description="The GitHub username of the author.")
    avatar_url: str | None = Field(default=None, description="The URL of the author's avatar.")
    url: str | None = Field(default=None, description="The URL of the author's profile.")

    @property
    def identity(self) -> str:
        """The username when GitHub linked the commit to an account, otherwise the email."""
        return self.username or self.email

    @property
    def has_name(self) -> bool:
        return bool(self.name.strip()) and self.name != UNKNOWN_AUTHOR_NAME


class Commit(BaseModel):
    """A commit from the history of the default branch."""

    model_config = ConfigDict(frozen=True)

    sha: str = Field(description="The SHA hash of the commit.")
    message: str = Field(description="The commit message.")
    date: datetime | None = Field(default=None, description="The date of the commit.")
    url: str | None = Field(default=None, description="The URL to view the commit.")
    author: CommitAuthor = Field(description="The commit author information.")
    verified: bool = Field(default=False, description="Whether the commit signature is verified.")

    @classmethod
    def from_commit(cls, commit: GitHubKitCommit) -> Self:
        git_author = commit.commit.author
        git_committer = commit.commit.committer

        github_user: GitHubKitSimpleUser | None = None
        for candidate in (commit.author, commit.committer):
            if isinstance(candidate, GitHubKitSimpleUser):
                github_user = candidate
                break

        verification = commit.commit.verification

        return cls(
            sha=commit.sha,
            message=commit.commit.message,
            date=(git_author.date if git_author else None) or (git_committer.date if git_committer else None) or None,
            url=commit.html_url,
            author=CommitAuthor(
                name=(git_author.name if git_author else None) or (git_committer.name if git_committer else None) or UNKNOWN_AUTHOR_NAME,
                email=(git_author.email if git_author else None)
                or (git_committer.email if git_committer else None)
                or UNKNOWN_AUTHOR_EMAIL,
                username=github_user.login if github_user else None,
                avatar_url=github_user.avatar_url if github_user else None,
                url=github_user.html_url if github_user else None,
            ),
            verified=bool(verification and verification.verified),
        )


class Contributor(BaseModel):
    """A contributor to a repository."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(description="The GitHub username of the contributor.")
    contributions: int = Field(description="The number of contributions to the repository.")
    avatar_url: str | None = Field(default=None, description="The URL of the contributor's avatar.")
    url: str | None = Field(default=None, description="The URL of the contributor's profile.")

    @classmethod
    def from_contributor(cls, contributor: GitHubKitContributor) -> Self:
        return cls(
            username=contributor.login or UNKNOWN_AUTHOR_NAME,
            contributions=contributor.contributions,
            avatar_url=contributor.avatar_url or None,
            url=contributor.html_url or None,
        )


class GitHubUser(BaseModel):
    """A public GitHub profile."""

    username: str = Field(description="The GitHub username.")
    name: str | None = Field(default=None, description="The display name of the user.")
    company: str | None = Field(default=None, description="The company of the user.")
    blog: str | None = Field(default=None, description="The blog or website of the user.")
    location: str | None = Field(default=None, description="The location of the user.")
    email: str | None = Field(default=None, description="The public email of the user.")
    bio: str | None = Field(default=None, description="The bio of the user.")
    public_repos: int = Field(default=0, description="The number of public repositories of the user.")
    followers: int = Field(default=0, description="The number of followers of the user.")
    url: str = Field(description="The URL of the user's profile.")

    @classmethod
    def from_user(cls, user: GitHubKitPublicUser | GitHubKitPrivateUser) -> Self:
        return cls(
            username=user.login,
            name=user.name,
            company=user.company,
            blog=user.blog,
            location=user.location,
            email=user.email,
            bio=user.bio,
            public_repos=user.public_repos,
            followers=user.followers,
            url=user.html_url,
        )
