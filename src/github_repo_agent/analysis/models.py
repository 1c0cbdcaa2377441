from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from github_repo_agent.clients.models.github import Contributor, Repository


class RecentActivity(BaseModel):
    """Commit counts within trailing windows. The windows are nested, a commit from today counts in all three."""

    model_config = ConfigDict(frozen=True)

    last_24_hours: int = Field(default=0, description="Commits made in the last 24 hours.")
    last_week: int = Field(default=0, description="Commits made in the last 7 days.")
    last_month: int = Field(default=0, description="Commits made in the last 30 days.")


class CommitAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_commits: int = Field(description="The number of commits analyzed.")
    unique_authors: int = Field(description="The number of distinct commit authors.")
    verified_commits: int = Field(description="The number of commits with a verified signature.")
    commits_by_author: dict[str, int] = Field(description="Commit counts keyed by author username, or email when unlinked.")
    recent_activity: RecentActivity = Field(description="Commit counts within trailing windows.")


class HealthScore(BaseModel):
    """Repository health. Every sub-score is rounded into [0, 100] and `total` is the rounded mean of the unrounded sub-scores."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(description="The rounded mean of the four unrounded sub-scores.")
    activity: int = Field(description="How much recent commit activity the repository has.")
    community: int = Field(description="How large the community around the repository is.")
    maintenance: int = Field(description="How well maintained the repository is.")
    documentation: int = Field(description="How well documented the repository is.")


class RepositoryAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    repository: Repository = Field(description="The repository metadata.")
    contributors: list[Contributor] = Field(description="The top contributors of the repository.")
    commit_analysis: CommitAnalysis = Field(description="Aggregates of the most recent commits.")
    health_score: HealthScore = Field(description="The health score of the repository.")
    analyzed_at: datetime = Field(description="The moment the recency windows were measured from.")
