"""Commit aggregation and repository health scoring.

    activity      = min(100, (last_24h * 30 + last_week * 10 + last_month * 2) / 10)
    community     = min(100, (stars * 0.5 + forks * 2 + watchers + contributors * 5) / 10)
    maintenance   = min(100, verified_ratio * 40 + 30 * (not archived) + 30 * (not disabled))
    documentation = min(100, 30 * has_description + 10 * topics + 30 * has_license)
    total         = round(mean(activity, community, maintenance, documentation))

The reported sub-scores are each rounded, and the total is taken from the unrounded mean.

Rounding is half-up.
"""

import math
from collections.abc import Sequence
from datetime import UTC, datetime

from github_repo_agent.analysis.models import CommitAnalysis, HealthScore, RecentActivity, RepositoryAnalysis
from github_repo_agent.clients.models.github import Commit, Contributor, Repository

SECONDS_PER_HOUR = 3600

LAST_24_HOURS = 24
LAST_WEEK_HOURS = 168
LAST_MONTH_HOURS = 720

MAX_SCORE = 100.0
MIN_SCORE = 0.0


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp_score(value: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def hours_since(moment: datetime, now: datetime) -> float:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)

    return (now - moment).total_seconds() / SECONDS_PER_HOUR


def count_recent_activity(commits: Sequence[Commit], now: datetime) -> RecentActivity:
    last_24_hours = last_week = last_month = 0

    for commit in commits:
        if commit.date is None:
            continue

        hours: float = hours_since(commit.date, now)

        if hours <= LAST_24_HOURS:
            last_24_hours += 1
        if hours <= LAST_WEEK_HOURS:
            last_week += 1
        if hours <= LAST_MONTH_HOURS:
            last_month += 1

    return RecentActivity(last_24_hours=last_24_hours, last_week=last_week, last_month=last_month)


def analyze_commits(commits: Sequence[Commit], now: datetime) -> CommitAnalysis:
    commits_by_author: dict[str, int] = {}

    for commit in commits:
        identity: str = commit.author.identity
        commits_by_author[identity] = commits_by_author.get(identity, 0) + 1

    return CommitAnalysis(
        total_commits=len(commits),
        unique_authors=len(commits_by_author),
        verified_commits=sum(1 for commit in commits if commit.verified),
        commits_by_author=commits_by_author,
        recent_activity=count_recent_activity(commits, now),
    )


def activity_score(recent_activity: RecentActivity) -> float:
    return clamp_score((recent_activity.last_24_hours * 30 + recent_activity.last_week * 10 + recent_activity.last_month * 2) / 10)


def community_score(repository: Repository, contributor_count: int) -> float:
    return clamp_score((repository.stars * 0.5 + repository.forks * 2 + repository.watchers * 1 + contributor_count * 5) / 10)


def maintenance_score(verified_commits: int, total_commits: int, archived: bool, disabled: bool) -> float:
    verified_ratio: float = verified_commits / total_commits if total_commits else 0.0

    return clamp_score(verified_ratio * 40 + (0 if archived else 30) + (0 if disabled else 30))


def documentation_score(repository: Repository) -> float:
    return clamp_score((30 if repository.description else 0) + len(repository.topics) * 10 + (30 if repository.license else 0))


def compute_health_score(repository: Repository, commit_analysis: CommitAnalysis, contributor_count: int) -> HealthScore:
    activity: float = activity_score(commit_analysis.recent_activity)
    community: float = community_score(repository, contributor_count)
    maintenance: float = maintenance_score(
        verified_commits=commit_analysis.verified_commits,
        total_commits=commit_analysis.total_commits,
        archived=repository.archived,
        disabled=repository.disabled,
    )
    documentation: float = documentation_score(repository)

    return HealthScore(
        total=round_half_up((activity + community + maintenance + documentation) / 4),
        activity=round_half_up(activity),
        community=round_half_up(community),
        maintenance=round_half_up(maintenance),
        documentation=round_half_up(documentation),
    )


class RepoMetricsAggregator:
    """Builds the analysis of a repository from its metadata, recent commits and top contributors."""

    def aggregate(
        self,
        repository: Repository,
        commits: Sequence[Commit],
        contributors: Sequence[Contributor],
        now: datetime | None = None,
    ) -> RepositoryAnalysis:
        now = now or datetime.now(tz=UTC)

        commit_analysis: CommitAnalysis = analyze_commits(commits, now)

        return RepositoryAnalysis(
            repository=repository,
            contributors=list(contributors),
            commit_analysis=commit_analysis,
            health_score=compute_health_score(repository, commit_analysis, contributor_count=len(contributors)),
            analyzed_at=now,
        )
