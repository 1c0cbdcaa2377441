"""The repository analysis workflow: authors, emails, health metrics, persistence."""

from datetime import UTC, datetime
from logging import Logger

from fastmcp.utilities.logging import get_logger

from github_repo_agent.analysis.metrics import RepoMetricsAggregator
from github_repo_agent.analysis.models import RepositoryAnalysis
from github_repo_agent.clients.models.github import CommitAuthor
from github_repo_agent.persistence.analysis import AnalysisPersistence, StoreAcknowledgement, campaign_key
from github_repo_agent.servers.models import RepositoryInfo, ToolFailure
from github_repo_agent.servers.repository import RepositoryServer
from github_repo_agent.servers.shared.errors import WorkflowError
from github_repo_agent.workflows.campaign import EmailCampaignPipeline, extract_authors
from github_repo_agent.workflows.models import (
    AnalysisReport,
    Campaign,
    CampaignMetadata,
    CampaignQuery,
    CampaignRecord,
    CampaignRepository,
    CampaignResult,
    CampaignStats,
    ReportSummary,
)


def build_campaign_stats(authors: list[CommitAuthor], result: CampaignResult, generated_at: datetime) -> CampaignStats:
    body_lengths: list[int] = [len(email.body) for email in result.emails]

    unique_domains: list[str] = []
    for email in result.emails:
        if email.domain is not None and email.domain not in unique_domains:
            unique_domains.append(email.domain)

    return CampaignStats(
        total_authors=len(authors),
        total_emails=len(result.emails),
        average_email_length=sum(body_lengths) / len(body_lengths) if body_lengths else 0.0,
        unique_domains=unique_domains,
        generated_at=generated_at,
    )


def build_campaign_record(
    owner: str, repo: str, authors: list[CommitAuthor], result: CampaignResult, analysis: RepositoryAnalysis, now: datetime
) -> CampaignRecord:
    key: str = campaign_key(owner=owner, repo=repo, timestamp_ms=int(now.timestamp() * 1000))

    return CampaignRecord(
        repository=CampaignRepository(owner=owner, name=repo, total_authors=len(authors), processed_at=now),
        campaign=Campaign(
            total_emails=len(result.emails),
            recipients=[email.recipient_email for email in result.emails],
            emails=result.emails,
            generated_at=now,
        ),
        metadata=CampaignMetadata(campaign_id=key, last_updated=now, query=CampaignQuery(owner=owner, repo=repo, timestamp=now)),
        analysis=analysis,
        stats=build_campaign_stats(authors=authors, result=result, generated_at=now),
    )


class RepositoryAnalysisWorkflow:
    """Runs the stages of one analysis strictly in sequence. A persistence failure fails the run."""

    def __init__(
        self,
        repository_server: RepositoryServer,
        pipeline: EmailCampaignPipeline,
        persistence: AnalysisPersistence,
        aggregator: RepoMetricsAggregator | None = None,
        logger: Logger | None = None,
    ):
        self.repository_server: RepositoryServer = repository_server
        self.pipeline: EmailCampaignPipeline = pipeline
        self.persistence: AnalysisPersistence = persistence
        self.aggregator: RepoMetricsAggregator = aggregator or RepoMetricsAggregator()
        self.logger: Logger = logger or get_logger(name=__name__)

    async def run(self, owner: str, repo: str, now: datetime | None = None) -> AnalysisReport:
        now = now or datetime.now(tz=UTC)

        self.logger.info(f"Analyzing {owner}/{repo}.")

        info: RepositoryInfo | ToolFailure = await self.repository_server.get_repository_info(owner=owner, repo=repo)

        if isinstance(info, ToolFailure):
            raise WorkflowError(stage="fetch", message=f"Failed to fetch repository information: {info.message}", owner=owner, repo=repo)

        authors: list[CommitAuthor] = extract_authors(info.commits)

        self.logger.info(f"Found {len(authors)} unique authors in {len(info.commits)} commits of {owner}/{repo}.")

        result: CampaignResult = await self.pipeline.run(authors)

        analysis: RepositoryAnalysis = self.aggregator.aggregate(
            repository=info.repository, commits=info.commits, contributors=info.contributors, now=now
        )

        record: CampaignRecord = build_campaign_record(owner=owner, repo=repo, authors=authors, result=result, analysis=analysis, now=now)

        store_acknowledgement: StoreAcknowledgement = await self.persistence.store_campaign(record)

        report_path = self.persistence.write_report(analysis=analysis, owner=owner, repo=repo)

        return AnalysisReport(
            report_path=str(report_path),
            campaign_id=store_acknowledgement.campaign_id,
            stored=store_acknowledgement.success,
            health_score=analysis.health_score,
            summary=ReportSummary(
                name=info.repository.full_name,
                url=info.repository.url,
                stars=info.repository.stars,
                contributors=len(info.contributors),
                commits=analysis.commit_analysis.total_commits,
                recent_activity=analysis.commit_analysis.recent_activity,
            ),
            failed_recipients=[failure.recipient_name for failure in result.failures],
        )
