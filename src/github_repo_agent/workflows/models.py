from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from github_repo_agent.analysis.models import HealthScore, RecentActivity, RepositoryAnalysis
from github_repo_agent.clients.models.github import CommitAuthor

DEFAULT_VALUE_PROPOSITIONS = [
    "How Mem0.ai provides a memory layer for LLM applications",
    "Benefits of personalized AI experiences",
    "Cost savings through intelligent data filtering",
    "Easy integration with existing AI solutions",
]


class CampaignPitch(BaseModel):
    """What the outreach emails are about."""

    company_name: str = Field(default="Mem0.ai", description="The company the emails are sent on behalf of.")
    website: str = Field(default="https://mem0.ai", description="The website of the company.")
    value_propositions: list[str] = Field(default_factory=lambda: DEFAULT_VALUE_PROPOSITIONS.copy())


class DraftStage(StrEnum):
    PENDING = "pending"
    SUBJECT_DRAFTED = "subject_drafted"
    BODY_DRAFTED = "body_drafted"
    EDITED = "edited"
    DONE = "done"
    FAILED = "failed"


class Email(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipient_name: str = Field(description="The name of the recipient.")
    recipient_email: str = Field(description="The email address of the recipient.")
    recipient_username: str | None = Field(default=None, description="The GitHub username of the recipient.")
    subject: str = Field(description="The subject line of the email.")
    body: str = Field(description="The edited body of the email.")

    @property
    def domain(self) -> str | None:
        _, at, domain = self.recipient_email.rpartition("@")
        return domain.lower() if at and domain else None


class EmailDraft(BaseModel):
    """The progress of one author through the subject, body and editing stages."""

    author: CommitAuthor
    stage: DraftStage = DraftStage.PENDING
    subject: str | None = None
    body: str | None = None
    failed_stage: DraftStage | None = Field(default=None, description="The stage that was being produced when the draft failed.")
    error: str | None = None

    def to_email(self) -> Email:
        if self.stage != DraftStage.DONE or self.subject is None or self.body is None:
            msg = f"Draft for {self.author.name} is not done (stage: {self.stage})."
            raise ValueError(msg)

        return Email(
            recipient_name=self.author.name,
            recipient_email=self.author.email,
            recipient_username=self.author.username,
            subject=self.subject,
            body=self.body,
        )


class CampaignFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipient_name: str
    recipient_username: str | None = None
    stage: DraftStage
    error: str


class CampaignResult(BaseModel):
    emails: list[Email] = Field(default_factory=list, description="The emails, in author discovery order.")
    failures: list[CampaignFailure] = Field(default_factory=list, description="The authors whose email could not be generated.")


class CampaignRepository(BaseModel):
    owner: str
    name: str
    total_authors: int
    processed_at: datetime


class Campaign(BaseModel):
    total_emails: int
    recipients: list[str]
    emails: list[Email]
    generated_at: datetime


class CampaignQuery(BaseModel):
    owner: str
    repo: str
    timestamp: datetime


class CampaignMetadata(BaseModel):
    campaign_id: str
    status: Literal["completed"] = "completed"
    last_updated: datetime
    query: CampaignQuery


class CampaignStats(BaseModel):
    total_authors: int
    total_emails: int
    average_email_length: float
    unique_domains: list[str]
    generated_at: datetime


class CampaignRecord(BaseModel):
    """The emails of one analysis run and their context, as written to the memory store."""

    model_config = ConfigDict(frozen=True)

    repository: CampaignRepository
    campaign: Campaign
    metadata: CampaignMetadata
    analysis: RepositoryAnalysis
    stats: CampaignStats

    @property
    def campaign_id(self) -> str:
        return self.metadata.campaign_id


class ReportSummary(BaseModel):
    name: str
    url: str
    stars: int
    contributors: int
    commits: int
    recent_activity: RecentActivity


class AnalysisReport(BaseModel):
    """What a workflow run reports back to its caller."""

    report_path: str
    campaign_id: str
    stored: bool
    health_score: HealthScore
    summary: ReportSummary
    failed_recipients: list[str] = Field(default_factory=list)
