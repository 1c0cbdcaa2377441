"""Drafts one personalized outreach email per commit author.

Each author moves through `pending -> subject_drafted -> body_drafted -> edited -> done`. A failing stage marks that
author as failed and drops them from the campaign, the remaining authors are still processed.
"""

import asyncio
from collections.abc import Sequence
from logging import Logger

from fastmcp.utilities.logging import get_logger

from github_repo_agent.clients.models.github import Commit, CommitAuthor
from github_repo_agent.sampling.generator import GenerationError, TextGenerator
from github_repo_agent.sampling.prompts import PromptBuilder
from github_repo_agent.workflows.models import CampaignFailure, CampaignPitch, CampaignResult, DraftStage, EmailDraft

WRITER_SYSTEM_PROMPT = (
    "You are a professional HR of an MNC and a writer. Write a detailed email for the given subject and recipient."
)

EDITOR_SYSTEM_PROMPT = (
    "You are an editor agent that edits email posts. Do not change the content of the email, only edit the formatting. "
    "Do not add any other information, such as a description of the edits you made."
)

DEFAULT_RETRIES = 1


def extract_authors(commits: Sequence[Commit]) -> list[CommitAuthor]:
    """Distinct commit authors in discovery order, keyed by username (email when the commit is not linked to an account).

    Authors without a usable name are skipped.
    """

    authors: dict[str, CommitAuthor] = {}

    for commit in commits:
        author: CommitAuthor = commit.author

        if not author.has_name or author.identity in authors:
            continue

        authors[author.identity] = author

    return list(authors.values())


def subject_prompt(author: CommitAuthor, pitch: CampaignPitch) -> str:
    return (
        PromptBuilder()
        .add_text_section(
            title="Task",
            text=(
                f"Generate a compelling subject line for an email to {author.name} about {pitch.company_name}. "
                "The subject should be professional and highlight the value proposition. Keep it between 6 and 12 words."
            ),
        )
        .add_text_section(title="Response Format", text="Respond with the subject line only.")
        .render_text()
    )


def body_prompt(author: CommitAuthor, pitch: CampaignPitch) -> str:
    return (
        PromptBuilder()
        .add_text_section(
            title="Task",
            text=f"Write a personalized email to {author.name} about how {pitch.company_name} can enhance their AI applications.",
        )
        .add_list_section(title="Focus", items=pitch.value_propositions, preamble="Focus on:")
        .add_text_section(title="Tone", text="Keep it professional and concise.")
        .render_text()
    )


def edit_prompt(author: CommitAuthor, pitch: CampaignPitch, subject: str, body: str) -> str:
    return (
        PromptBuilder()
        .add_text_section(title="Task", text=f"Edit the formatting of this email to {author.name}.")
        .add_text_section(title="Subject", text=subject)
        .add_text_section(title="Email", text=body)
        .add_list_section(
            title="Rules",
            items=[
                "Make sure to include the subject line in the email.",
                "Make sure to include the name of the recipient in the email.",
                f"Make sure to include the company name ({pitch.company_name}) in the email.",
                f"Make sure to include the company website ({pitch.website}) in the email.",
                "Do not use any other words than what is provided in the email.",
            ],
        )
        .render_text()
    )


class EmailCampaignPipeline:
    """Runs the subject, body and editing stages for every author."""

    def __init__(
        self,
        generator: TextGenerator,
        pitch: CampaignPitch | None = None,
        retries: int = DEFAULT_RETRIES,
        parallel: bool = False,
        logger: Logger | None = None,
    ):
        self.generator: TextGenerator = generator
        self.pitch: CampaignPitch = pitch or CampaignPitch()
        self.retries: int = retries
        self.parallel: bool = parallel
        self.logger: Logger = logger or get_logger(name=__name__)

    async def run(self, authors: Sequence[CommitAuthor]) -> CampaignResult:
        self.logger.info(f"Generating emails for {len(authors)} authors.")

        drafts: list[EmailDraft]

        if self.parallel:
            drafts = await asyncio.gather(*[self.draft_email(author=author) for author in authors])
        else:
            drafts = [await self.draft_email(author=author) for author in authors]

        result = CampaignResult()

        for draft in drafts:
            if draft.stage == DraftStage.DONE:
                result.emails.append(draft.to_email())
                continue

            result.failures.append(
                CampaignFailure(
                    recipient_name=draft.author.name,
                    recipient_username=draft.author.username,
                    stage=draft.failed_stage or DraftStage.PENDING,
                    error=draft.error or "Unknown error",
                )
            )

        self.logger.info(f"Generated {len(result.emails)} emails, {len(result.failures)} authors failed.")

        return result

    async def draft_email(self, author: CommitAuthor) -> EmailDraft:
        draft = EmailDraft(author=author)

        try:
            draft.subject = (await self._generate(subject_prompt(author, self.pitch), system_prompt=WRITER_SYSTEM_PROMPT)).strip()
            draft.stage = DraftStage.SUBJECT_DRAFTED

            draft.body = await self._generate(body_prompt(author, self.pitch), system_prompt=WRITER_SYSTEM_PROMPT)
            draft.stage = DraftStage.BODY_DRAFTED

            draft.body = await self._generate(
                edit_prompt(author, self.pitch, subject=draft.subject, body=draft.body), system_prompt=EDITOR_SYSTEM_PROMPT
            )
            draft.stage = DraftStage.EDITED
        except Exception as e:
            draft.failed_stage = next_stage(draft.stage)
            draft.stage = DraftStage.FAILED
            draft.error = str(e)
            self.logger.warning(f"Email generation for {author.name} failed at {draft.failed_stage}: {e}")
            return draft

        draft.stage = DraftStage.DONE

        return draft

    async def _generate(self, prompt: str, system_prompt: str) -> str:
        for attempt in range(self.retries + 1):
            try:
                text: str = await self.generator.generate(prompt, system_prompt=system_prompt, temperature=0.7)
            except GenerationError as e:
                if not e.retryable or attempt == self.retries:
                    raise

                self.logger.warning(f"Retrying generation after retryable failure (attempt {attempt + 1}/{self.retries + 1}): {e}")
                continue

            if not text.strip():
                msg = "The generation call returned no text."
                raise GenerationError(msg)

            return text

        msg = "The generation call was not attempted."
        raise GenerationError(msg)


def next_stage(stage: DraftStage) -> DraftStage:
    """The stage a draft was working towards when it stopped at `stage`."""

    return {
        DraftStage.PENDING: DraftStage.SUBJECT_DRAFTED,
        DraftStage.SUBJECT_DRAFTED: DraftStage.BODY_DRAFTED,
        DraftStage.BODY_DRAFTED: DraftStage.EDITED,
    }.get(stage, stage)
