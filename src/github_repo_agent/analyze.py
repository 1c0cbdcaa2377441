import asyncio
from pathlib import Path

import click
from fastmcp.utilities.logging import configure_logging, get_logger

from github_repo_agent.persistence.analysis import AnalysisPersistence
from github_repo_agent.persistence.store import get_memory_store
from github_repo_agent.sampling.handler import get_text_generator
from github_repo_agent.servers.repository import RepositoryServer
from github_repo_agent.workflows.analysis import RepositoryAnalysisWorkflow
from github_repo_agent.workflows.campaign import EmailCampaignPipeline
from github_repo_agent.workflows.models import AnalysisReport

logger = get_logger(name=__name__)


async def analyze(owner: str, repo: str, output_dir: Path | None, parallel: bool) -> AnalysisReport:
    workflow = RepositoryAnalysisWorkflow(
        repository_server=RepositoryServer(logger=logger),
        pipeline=EmailCampaignPipeline(generator=get_text_generator(), parallel=parallel, logger=logger),
        persistence=AnalysisPersistence(store=get_memory_store(), output_dir=output_dir, logger=logger),
        logger=logger,
    )

    return await workflow.run(owner=owner, repo=repo)


@click.command()
@click.option("--owner", required=True, help="The owner of the repository to analyze")
@click.option("--repo", required=True, help="The name of the repository to analyze")
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Where to write the report")
@click.option("--parallel/--sequential", default=False, help="Generate the emails of all authors concurrently")
def run_analysis(owner: str, repo: str, output_dir: Path | None, parallel: bool):
    configure_logging(level="INFO")

    report: AnalysisReport = asyncio.run(analyze(owner=owner, repo=repo, output_dir=output_dir, parallel=parallel))

    click.echo(report.model_dump_json(indent=2))


if __name__ == "__main__":
    run_analysis()
