import os
from logging import Logger
from pathlib import Path
from typing import Any

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from github_repo_agent.analysis.models import RepositoryAnalysis
from github_repo_agent.persistence.errors import PersistenceError, PersistenceProtocolError
from github_repo_agent.persistence.store import MemoryStore
from github_repo_agent.workflows.models import CampaignRecord

DEFAULT_OUTPUT_DIR = "output"


def get_output_dir() -> Path:
    return Path(os.getenv("OUTPUT_DIR") or DEFAULT_OUTPUT_DIR)


def campaign_key(owner: str, repo: str, timestamp_ms: int) -> str:
    return f"{owner}-{repo}-{timestamp_ms}"


class StoreAcknowledgement(BaseModel):
    """The reply of the memory store to a write."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    success: bool
    campaign_id: str = Field(alias="campaignId")


class AnalysisPersistence:
    """Writes campaign records to the memory store and analyses to JSON report files."""

    def __init__(self, store: MemoryStore, output_dir: Path | None = None, logger: Logger | None = None):
        self.store: MemoryStore = store
        self.output_dir: Path = output_dir or get_output_dir()
        self.logger: Logger = logger or get_logger(name=__name__)

    def report_path(self, owner: str, repo: str) -> Path:
        return self.output_dir / f"{owner}-{repo}-analysis.json"

    async def store_campaign(self, record: CampaignRecord) -> StoreAcknowledgement:
        """Store a campaign record under its campaign id.

        Raises:
            PersistenceError: If the store fails or reports an unsuccessful write.
            PersistenceProtocolError: If the store does not acknowledge with `{success, campaignId}`.
        """

        key: str = record.campaign_id

        self.logger.info(f"Storing campaign {key}.")

        try:
            raw_acknowledgement: Any = await self.store.memorize(key=key, data=record.model_dump(mode="json"))  # pyright: ignore[reportAny]
        except Exception as e:
            msg = f"Failed to store campaign {key}: {e}"
            raise PersistenceError(msg) from e

        try:
            store_acknowledgement = StoreAcknowledgement.model_validate(raw_acknowledgement)
        except ValidationError as e:
            raise PersistenceProtocolError(key=key, acknowledgement=raw_acknowledgement) from e

        if not store_acknowledgement.success:
            msg = f"The memory store reported a failed write for campaign {key}."
            raise PersistenceError(msg)

        return store_acknowledgement

    def write_report(self, analysis: RepositoryAnalysis, owner: str, repo: str) -> Path:
        """Write the analysis to `{output_dir}/{owner}-{repo}-analysis.json`, creating missing directories.

        Raises:
            PersistenceError: If the file cannot be written.
        """

        path: Path = self.report_path(owner=owner, repo=repo)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            with path.open("w", encoding="utf-8") as f:
                _ = f.write(analysis.model_dump_json(indent=2))
        except OSError as e:
            msg = f"Failed to write analysis report to {path}: {e}"
            raise PersistenceError(msg) from e

        self.logger.info(f"Wrote analysis report to {path}.")

        return path
