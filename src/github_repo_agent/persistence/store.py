"""Keyed JSON storage backing the agent's memory tools and the campaign records."""

import os
from logging import Logger
from typing import Any, Protocol

from elasticsearch import AsyncElasticsearch, NotFoundError
from fastmcp.utilities.logging import get_logger

DEFAULT_ES_INDEX = "github-repo-agent-memory"


def acknowledgement(key: str, success: bool = True) -> dict[str, Any]:
    return {"success": success, "campaignId": key}


class MemoryStore(Protocol):
    async def memorize(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        """Store a JSON object under a key, replacing any previous value. Returns `{"success", "campaignId"}`."""
        ...

    async def remember(self, key: str) -> dict[str, Any] | None:
        """Return the JSON object stored under a key, or None."""
        ...


class InMemoryStore:
    def __init__(self):
        self.memories: dict[str, dict[str, Any]] = {}

    async def memorize(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        self.memories[key] = data
        return acknowledgement(key)

    async def remember(self, key: str) -> dict[str, Any] | None:
        return self.memories.get(key)


class ElasticsearchStore:
    def __init__(self, elasticsearch_client: AsyncElasticsearch, index: str = DEFAULT_ES_INDEX, logger: Logger | None = None):
        self.elasticsearch_client: AsyncElasticsearch = elasticsearch_client
        self.index: str = index
        self.logger: Logger = logger or get_logger(name=__name__)

    async def memorize(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        self.logger.info(f"Memorizing {key} in index {self.index}.")

        response = await self.elasticsearch_client.index(index=self.index, id=key, document={"key": key, "data": data}, refresh=True)

        return acknowledgement(key, success=response["result"] in {"created", "updated"})

    async def remember(self, key: str) -> dict[str, Any] | None:
        try:
            response = await self.elasticsearch_client.get(index=self.index, id=key)
        except NotFoundError:
            return None

        return response["_source"]["data"]


def get_elasticsearch_client() -> AsyncElasticsearch | None:
    if not (host := os.getenv("ES_URL")):
        return None

    if not (api_key := os.getenv("ES_API_KEY")):
        return None

    return AsyncElasticsearch(
        hosts=[host],
        api_key=api_key,
        http_compress=True,
        retry_on_timeout=True,
    )


def get_memory_store() -> MemoryStore:
    if elasticsearch_client := get_elasticsearch_client():
        return ElasticsearchStore(elasticsearch_client=elasticsearch_client, index=os.getenv("ES_INDEX") or DEFAULT_ES_INDEX)

    return InMemoryStore()
