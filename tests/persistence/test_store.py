from typing import Any

import pytest

from github_repo_agent.persistence.store import ElasticsearchStore, InMemoryStore, get_memory_store


class FakeElasticsearch:
    def __init__(self):
        self.documents: dict[str, dict[str, Any]] = {}
        self.index_calls: list[dict[str, Any]] = []

    async def index(self, index: str, id: str, document: dict[str, Any], refresh: bool) -> dict[str, Any]:  # noqa: A002
        self.index_calls.append({"index": index, "id": id, "refresh": refresh})
        result = "updated" if id in self.documents else "created"
        self.documents[id] = document
        return {"result": result}

    async def get(self, index: str, id: str) -> dict[str, Any]:  # noqa: A002
        return {"_source": self.documents[id]}


async def test_in_memory_store():
    store = InMemoryStore()

    assert await store.memorize(key="k", data={"a": 1}) == {"success": True, "campaignId": "k"}
    assert await store.remember(key="k") == {"a": 1}
    assert await store.remember(key="missing") is None


async def test_in_memory_store_replaces_value():
    store = InMemoryStore()

    _ = await store.memorize(key="k", data={"a": 1})
    _ = await store.memorize(key="k", data={"a": 2})

    assert await store.remember(key="k") == {"a": 2}


async def test_elasticsearch_store():
    client = FakeElasticsearch()
    store = ElasticsearchStore(elasticsearch_client=client, index="memories")  # pyright: ignore[reportArgumentType]

    assert await store.memorize(key="acme-widget-1", data={"a": 1}) == {"success": True, "campaignId": "acme-widget-1"}
    assert await store.memorize(key="acme-widget-1", data={"a": 2}) == {"success": True, "campaignId": "acme-widget-1"}
    assert await store.remember(key="acme-widget-1") == {"a": 2}
    assert client.index_calls[0] == {"index": "memories", "id": "acme-widget-1", "refresh": True}
    assert client.documents["acme-widget-1"] == {"key": "acme-widget-1", "data": {"a": 2}}


def test_get_memory_store_without_elasticsearch(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ES_URL", raising=False)
    monkeypatch.delenv("ES_API_KEY", raising=False)

    assert isinstance(get_memory_store(), InMemoryStore)
