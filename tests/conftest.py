"""Shared pytest fixtures for search sync tests."""

from typing import Generator, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from search_sync.main import app
from search_sync.services.index_client import EntryPage, IndexRef, TaskRef
from search_sync.services.record_preparation_service import RecordPreparer
from search_sync.services.search_index_service import (
    SearchIndexService,
    get_search_index_service,
)


class FakeIndexClient:
    """
    In-memory IndexClient.

    Keeps records, settings, synonym and rule entries per index, hands out
    increasing task ids and logs every call as (method, index name, ...).
    Search hits carry a ``_highlightResult`` like the engine's do.
    """

    def __init__(self):
        self.records: dict[str, dict[str, dict]] = {}
        self.settings: dict[str, dict] = {}
        self.synonyms: dict[str, list[dict]] = {}
        self.rules: dict[str, list[dict]] = {}
        self.calls: list[tuple] = []
        self.waited: list[tuple[str, int]] = []
        self.settings_unavailable = False
        self._next_task_id = 0

    def _task(self, index: IndexRef) -> TaskRef:
        self._next_task_id += 1
        return TaskRef(index_name=index.name, task_id=self._next_task_id)

    @staticmethod
    def _page(entries: list[dict], page: int, page_size: int) -> EntryPage:
        start = page * page_size
        hits = [
            {**entry, "_highlightResult": {"objectID": {"value": entry.get("objectID")}}}
            for entry in entries[start:start + page_size]
        ]
        return EntryPage(hits=hits, total=len(entries))

    def get_index(self, index):
        return index

    def list_indexes(self):
        return sorted(self.records)

    def search(self, index, query, params=None):
        self.calls.append(("search", index.name, query))
        return {"hits": list(self.records.get(index.name, {}).values()), "query": query}

    def get_objects(self, index, object_ids):
        stored = self.records.get(index.name, {})
        return [stored.get(str(object_id)) for object_id in object_ids]

    def upsert(self, index, records, partial=False):
        self.calls.append(("upsert", index.name, len(records), partial))
        stored = self.records.setdefault(index.name, {})
        for record in records:
            if partial and record["objectID"] in stored:
                stored[record["objectID"]].update(record)
            else:
                stored[record["objectID"]] = dict(record)
        return self._task(index)

    def delete_objects(self, index, object_ids):
        self.calls.append(("delete_objects", index.name, list(object_ids)))
        stored = self.records.get(index.name, {})
        for object_id in object_ids:
            stored.pop(object_id, None)
        return self._task(index)

    def delete_index(self, index):
        self.calls.append(("delete_index", index.name))
        self.records.pop(index.name, None)
        return self._task(index)

    def clear_objects(self, index):
        self.calls.append(("clear_objects", index.name))
        self.records[index.name] = {}
        return self._task(index)

    def get_settings(self, index):
        self.calls.append(("get_settings", index.name))
        if self.settings_unavailable:
            return None
        current = self.settings.get(index.name)
        return dict(current) if current is not None else None

    def set_settings(self, index, index_settings, forward_to_replicas=False):
        self.calls.append(("set_settings", index.name, dict(index_settings), forward_to_replicas))
        self.settings[index.name] = dict(index_settings)
        return self._task(index)

    def move_index(self, source, destination):
        self.calls.append(("move_index", source.name, destination.name))
        self.records[destination.name] = self.records.pop(source.name, {})
        return self._task(destination)

    def search_synonyms(self, index, query="", page=0, page_size=100, types=None):
        self.calls.append(("search_synonyms", index.name, page, page_size, tuple(types or ())))
        entries = [
            entry
            for entry in self.synonyms.get(index.name, [])
            if types is None or entry.get("type") in types
        ]
        return self._page(entries, page, page_size)

    def save_synonyms(self, index, synonyms, forward_to_replicas=False, replace_existing=False):
        self.calls.append(
            ("save_synonyms", index.name, len(synonyms), forward_to_replicas, replace_existing)
        )
        if replace_existing:
            self.synonyms[index.name] = [dict(entry) for entry in synonyms]
        else:
            self.synonyms.setdefault(index.name, []).extend(dict(entry) for entry in synonyms)
        return self._task(index)

    def clear_synonyms(self, index, forward_to_replicas=False):
        self.calls.append(("clear_synonyms", index.name, forward_to_replicas))
        self.synonyms[index.name] = []
        return self._task(index)

    def search_rules(self, index, query="", page=0, page_size=100):
        self.calls.append(("search_rules", index.name, page, page_size))
        return self._page(self.rules.get(index.name, []), page, page_size)

    def save_rules(self, index, rules, forward_to_replicas=False, replace_existing=False):
        self.calls.append(("save_rules", index.name, len(rules), forward_to_replicas, replace_existing))
        if replace_existing:
            self.rules[index.name] = [dict(rule) for rule in rules]
        else:
            self.rules.setdefault(index.name, []).extend(dict(rule) for rule in rules)
        return self._task(index)

    def clear_rules(self, index, forward_to_replicas=False):
        self.calls.append(("clear_rules", index.name, forward_to_replicas))
        self.rules[index.name] = []
        return self._task(index)

    def save_rule(self, index, rule, forward_to_replicas=False):
        return self.save_rules(index, [rule], forward_to_replicas=forward_to_replicas)

    def delete_rule(self, index, object_id, forward_to_replicas=False):
        self.calls.append(("delete_rule", index.name, object_id, forward_to_replicas))
        self.rules[index.name] = [
            rule for rule in self.rules.get(index.name, []) if rule.get("objectID") != object_id
        ]
        return self._task(index)

    def wait_task(self, index, task_id):
        self.waited.append((index.name, task_id))

    def generate_scoped_search_key(self, parent_key, restrictions):
        return f"scoped:{parent_key}:{sorted(restrictions)}"

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


def make_entries(count: int, prefix: str = "syn", entry_type: Optional[str] = None) -> list[dict]:
    """Build ``count`` synonym/rule entries with distinct objectIDs."""
    entries = []
    for i in range(count):
        entry = {"objectID": f"{prefix}-{i}", "synonyms": [f"word{i}", f"term{i}"]}
        if entry_type:
            entry["type"] = entry_type
        entries.append(entry)
    return entries


def ids(entries: Sequence[dict]) -> list[str]:
    return [entry["objectID"] for entry in entries]


@pytest.fixture
def fake_client() -> FakeIndexClient:
    """Create an empty in-memory index client."""
    return FakeIndexClient()


@pytest.fixture
def service(fake_client: FakeIndexClient) -> SearchIndexService:
    """Create a search index service on top of the fake client."""
    return SearchIndexService(
        client=fake_client,
        preparer=RecordPreparer(max_record_size=1000, non_castable_attributes=["ean"]),
        partial_updates=False,
    )


@pytest.fixture
def client(service: SearchIndexService) -> Generator[TestClient, None, None]:
    """Create a test client with the search service dependency override."""
    app.dependency_overrides[get_search_index_service] = lambda: service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
