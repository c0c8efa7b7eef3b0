"""Search engine client boundary.

Defines the value types shared by the record pipeline and the replication
helpers (IndexRef, TaskRef, EntryPage), the IndexClient protocol the core
is written against, and the Meilisearch implementation of that protocol.

Meilisearch specifics kept inside this module:
- records use ``objectID`` as the primary key
- synonyms are stored as ``{word: [synonyms]}`` and exposed as entries
- query rules are persisted as documents of a sibling ``<index>__rules``
  index, since the engine has no native rules
- replicas do not exist, ``forward_to_replicas`` is accepted and ignored
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, Union

from meilisearch_python_sdk import Client
from meilisearch_python_sdk.errors import MeilisearchApiError, MeilisearchError
from meilisearch_python_sdk.models.settings import MeilisearchSettings

logger = logging.getLogger(__name__)

PRIMARY_KEY = "objectID"
RULES_INDEX_SUFFIX = "__rules"

# Entry types used when synonyms are exposed as entries
SYNONYM_TYPE_ONE_WAY = "oneWaySynonym"
SYNONYM_TYPE_MUTUAL = "synonym"


class SearchServiceError(Exception):
    """Base exception for search service errors."""

    pass


class SearchNotConfiguredError(SearchServiceError):
    """Raised when an operation needs the engine but credentials are missing."""

    pass


class SearchOperationError(SearchServiceError):
    """Raised when the engine rejects or fails a write."""

    pass


@dataclass(frozen=True)
class IndexRef:
    """Canonical reference to an index, resolved once at the service boundary."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Index name cannot be empty")

    @classmethod
    def resolve(cls, value: Union[str, "IndexRef"]) -> "IndexRef":
        """Accept either a plain index name or an existing IndexRef."""
        if isinstance(value, IndexRef):
            return value
        return cls(name=str(value))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class TaskRef:
    """Identity of an asynchronous engine task: (index name, task id)."""

    index_name: str
    task_id: int


@dataclass
class EntryPage:
    """One page of synonyms or rules, with the total reported by the engine."""

    hits: list[dict] = field(default_factory=list)
    total: int = 0


class IndexClient(Protocol):
    """Operations the record pipeline and replication helpers need from the engine."""

    def get_index(self, index: IndexRef) -> Any: ...

    def list_indexes(self) -> list[str]: ...

    def search(self, index: IndexRef, query: str, params: Optional[dict] = None) -> dict: ...

    def get_objects(self, index: IndexRef, object_ids: Sequence[str]) -> list[Optional[dict]]: ...

    def upsert(self, index: IndexRef, records: list[dict], partial: bool = False) -> TaskRef: ...

    def delete_objects(self, index: IndexRef, object_ids: Sequence[str]) -> TaskRef: ...

    def delete_index(self, index: IndexRef) -> TaskRef: ...

    def clear_objects(self, index: IndexRef) -> TaskRef: ...

    def get_settings(self, index: IndexRef) -> Optional[dict]: ...

    def set_settings(
        self, index: IndexRef, index_settings: dict, forward_to_replicas: bool = False
    ) -> TaskRef: ...

    def move_index(self, source: IndexRef, destination: IndexRef) -> TaskRef: ...

    def search_synonyms(
        self,
        index: IndexRef,
        query: str = "",
        page: int = 0,
        page_size: int = 100,
        types: Optional[Sequence[str]] = None,
    ) -> EntryPage: ...

    def save_synonyms(
        self,
        index: IndexRef,
        synonyms: list[dict],
        forward_to_replicas: bool = False,
        replace_existing: bool = False,
    ) -> TaskRef: ...

    def clear_synonyms(self, index: IndexRef, forward_to_replicas: bool = False) -> TaskRef: ...

    def search_rules(
        self, index: IndexRef, query: str = "", page: int = 0, page_size: int = 100
    ) -> EntryPage: ...

    def save_rules(
        self,
        index: IndexRef,
        rules: list[dict],
        forward_to_replicas: bool = False,
        replace_existing: bool = False,
    ) -> TaskRef: ...

    def clear_rules(self, index: IndexRef, forward_to_replicas: bool = False) -> TaskRef: ...

    def save_rule(self, index: IndexRef, rule: dict, forward_to_replicas: bool = False) -> TaskRef: ...

    def delete_rule(
        self, index: IndexRef, object_id: str, forward_to_replicas: bool = False
    ) -> TaskRef: ...

    def wait_task(self, index: IndexRef, task_id: int) -> None: ...

    def generate_scoped_search_key(self, parent_key: str, restrictions: dict) -> str: ...


def synonym_map_to_entries(synonyms: Optional[dict[str, list[str]]]) -> list[dict]:
    """Expose the engine's ``{word: [synonyms]}`` map as one entry per word."""
    return [
        {
            "objectID": word,
            "type": SYNONYM_TYPE_ONE_WAY,
            "input": word,
            "synonyms": list(values),
        }
        for word, values in sorted((synonyms or {}).items())
    ]


def synonym_entries_to_map(entries: Sequence[dict]) -> dict[str, list[str]]:
    """Convert synonym entries back into the engine's ``{word: [synonyms]}`` map.

    Mutual synonyms expand to one key per word. Entry types without an
    engine counterpart (alternative corrections, placeholders) are skipped.
    """
    synonym_map: dict[str, list[str]] = {}
    for entry in entries:
        entry_type = entry.get("type", SYNONYM_TYPE_MUTUAL)
        words = list(entry.get("synonyms") or [])

        if entry_type == SYNONYM_TYPE_ONE_WAY:
            source = entry.get("input") or entry.get("objectID")
            if source and words:
                synonym_map.setdefault(source, [])
                synonym_map[source].extend(w for w in words if w not in synonym_map[source])
        elif entry_type == SYNONYM_TYPE_MUTUAL:
            for word in words:
                others = [w for w in words if w != word]
                if not others:
                    continue
                synonym_map.setdefault(word, [])
                synonym_map[word].extend(w for w in others if w not in synonym_map[word])
        else:
            logger.warning(
                f"Skipping synonym {entry.get('objectID')}: type {entry_type!r} "
                "is not supported by Meilisearch"
            )
    return synonym_map


def _matches_query(entry: dict, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    haystack = [str(entry.get("input") or "")] + [str(w) for w in entry.get("synonyms") or []]
    return any(needle in value.lower() for value in haystack)


class MeilisearchIndexClient:
    """
    IndexClient backed by the synchronous Meilisearch client.

    Every write returns a TaskRef built from the engine's task uid. Library
    errors raised by writes are wrapped in SearchOperationError.
    """

    def __init__(self, client: Client, wait_timeout_in_ms: Optional[int] = None):
        self._client = client
        self._wait_timeout_in_ms = wait_timeout_in_ms

    @property
    def client(self) -> Client:
        """The underlying Meilisearch client."""
        return self._client

    @staticmethod
    def _task_ref(index: IndexRef, task_info) -> TaskRef:
        return TaskRef(index_name=index.name, task_id=task_info.task_uid)

    @staticmethod
    def _rules_index_name(index: IndexRef) -> str:
        return f"{index.name}{RULES_INDEX_SUFFIX}"

    @staticmethod
    def _log_replica_forwarding(operation: str, forward_to_replicas: bool) -> None:
        if forward_to_replicas:
            logger.debug(f"{operation}: forward_to_replicas has no effect on Meilisearch")

    # ---- Indices & records ----

    def get_index(self, index: IndexRef):
        return self._client.index(index.name)

    def list_indexes(self) -> list[str]:
        indexes = self._client.get_indexes() or []
        return [idx.uid for idx in indexes]

    def search(self, index: IndexRef, query: str, params: Optional[dict] = None) -> dict:
        results = self._client.index(index.name).search(query, **(params or {}))
        return results.model_dump(by_alias=True)

    def get_objects(self, index: IndexRef, object_ids: Sequence[str]) -> list[Optional[dict]]:
        engine_index = self._client.index(index.name)
        objects: list[Optional[dict]] = []
        for object_id in object_ids:
            try:
                objects.append(engine_index.get_document(str(object_id)))
            except MeilisearchApiError:
                objects.append(None)
        return objects

    def upsert(self, index: IndexRef, records: list[dict], partial: bool = False) -> TaskRef:
        engine_index = self._client.index(index.name)
        try:
            if partial:
                task_info = engine_index.update_documents(records, primary_key=PRIMARY_KEY)
            else:
                task_info = engine_index.add_documents(records, primary_key=PRIMARY_KEY)
        except MeilisearchError as e:
            raise SearchOperationError(
                f"Failed to index {len(records)} records into '{index}': {str(e)}"
            ) from e
        return self._task_ref(index, task_info)

    def delete_objects(self, index: IndexRef, object_ids: Sequence[str]) -> TaskRef:
        try:
            task_info = self._client.index(index.name).delete_documents(
                [str(object_id) for object_id in object_ids]
            )
        except MeilisearchError as e:
            raise SearchOperationError(f"Failed to delete records from '{index}': {str(e)}") from e
        return self._task_ref(index, task_info)

    def delete_index(self, index: IndexRef) -> TaskRef:
        try:
            task_info = self._client.index(index.name).delete()
        except MeilisearchError as e:
            raise SearchOperationError(f"Failed to delete index '{index}': {str(e)}") from e
        return self._task_ref(index, task_info)

    def clear_objects(self, index: IndexRef) -> TaskRef:
        try:
            task_info = self._client.index(index.name).delete_all_documents()
        except MeilisearchError as e:
            raise SearchOperationError(f"Failed to clear index '{index}': {str(e)}") from e
        return self._task_ref(index, task_info)

    def move_index(self, source: IndexRef, destination: IndexRef) -> TaskRef:
        """Replace ``destination`` with ``source``: swap both, then drop the old contents."""
        try:
            self._client.get_or_create_index(destination.name, primary_key=PRIMARY_KEY)
            swap_task = self._client.swap_indexes([(source.name, destination.name)])
            self._client.wait_for_task(
                swap_task.task_uid, timeout_in_ms=self._wait_timeout_in_ms, raise_for_status=True
            )
            task_info = self._client.index(source.name).delete()
        except MeilisearchError as e:
            raise SearchOperationError(
                f"Failed to move index '{source}' to '{destination}': {str(e)}"
            ) from e
        return self._task_ref(destination, task_info)

    # ---- Settings ----

    def get_settings(self, index: IndexRef) -> Optional[dict]:
        """Return the index settings, or None when they cannot be fetched."""
        try:
            engine_settings = self._client.index(index.name).get_settings()
        except MeilisearchError as e:
            logger.info(f"No settings available for index {index}: {str(e)}")
            return None
        return engine_settings.model_dump(by_alias=True, exclude_none=True)

    def set_settings(
        self, index: IndexRef, index_settings: dict, forward_to_replicas: bool = False
    ) -> TaskRef:
        self._log_replica_forwarding("set_settings", forward_to_replicas)
        try:
            task_info = self._client.index(index.name).update_settings(
                MeilisearchSettings.model_validate(index_settings)
            )
        except MeilisearchError as e:
            raise SearchOperationError(
                f"Failed to update settings of '{index}': {str(e)}"
            ) from e
        return self._task_ref(index, task_info)

    # ---- Synonyms ----

    def _get_synonym_map(self, index: IndexRef) -> dict[str, list[str]]:
        try:
            return self._client.index(index.name).get_synonyms() or {}
        except MeilisearchApiError as e:
            logger.info(f"No synonyms available for index {index}: {str(e)}")
            return {}

    def search_synonyms(
        self,
        index: IndexRef,
        query: str = "",
        page: int = 0,
        page_size: int = 100,
        types: Optional[Sequence[str]] = None,
    ) -> EntryPage:
        entries = [
            entry
            for entry in synonym_map_to_entries(self._get_synonym_map(index))
            if (types is None or entry["type"] in types) and _matches_query(entry, query)
        ]
        start = page * page_size
        return EntryPage(hits=entries[start:start + page_size], total=len(entries))

    def save_synonyms(
        self,
        index: IndexRef,
        synonyms: list[dict],
        forward_to_replicas: bool = False,
        replace_existing: bool = False,
    ) -> TaskRef:
        self._log_replica_forwarding("save_synonyms", forward_to_replicas)
        synonym_map = synonym_entries_to_map(synonyms)
        if not replace_existing:
            merged = self._get_synonym_map(index)
            merged.update(synonym_map)
            synonym_map = merged
        try:
            task_info = self._client.index(index.name).update_synonyms(synonym_map)
        except MeilisearchError as e:
            raise SearchOperationError(f"Failed to save synonyms of '{index}': {str(e)}") from e
        return self._task_ref(index, task_info)

    def clear_synonyms(self, index: IndexRef, forward_to_replicas: bool = False) -> TaskRef:
        self._log_replica_forwarding("clear_synonyms", forward_to_replicas)
        try:
            task_info = self._client.index(index.name).reset_synonyms()
        except MeilisearchError as e:
            raise SearchOperationError(f"Failed to clear synonyms of '{index}': {str(e)}") from e
        return self._task_ref(index, task_info)

    # ---- Query rules ----

    def _rules_index(self, index: IndexRef):
        return self._client.get_or_create_index(
            self._rules_index_name(index), primary_key=PRIMARY_KEY
        )

    def search_rules(
        self, index: IndexRef, query: str = "", page: int = 0, page_size: int = 100
    ) -> EntryPage:
        rules_index = self._client.index(self._rules_index_name(index))
        offset = page * page_size
        try:
            if query:
                results = rules_index.search(query, offset=offset, limit=page_size)
                return EntryPage(hits=list(results.hits), total=results.estimated_total_hits or 0)
            documents = rules_index.get_documents(offset=offset, limit=page_size)
        except MeilisearchApiError as e:
            logger.info(f"No rules available for index {index}: {str(e)}")
            return EntryPage()
        return EntryPage(hits=list(documents.results), total=documents.total)

    def save_rules(
        self,
        index: IndexRef,
        rules: list[dict],
        forward_to_replicas: bool = False,
        replace_existing: bool = False,
    ) -> TaskRef:
        self._log_replica_forwarding("save_rules", forward_to_replicas)
        try:
            rules_index = self._rules_index(index)
            if replace_existing:
                rules_index.delete_all_documents()
            task_info = rules_index.add_documents(rules, primary_key=PRIMARY_KEY)
        except MeilisearchError as e:
            raise SearchOperationError(f"Failed to save rules of '{index}': {str(e)}") from e
        return self._task_ref(index, task_info)

    def clear_rules(self, index: IndexRef, forward_to_replicas: bool = False) -> TaskRef:
        self._log_replica_forwarding("clear_rules", forward_to_replicas)
        try:
            task_info = self._rules_index(index).delete_all_documents()
        except MeilisearchError as e:
            raise SearchOperationError(f"Failed to clear rules of '{index}': {str(e)}") from e
        return self._task_ref(index, task_info)

    def save_rule(self, index: IndexRef, rule: dict, forward_to_replicas: bool = False) -> TaskRef:
        return self.save_rules(index, [rule], forward_to_replicas=forward_to_replicas)

    def delete_rule(
        self, index: IndexRef, object_id: str, forward_to_replicas: bool = False
    ) -> TaskRef:
        self._log_replica_forwarding("delete_rule", forward_to_replicas)
        try:
            task_info = self._rules_index(index).delete_document(str(object_id))
        except MeilisearchError as e:
            raise SearchOperationError(
                f"Failed to delete rule {object_id} of '{index}': {str(e)}"
            ) from e
        return self._task_ref(index, task_info)

    # ---- Tasks & keys ----

    def wait_task(self, index: IndexRef, task_id: int) -> None:
        try:
            self._client.wait_for_task(
                task_id,
                timeout_in_ms=self._wait_timeout_in_ms,
                raise_for_status=True,
            )
        except MeilisearchError as e:
            raise SearchOperationError(
                f"Task {task_id} on '{index}' did not complete: {str(e)}"
            ) from e

    def generate_scoped_search_key(self, parent_key: str, restrictions: dict) -> str:
        return self._client.generate_tenant_token(
            search_rules=restrictions,
            api_key=self._client.get_key(parent_key),
        )
