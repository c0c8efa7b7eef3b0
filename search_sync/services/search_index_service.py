"""Search index service.

This service is the single entry point for indexing records and for the
administrative operations on indices: publishing settings, replacing or
copying synonyms and query rules, and waiting for engine tasks. It creates
the engine client lazily from configuration and tracks the last task it
issued.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from meilisearch_python_sdk import Client

from ..config import settings
from . import replication_service, settings_merge_service
from .diagnostics import DiagnosticSink
from .index_client import (
    EntryPage,
    IndexClient,
    IndexRef,
    MeilisearchIndexClient,
    SearchNotConfiguredError,
    TaskRef,
)
from .record_preparation_service import PreparedBatch, RecordPreparer
from .replication_service import ReplicatedKind
from .task_tracker import TaskTracker

logger = logging.getLogger(__name__)

IndexArg = Union[str, IndexRef]


def create_index_client() -> Optional[IndexClient]:
    """Build a Meilisearch client from configuration, or None without credentials."""
    if not settings.is_search_configured:
        return None
    client = Client(
        url=settings.meilisearch_url,
        api_key=settings.meilisearch_api_key,
        timeout=settings.meilisearch_timeout,
    )
    return MeilisearchIndexClient(client, wait_timeout_in_ms=settings.meilisearch_timeout * 1000)


class SearchIndexService:
    """
    Record indexing and index administration on top of an IndexClient.

    Every mutating operation records its TaskRef in ``tracker`` and returns
    it. ``wait_last_task`` waits on explicit arguments first, the tracked
    task otherwise.
    """

    def __init__(
        self,
        client: Optional[IndexClient] = None,
        preparer: Optional[RecordPreparer] = None,
        partial_updates: Optional[bool] = None,
        tracker: Optional[TaskTracker] = None,
    ):
        self._client = client
        self._preparer = preparer
        self._partial_updates = partial_updates
        self.tracker = tracker or TaskTracker()

    # ---- Client management ----

    def reset_credentials(self) -> None:
        """Rebuild the engine client from the current configuration."""
        self._client = create_index_client()

    def _check_client(self, operation: str) -> IndexClient:
        if self._client is None:
            self.reset_credentials()
        if self._client is None:
            raise SearchNotConfiguredError(
                f"Operation {operation} could not be performed because "
                "search credentials were not provided."
            )
        return self._client

    @property
    def client(self) -> IndexClient:
        """The engine client, created on first use."""
        return self._check_client("get_client")

    @property
    def preparer(self) -> RecordPreparer:
        """Record preparer built from configuration on first use."""
        if self._preparer is None:
            self._preparer = RecordPreparer(
                max_record_size=settings.max_record_size,
                non_castable_attributes=settings.non_castable_attribute_list,
            )
        return self._preparer

    @property
    def partial_updates(self) -> bool:
        if self._partial_updates is None:
            return settings.partial_update_enabled
        return self._partial_updates

    @property
    def last_task(self) -> Optional[TaskRef]:
        return self.tracker.last

    def _track(self, task: TaskRef) -> TaskRef:
        return self.tracker.record(task)

    # ---- Indices & records ----

    def get_index(self, index_name: IndexArg) -> Any:
        return self._check_client("get_index").get_index(IndexRef.resolve(index_name))

    def list_indexes(self) -> list[str]:
        return self._check_client("list_indexes").list_indexes()

    def query(self, index_name: IndexArg, q: str, params: Optional[dict] = None) -> dict:
        return self._check_client("query").search(IndexRef.resolve(index_name), q, params)

    def get_objects(self, index_name: IndexArg, object_ids: Sequence[str]) -> list[Optional[dict]]:
        return self._check_client("get_objects").get_objects(IndexRef.resolve(index_name), object_ids)

    def prepare_records(
        self,
        records: Iterable[Mapping[str, Any]],
        index_name: IndexArg,
        sink: Optional[DiagnosticSink] = None,
    ) -> PreparedBatch:
        """Fit and cast ``records``; oversized ones are reported, not raised."""
        return self.preparer.prepare(records, IndexRef.resolve(index_name).name, sink=sink)

    def add_objects(
        self,
        records: Iterable[Mapping[str, Any]],
        index_name: IndexArg,
        sink: Optional[DiagnosticSink] = None,
    ) -> tuple[PreparedBatch, Optional[TaskRef]]:
        """
        Prepare and index a batch of records.

        Returns:
            The prepared batch and the upsert task (None when every record
            was discarded and nothing was sent)

        Raises:
            SearchNotConfiguredError: If credentials are missing
            SearchOperationError: If the engine rejects the batch
        """
        client = self._check_client("add_objects")
        index = IndexRef.resolve(index_name)
        batch = self.prepare_records(records, index, sink=sink)
        if not batch.records:
            logger.info(f"Nothing to index on {index} after preparation")
            return batch, None

        task = client.upsert(index, batch.records, partial=self.partial_updates)
        return batch, self._track(task)

    def delete_objects(self, object_ids: Sequence[str], index_name: IndexArg) -> TaskRef:
        index = IndexRef.resolve(index_name)
        return self._track(self._check_client("delete_objects").delete_objects(index, object_ids))

    def delete_index(self, index_name: IndexArg) -> TaskRef:
        index = IndexRef.resolve(index_name)
        return self._track(self._check_client("delete_index").delete_index(index))

    def clear_index(self, index_name: IndexArg) -> TaskRef:
        index = IndexRef.resolve(index_name)
        return self._track(self._check_client("clear_index").clear_objects(index))

    def move_index(self, tmp_index_name: IndexArg, index_name: IndexArg) -> TaskRef:
        source = IndexRef.resolve(tmp_index_name)
        destination = IndexRef.resolve(index_name)
        return self._track(self._check_client("move_index").move_index(source, destination))

    # ---- Settings ----

    def get_settings(self, index_name: IndexArg) -> Optional[dict]:
        return self._check_client("get_settings").get_settings(IndexRef.resolve(index_name))

    def merged_settings(
        self,
        index_name: IndexArg,
        index_settings: Mapping[str, Any],
        merge_settings_from: Optional[IndexArg] = None,
    ) -> dict:
        """Overlay ``index_settings`` on the settings online for the source index."""
        source = IndexRef.resolve(merge_settings_from or index_name)
        online = self.get_settings(source)
        if online is None:
            logger.info(f"No online settings for {source}, publishing local settings only")
        return settings_merge_service.merge_settings(online, index_settings)

    def publish_settings(
        self,
        index_name: IndexArg,
        index_settings: Mapping[str, Any],
        forward_to_replicas: bool = False,
        merge_settings: bool = False,
        merge_settings_from: Optional[IndexArg] = None,
    ) -> TaskRef:
        """
        Push settings to an index, optionally merged over the settings online.

        Args:
            index_name: Index to configure
            index_settings: Settings to publish
            forward_to_replicas: Propagate to replica indices
            merge_settings: Merge over the online settings first
            merge_settings_from: Index to read online settings from
                (defaults to ``index_name``)
        """
        client = self._check_client("publish_settings")
        index = IndexRef.resolve(index_name)

        payload = dict(index_settings)
        if merge_settings:
            payload = self.merged_settings(index, payload, merge_settings_from)

        return self._track(client.set_settings(index, payload, forward_to_replicas=forward_to_replicas))

    # ---- Synonyms & rules ----

    def replace_synonyms(self, index_name: IndexArg, synonyms: Sequence[dict]) -> TaskRef:
        client = self._check_client("replace_synonyms")
        return self._track(
            replication_service.replace_synonyms(client, IndexRef.resolve(index_name), synonyms)
        )

    def copy_synonyms(self, from_index_name: IndexArg, to_index_name: IndexArg) -> TaskRef:
        client = self._check_client("copy_synonyms")
        return self._track(
            replication_service.copy_entries(
                client,
                ReplicatedKind.SYNONYMS,
                IndexRef.resolve(from_index_name),
                IndexRef.resolve(to_index_name),
            )
        )

    def copy_query_rules(self, from_index_name: IndexArg, to_index_name: IndexArg) -> TaskRef:
        client = self._check_client("copy_query_rules")
        return self._track(
            replication_service.copy_entries(
                client,
                ReplicatedKind.RULES,
                IndexRef.resolve(from_index_name),
                IndexRef.resolve(to_index_name),
            )
        )

    def save_rule(
        self, rule: dict, index_name: IndexArg, forward_to_replicas: bool = False
    ) -> TaskRef:
        index = IndexRef.resolve(index_name)
        return self._track(
            self._check_client("save_rule").save_rule(index, rule, forward_to_replicas=forward_to_replicas)
        )

    def batch_rules(self, rules: list[dict], index_name: IndexArg) -> TaskRef:
        """Add or update rules without touching the other rules of the index."""
        index = IndexRef.resolve(index_name)
        return self._track(
            self._check_client("batch_rules").save_rules(
                index, rules, forward_to_replicas=False, replace_existing=False
            )
        )

    def search_rules(
        self, index_name: IndexArg, query: str = "", page: int = 0, page_size: int = 100
    ) -> EntryPage:
        return self._check_client("search_rules").search_rules(
            IndexRef.resolve(index_name), query, page=page, page_size=page_size
        )

    def delete_rule(
        self, index_name: IndexArg, object_id: str, forward_to_replicas: bool = False
    ) -> TaskRef:
        index = IndexRef.resolve(index_name)
        return self._track(
            self._check_client("delete_rule").delete_rule(
                index, object_id, forward_to_replicas=forward_to_replicas
            )
        )

    # ---- Tasks & keys ----

    def wait_last_task(
        self, index_name: Optional[IndexArg] = None, task_id: Optional[int] = None
    ) -> Optional[TaskRef]:
        """
        Block until a task completes.

        Explicit arguments win over the tracked task. Does nothing when no
        complete (index name, task id) pair can be determined.

        Returns:
            The task waited on, or None
        """
        name = IndexRef.resolve(index_name).name if index_name is not None else None
        task = self.tracker.resolve(name, task_id)
        if task is None:
            return None

        self._check_client("wait_last_task").wait_task(IndexRef(task.index_name), task.task_id)
        return task

    def generate_scoped_search_key(self, parent_key: str, restrictions: Optional[dict] = None) -> str:
        return self._check_client("generate_scoped_search_key").generate_scoped_search_key(
            parent_key, restrictions or {}
        )


# Global service instance
search_index_service = SearchIndexService()


def get_search_index_service() -> SearchIndexService:
    """
    Dependency function to get the search index service.

    Returns:
        The global SearchIndexService instance
    """
    return search_index_service
