"""Business logic services."""

from .attribute_cast_service import (
    DEFAULT_NON_CASTABLE_ATTRIBUTES,
    cast_record,
    cast_value,
)
from .diagnostics import (
    ConsoleSink,
    DiagnosticSink,
    LoggingSink,
    NoticeSink,
)
from .index_client import (
    EntryPage,
    IndexClient,
    IndexRef,
    MeilisearchIndexClient,
    SearchNotConfiguredError,
    SearchOperationError,
    SearchServiceError,
    TaskRef,
)
from .record_preparation_service import (
    PreparedBatch,
    RecordPreparer,
)
from .record_size_service import (
    Discarded,
    FitResult,
    Kept,
    fit_record,
    longest_attribute,
    record_size,
)
from .replication_service import (
    ReplicatedKind,
    collect_all,
    copy_entries,
    replace_all,
    replace_synonyms,
)
from .search_index_service import (
    SearchIndexService,
    get_search_index_service,
    search_index_service,
)
from .settings_merge_service import merge_settings
from .task_tracker import TaskTracker

__all__ = [
    # Attribute casting
    "DEFAULT_NON_CASTABLE_ATTRIBUTES",
    "cast_record",
    "cast_value",
    # Diagnostics
    "ConsoleSink",
    "DiagnosticSink",
    "LoggingSink",
    "NoticeSink",
    # Index client
    "EntryPage",
    "IndexClient",
    "IndexRef",
    "MeilisearchIndexClient",
    "SearchNotConfiguredError",
    "SearchOperationError",
    "SearchServiceError",
    "TaskRef",
    # Record preparation
    "PreparedBatch",
    "RecordPreparer",
    # Record size
    "Discarded",
    "FitResult",
    "Kept",
    "fit_record",
    "longest_attribute",
    "record_size",
    # Replication
    "ReplicatedKind",
    "collect_all",
    "copy_entries",
    "replace_all",
    "replace_synonyms",
    # Search index service
    "SearchIndexService",
    "get_search_index_service",
    "search_index_service",
    # Settings merge
    "merge_settings",
    # Task tracking
    "TaskTracker",
]
