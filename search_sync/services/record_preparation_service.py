"""
Preparation of a batch of records for indexing.

Each record is stamped with its update time, fitted under the size budget
and cast. Truncated and discarded records are reported once per batch
through the active diagnostic sink.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from .attribute_cast_service import cast_record
from .diagnostics import DiagnosticSink, LoggingSink
from .record_size_service import (
    IDENTIFIER_LIST_ATTRIBUTE,
    POTENTIALLY_LONG_ATTRIBUTES,
    Discarded,
    fit_record,
)

logger = logging.getLogger(__name__)

UPDATED_AT_ATTRIBUTE = "lastUpdateAtCET"
UPDATED_AT_TIMEZONE = ZoneInfo("Europe/Paris")
UPDATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class PreparedBatch:
    """
    Outcome of preparing a batch.

    Attributes:
        records: Records ready to index, in input order
        truncated_ids: objectIDs of records that lost attributes
        discarded: Discard decisions for records left out of the batch
        report: The diagnostic message emitted for the batch, if any
    """

    records: list[dict] = field(default_factory=list)
    truncated_ids: list[Any] = field(default_factory=list)
    discarded: list[Discarded] = field(default_factory=list)
    report: Optional[str] = None


def current_update_time(now: Optional[datetime] = None) -> str:
    """Update timestamp in Central European Time."""
    moment = now or datetime.now(tz=UPDATED_AT_TIMEZONE)
    return moment.astimezone(UPDATED_AT_TIMEZONE).strftime(UPDATED_AT_FORMAT)


def format_batch_report(
    index_name: str,
    truncated_ids: Sequence[Any],
    discarded: Sequence[Discarded],
    candidate_attributes: Sequence[str] = POTENTIALLY_LONG_ATTRIBUTES,
    separator: str = "\n",
) -> Optional[str]:
    """Build the single report for a batch, or None when nothing was changed."""
    lines = [f"{index_name} - ID {object_id} - truncated" for object_id in truncated_ids]
    lines.extend(
        f"{index_name} - ID {decision.object_id} - skipped - "
        f"longest attribute: {decision.longest_attribute}"
        for decision in discarded
    )
    if not lines:
        return None

    return (
        "Search reindexing: some records are too big to be indexed. "
        "They have either been truncated "
        f"(removed attributes: {', '.join(candidate_attributes)}) "
        f"or skipped completely:{separator}" + separator.join(lines)
    )


class RecordPreparer:
    """Fits and casts batches of records for one size budget."""

    def __init__(
        self,
        max_record_size: int,
        non_castable_attributes: Iterable[str] = (),
        candidate_attributes: Sequence[str] = POTENTIALLY_LONG_ATTRIBUTES,
        identifier_list_attribute: Optional[str] = IDENTIFIER_LIST_ATTRIBUTE,
    ):
        self.max_record_size = max_record_size
        self.non_castable_attributes = frozenset(non_castable_attributes)
        self.candidate_attributes = tuple(candidate_attributes)
        self.identifier_list_attribute = identifier_list_attribute

    def prepare(
        self,
        records: Iterable[Mapping[str, Any]],
        index_name: str,
        sink: Optional[DiagnosticSink] = None,
        now: Optional[datetime] = None,
    ) -> PreparedBatch:
        """
        Prepare ``records`` for ``index_name``.

        Input records are not modified. Discarded records are dropped from
        the returned batch; at most one report is sent to ``sink``.
        """
        sink = sink or LoggingSink(logger)
        updated_at = current_update_time(now)
        batch = PreparedBatch()

        for record in records:
            stamped = dict(record)
            stamped[UPDATED_AT_ATTRIBUTE] = updated_at

            result = fit_record(
                stamped,
                self.max_record_size,
                self.candidate_attributes,
                self.identifier_list_attribute,
            )
            if isinstance(result, Discarded):
                batch.discarded.append(result)
                continue
            if result.truncated:
                batch.truncated_ids.append(stamped.get("objectID"))

            batch.records.append(cast_record(result.record, self.non_castable_attributes))

        batch.report = format_batch_report(
            index_name,
            batch.truncated_ids,
            batch.discarded,
            self.candidate_attributes,
            sink.separator,
        )
        if batch.report:
            sink.emit(batch.report)

        logger.debug(
            f"Prepared batch for {index_name}: kept={len(batch.records)} "
            f"truncated={len(batch.truncated_ids)} discarded={len(batch.discarded)}"
        )
        return batch
