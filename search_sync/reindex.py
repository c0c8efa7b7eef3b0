"""
Batch reindexing script

Reads a JSON file holding a list of records, prepares them and indexes
them into the given index. The record size report goes to the console.

Run with: python -m search_sync.reindex records.json products [--wait]
"""

import json
import logging
import sys
from typing import Optional, Sequence, TextIO

from .services.diagnostics import ConsoleSink
from .services.index_client import SearchServiceError
from .services.search_index_service import SearchIndexService, search_index_service

USAGE = "Usage: python -m search_sync.reindex <records.json> <index_name> [--wait]"


def load_records(path: str) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} must contain a JSON list of records")
    return records


def reindex(
    path: str,
    index_name: str,
    wait: bool = False,
    service: Optional[SearchIndexService] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """Index the records of ``path`` and return how many were sent."""
    service = service or search_index_service
    stream = stream or sys.stdout

    records = load_records(path)
    batch, task = service.add_objects(records, index_name, sink=ConsoleSink(stream))
    print(f"Indexed {len(batch.records)} of {len(records)} records into {index_name}", file=stream)

    if task and wait:
        service.wait_last_task(task.index_name, task.task_id)
        print(f"Task {task.task_id} completed", file=stream)
    return len(batch.records)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    wait = "--wait" in args
    args = [arg for arg in args if arg != "--wait"]
    if len(args) != 2:
        print(USAGE, file=sys.stderr)
        return 2

    logging.basicConfig(level=logging.INFO)
    try:
        reindex(args[0], args[1], wait=wait)
    except (SearchServiceError, ValueError, OSError) as e:
        print(f"Reindexing failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
