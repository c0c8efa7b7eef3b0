"""
Replication of synonyms and query rules between indices.

Provides:
- Exhaustive pagination of synonyms/rules (collect_all)
- All-or-nothing replacement on a destination (replace_all): an empty set
  clears the destination, anything else replaces every existing entry
- Straight copies between indices (copy_entries)
- Synonym replacement that keeps the destination's own alternative
  corrections and placeholders (replace_synonyms)
"""

import logging
from enum import Enum
from typing import Callable, Optional, Sequence

from .index_client import EntryPage, IndexClient, IndexRef, TaskRef

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

# Field added by the engine to search hits, never re-submitted
HIGHLIGHT_RESULT_FIELD = "_highlightResult"

# Synonym types maintained directly on the destination index
PRESERVED_SYNONYM_TYPES = ("altCorrection1", "altCorrection2", "placeholder")

PageFetcher = Callable[[int, int], EntryPage]


class ReplicatedKind(str, Enum):
    """Kind of entries replicated between indices."""

    SYNONYMS = "synonyms"
    RULES = "rules"


def strip_transient_fields(hit: dict) -> dict:
    """Copy of a hit without its highlight result."""
    return {key: value for key, value in hit.items() if key != HIGHLIGHT_RESULT_FIELD}


def collect_all(fetch_page: PageFetcher, page_size: int = PAGE_SIZE) -> list[dict]:
    """
    Fetch every page of entries, starting at page 0.

    Keeps requesting pages while ``page * page_size`` is below the total
    reported by the last response.

    Args:
        fetch_page: Callable (page, page_size) -> EntryPage
        page_size: Entries per page (at least 1)

    Returns:
        All entries, in page order, with transient fields stripped
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1: {page_size}")

    entries: list[dict] = []
    page = 0
    while True:
        response = fetch_page(page, page_size)
        entries.extend(strip_transient_fields(hit) for hit in response.hits)
        page += 1
        if page * page_size >= response.total:
            break

    logger.debug(f"Collected {len(entries)} entries in {page} pages")
    return entries


def page_fetcher(
    client: IndexClient,
    kind: ReplicatedKind,
    index: IndexRef,
    types: Optional[Sequence[str]] = None,
) -> PageFetcher:
    """Build the page fetcher for ``kind`` entries of ``index``."""
    if kind is ReplicatedKind.SYNONYMS:
        return lambda page, page_size: client.search_synonyms(
            index, "", page=page, page_size=page_size, types=types
        )
    return lambda page, page_size: client.search_rules(
        index, "", page=page, page_size=page_size
    )


def replace_all(
    client: IndexClient,
    kind: ReplicatedKind,
    destination: IndexRef,
    entries: list[dict],
) -> TaskRef:
    """
    Make ``entries`` the complete set of ``kind`` entries of ``destination``.

    An empty set clears the destination. Both paths forward the change to
    replicas.
    """
    if not entries:
        logger.info(f"No {kind.value} to set on {destination}, clearing")
        if kind is ReplicatedKind.SYNONYMS:
            return client.clear_synonyms(destination, forward_to_replicas=True)
        return client.clear_rules(destination, forward_to_replicas=True)

    logger.info(f"Replacing {len(entries)} {kind.value} on {destination}")
    if kind is ReplicatedKind.SYNONYMS:
        return client.save_synonyms(
            destination, entries, forward_to_replicas=True, replace_existing=True
        )
    return client.save_rules(
        destination, entries, forward_to_replicas=True, replace_existing=True
    )


def copy_entries(
    client: IndexClient,
    kind: ReplicatedKind,
    source: IndexRef,
    destination: IndexRef,
    page_size: int = PAGE_SIZE,
) -> TaskRef:
    """Copy every ``kind`` entry of ``source`` onto ``destination``."""
    entries = collect_all(page_fetcher(client, kind, source), page_size)
    return replace_all(client, kind, destination, entries)


def replace_synonyms(
    client: IndexClient,
    destination: IndexRef,
    synonyms: Sequence[dict],
    page_size: int = PAGE_SIZE,
) -> TaskRef:
    """
    Replace the synonyms of ``destination`` with ``synonyms``.

    Alternative corrections and placeholders already present on the
    destination are maintained there directly, so they are folded into the
    new set before replacing. The caller's list is not modified.
    """
    preserved = collect_all(
        page_fetcher(client, ReplicatedKind.SYNONYMS, destination, PRESERVED_SYNONYM_TYPES),
        page_size,
    )
    entries = list(synonyms) + preserved
    return replace_all(client, ReplicatedKind.SYNONYMS, destination, entries)
